"""Centralized exception handlers for the FastAPI application."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import AppError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)


def error_body(exc: AppError) -> dict:
    body = {"error": exc.code, "detail": exc.message, "details": exc.detail}
    if isinstance(exc, ValidationError) and exc.field:
        body["field"] = exc.field
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("❌ %s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("❌ Unhandled database error on %s %s", request.method, request.url.path)
    wrapped = UpstreamError("A database error occurred.", detail=str(exc))
    return JSONResponse(status_code=wrapped.status_code, content=error_body(wrapped))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
