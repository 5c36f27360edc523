import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.database import create_db_and_tables
from core.exception_handlers import register_exception_handlers
from routes.auth import router as auth_router
from routes.clients import provision_router as client_provision_router
from routes.clients import router as clients_router
from routes.dashboard import router as dashboard_router
from routes.documents import router as documents_router
from routes.invoices import router as invoices_router
from routes.payment import router as payment_router
from routes.profile import router as profile_router
from routes.projects import router as project_router
from routes.storage import router as storage_router
from routes.tasks import router as tasks_router
from routes.todos import router as todos_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# =========================================
# 🏁 Lifespan (DB initialization)
# =========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("✅ Database tables created on startup.")
    yield
    logger.info("✅ Application shutting down.")


# =========================================
#  ✅ FastAPI App
# =========================================
app = FastAPI(lifespan=lifespan, title="Agency Client Portal Backend")

allowed_origins = [
    settings.FRONTEND_URL,
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# =========================================
# 📦 Routers
# =========================================
app.include_router(auth_router, prefix="/auth", tags=["Authentication"])
app.include_router(client_provision_router)
app.include_router(clients_router, prefix="/clients", tags=["Clients"])
app.include_router(profile_router)
app.include_router(project_router, prefix="/projects", tags=["Projects"])
app.include_router(tasks_router, prefix="/tasks", tags=["Tasks"])
app.include_router(todos_router, prefix="/todos", tags=["Todos"])
app.include_router(documents_router, prefix="/documents", tags=["Documents"])
app.include_router(invoices_router, prefix="/invoices", tags=["Invoices"])
app.include_router(payment_router)
app.include_router(storage_router)
app.include_router(dashboard_router)


# =========================================
# 🩺 Health Check
# =========================================
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "Backend is running"}


@app.get("/")
def read_root():
    return {"message": "Welcome to the Agency Client Portal backend!"}
