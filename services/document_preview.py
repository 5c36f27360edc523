# services/document_preview.py
import mimetypes
import re
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

LINK_FILE_TYPE = "link"
DEFAULT_FILE_TYPE = "application/octet-stream"

FIGMA_EMBED_URL = "https://www.figma.com/embed?embed_host=share&url={}"

_DOCS_SUFFIX = re.compile(r"/(edit|view|copy).*$")
_DRIVE_SUFFIX = re.compile(r"/view.*$")


def normalize_embed_url(url: str) -> str:
    """
    Rewrite a shared document link into the form that renders inside an iframe.

    - docs.google.com: trailing /edit, /view or /copy (and anything after) -> /preview
    - drive.google.com: trailing /view... -> /preview
    - figma.com: wrapped in Figma's embed endpoint unless already an /embed URL
    Anything else, including unparseable input, is returned unchanged.
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return url
    host = (parts.hostname or "").lower()

    if "docs.google.com" in host:
        return urlunsplit(parts._replace(path=_DOCS_SUFFIX.sub("/preview", parts.path)))

    if "drive.google.com" in host:
        return urlunsplit(parts._replace(path=_DRIVE_SUFFIX.sub("/preview", parts.path)))

    if "figma.com" in host:
        if parts.path.startswith("/embed"):
            return url
        return FIGMA_EMBED_URL.format(quote(url, safe="!~*'()"))

    return url


def is_http_url(url: str) -> bool:
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def infer_file_type(content_type: Optional[str], filename: Optional[str]) -> str:
    """Declared MIME type first, then a guess from the filename extension."""
    if content_type and content_type != DEFAULT_FILE_TYPE:
        return content_type
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
        suffix = PurePosixPath(filename).suffix.lower()
        if suffix:
            return suffix
    return DEFAULT_FILE_TYPE


def is_image(file_type: Optional[str]) -> bool:
    return (file_type or "").lower().startswith("image/")


def is_pdf(file_type: Optional[str]) -> bool:
    return "pdf" in (file_type or "").lower()


def preview_kind(file_type: Optional[str]) -> str:
    if is_image(file_type):
        return "image"
    if is_pdf(file_type):
        return "pdf"
    return "file"
