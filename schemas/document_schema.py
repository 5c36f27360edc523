# document_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Literal, Optional
from datetime import datetime


class DocumentLinkCreate(BaseModel):
    title: str = Field(..., max_length=300)
    embed_url: str = Field(..., max_length=2000)


class DocumentRead(BaseModel):
    id: int
    project_id: int
    title: str
    embed_url: Optional[str] = None
    storage_path: Optional[str] = None
    file_type: Optional[str] = None
    size_bytes: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentPreview(BaseModel):
    document_id: int
    kind: Literal["embed", "image", "pdf", "file"]
    url: str


class DocumentUpdate(BaseModel):
    title: str = Field(..., max_length=300)
