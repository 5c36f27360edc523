# user_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional
from datetime import datetime

from models.models import UserRole


# ---------------------------
# Auth
# ---------------------------
class UserLogin(BaseModel):
    email: EmailStr
    password: str


class AcceptInvitation(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: "UserRead"


# ---------------------------
# Read / Update
# ---------------------------
class UserRead(BaseModel):
    id: int
    email: str
    role: str
    is_active: bool = True
    name: Optional[str] = None
    business_name: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar_path: Optional[str] = None
    last_seen_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=150)
    business_name: Optional[str] = Field(default=None, max_length=200)
    position: Optional[str] = Field(default=None, max_length=150)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)


class ProfileRead(UserRead):
    avatar_url: Optional[str] = None


TokenResponse.model_rebuild()

__all__ = ["UserRole", "UserLogin", "AcceptInvitation", "TokenResponse", "UserRead", "ProfileUpdate", "ProfileRead"]
