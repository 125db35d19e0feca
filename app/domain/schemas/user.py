"""Pydantic schemas for User and Staff."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

UserRole = Literal["citizen", "staff", "admin"]


class UserCreate(BaseModel):
    name: Optional[str] = None
    email: str = Field(min_length=3, max_length=255)
    phone: Optional[str] = None
    photo: Optional[str] = None


class StaffCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3, max_length=255)
    phone: Optional[str] = None
    photo: Optional[str] = None
    password: str = ""


class UserRead(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    photo: Optional[str] = None
    role: str
    is_premium: bool
    is_blocked: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
