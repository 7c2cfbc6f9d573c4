"""Pydantic schemas for registration, login and the current user.

Registration fields are plain strings here; length, format and
uniqueness rules live in the credential store so they apply to every
caller, not just HTTP.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    password_confirmation: Optional[str] = None
    remember: bool = False


class LoginRequest(BaseModel):
    email: str
    password: str
    remember: bool = False


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    message: str
    user: UserRead


class MessageResponse(BaseModel):
    message: str


class CsrfTokenResponse(BaseModel):
    csrf_token: str
