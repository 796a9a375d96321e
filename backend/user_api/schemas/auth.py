"""Authentication-related schemas."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from .user import UserRead


class LoginRequest(BaseModel):
    # Unvalidated so every credential failure reports the same 401.
    email: str
    password: str


class LoginData(BaseModel):
    user: UserRead
    token: str


class LoginResponse(BaseModel):
    status: Literal["success"] = "success"
    data: LoginData
