"""Canonical user record shared by every storage backend."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


def _new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRecord(BaseModel):
    """Application user with hashed password and role.

    ``password_hash`` is ``None`` on records fetched without their secret.
    ``version`` is internal bookkeeping and never leaves the service layer.
    """

    id: str = Field(default_factory=_new_id)
    name: str
    email: str
    password_hash: str | None = None
    role: Role = Role.USER
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 0

    def without_secret(self) -> "UserRecord":
        return self.model_copy(update={"password_hash": None})
