"""Pydantic schemas for user operations."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints

from user_api.models.user import Role

UserName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
Password = Annotated[str, StringConstraints(min_length=8, max_length=128)]


def _check_email_shape(value: str) -> str:
    """Reject malformed addresses but keep the submitted string as is.

    Emails are matched exactly, so the normalized form is discarded.
    """

    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"Please provide a valid email: {exc}") from exc
    return value


Email = Annotated[str, AfterValidator(_check_email_shape)]


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: UserName
    email: Email
    password: Password
    role: Role = Role.USER


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: UserName | None = None
    email: Email | None = None
    password: Password | None = None
    role: Role | None = None


class UserRead(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class UserData(BaseModel):
    user: UserRead


class UserListData(BaseModel):
    users: list[UserRead]
    pagination: Pagination


class UserResponse(BaseModel):
    status: Literal["success"] = "success"
    data: UserData


class UserListResponse(BaseModel):
    status: Literal["success"] = "success"
    data: UserListData
