"""User service functions for CRUD and authentication."""
from __future__ import annotations

import math
from typing import Any, Mapping

from pydantic import BaseModel

from user_api.core.errors import Conflict, NotFound, Unauthenticated
from user_api.core.security import TokenSigner
from user_api.repositories.users import UserRepository
from user_api.schemas.user import UserCreate, UserUpdate

INVALID_CREDENTIALS = "Invalid email or password"

# Fields that never leave the service layer.
_HIDDEN_FIELDS = frozenset({"password", "password_hash", "passwordHash", "version", "__v"})


def sanitize_user(user: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``user`` without secrets or internal metadata."""

    data = user.model_dump() if isinstance(user, BaseModel) else dict(user)
    return {key: value for key, value in data.items() if key not in _HIDDEN_FIELDS}


async def register_user(repo: UserRepository, user_in: UserCreate) -> dict[str, Any]:
    existing = await repo.find_by_email(user_in.email)
    if existing:
        raise Conflict("Email already in use")
    user = await repo.create(user_in.model_dump())
    return sanitize_user(user)


async def login_user(repo: UserRepository, signer: TokenSigner, email: str, password: str) -> dict[str, Any]:
    user = await repo.find_by_email(email, include_secret=True)
    if not user:
        raise Unauthenticated(INVALID_CREDENTIALS)
    if not await repo.verify_password(user, password):
        raise Unauthenticated(INVALID_CREDENTIALS)
    return {"user": sanitize_user(user), "token": signer.issue(user.id)}


async def list_users(repo: UserRepository, page: int = 1, limit: int = 10) -> dict[str, Any]:
    users = await repo.find_all({}, page=page, limit=limit)
    total = await repo.count({})
    return {
        "users": [sanitize_user(user) for user in users],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit),
        },
    }


async def get_user(repo: UserRepository, user_id: str) -> dict[str, Any]:
    user = await repo.find_by_id(user_id)
    if not user:
        raise NotFound("User not found")
    return sanitize_user(user)


async def update_user(repo: UserRepository, user_id: str, patch: UserUpdate) -> dict[str, Any]:
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in changes:
        existing = await repo.find_by_email(changes["email"])
        if existing and existing.id != user_id:
            raise Conflict("Email already in use")
    user = await repo.update(user_id, changes)
    if not user:
        raise NotFound("User not found")
    return sanitize_user(user)


async def delete_user(repo: UserRepository, user_id: str) -> None:
    user = await repo.delete(user_id)
    if not user:
        raise NotFound("User not found")
