"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from user_api.core.config import Settings
from user_api.core.errors import Forbidden, Unauthenticated
from user_api.core.security import TokenSigner
from user_api.db.session import StorageHandle
from user_api.models.user import Role, UserRecord
from user_api.repositories.users import UserRepository

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageHandle:
    return request.app.state.storage


def get_user_repository(storage: StorageHandle = Depends(get_storage)) -> UserRepository:
    return UserRepository(storage)


def get_token_signer(settings: Settings = Depends(get_app_settings)) -> TokenSigner:
    return TokenSigner(settings)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    repo: UserRepository = Depends(get_user_repository),
    signer: TokenSigner = Depends(get_token_signer),
) -> UserRecord:
    """Resolve the bearer token to a live user and attach it to ``request.state``."""

    if credentials is None:
        raise Unauthenticated("You are not logged in. Please log in to get access.")

    try:
        payload = signer.verify(credentials.credentials)
    except ValueError as exc:
        raise Unauthenticated("Invalid token. Please log in again.") from exc

    user = await repo.find_by_id(str(payload["sub"]))
    if not user:
        raise Unauthenticated("The user belonging to this token no longer exists.")

    user = user.without_secret()
    request.state.user = user
    return user


def require_roles(*roles: Role | str) -> Callable[..., Awaitable[UserRecord]]:
    """Build a dependency that only admits users holding one of ``roles``."""

    allowed = {Role(role) for role in roles}

    async def _require_role(user: UserRecord = Depends(get_current_user)) -> UserRecord:
        if user.role not in allowed:
            raise Forbidden()
        return user

    return _require_role
