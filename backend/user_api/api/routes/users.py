"""User management endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from user_api.core.dependencies import get_current_user, get_token_signer, get_user_repository
from user_api.core.security import TokenSigner
from user_api.models.user import UserRecord
from user_api.repositories.users import UserRepository
from user_api.schemas.auth import LoginData, LoginRequest, LoginResponse
from user_api.schemas.common import ErrorResponse
from user_api.schemas.user import (
    UserCreate,
    UserData,
    UserListData,
    UserListResponse,
    UserRead,
    UserResponse,
    UserUpdate,
)
from user_api.services import users as user_service

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    },
)


def _user_response(user: dict) -> UserResponse:
    return UserResponse(data=UserData(user=UserRead.model_validate(user)))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    repo: UserRepository = Depends(get_user_repository),
) -> UserResponse:
    user = await user_service.register_user(repo, payload)
    return _user_response(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    repo: UserRepository = Depends(get_user_repository),
    signer: TokenSigner = Depends(get_token_signer),
) -> LoginResponse:
    result = await user_service.login_user(repo, signer, payload.email, payload.password)
    return LoginResponse(data=LoginData.model_validate(result))


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    repo: UserRepository = Depends(get_user_repository),
    _: UserRecord = Depends(get_current_user),
) -> UserListResponse:
    result = await user_service.list_users(repo, page=page, limit=limit)
    return UserListResponse(data=UserListData.model_validate(result))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    repo: UserRepository = Depends(get_user_repository),
    _: UserRecord = Depends(get_current_user),
) -> UserResponse:
    user = await user_service.get_user(repo, user_id)
    return _user_response(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    repo: UserRepository = Depends(get_user_repository),
    _: UserRecord = Depends(get_current_user),
) -> UserResponse:
    user = await user_service.update_user(repo, user_id, payload)
    return _user_response(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    repo: UserRepository = Depends(get_user_repository),
    _: UserRecord = Depends(get_current_user),
) -> Response:
    await user_service.delete_user(repo, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
