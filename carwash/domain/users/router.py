"""User router - authentication, profile and admin user endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...config import DEFAULT_PAGE_LIMIT
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from ...shared.enums import Role
from .schemas import (
    AdminUserCreate,
    AdminUserUpdate,
    LocationUpdate,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
    UserListResponse,
    UserResponse,
    user_response,
)
from .service import UserService

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["Auth"])
router = APIRouter(prefix="/users", tags=["Users"])

register_limiter = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="register")
login_limiter = create_rate_limiter(limit=10, window_seconds=60, key_prefix="login")


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


# ============================================================================
# AUTHENTICATION
# ============================================================================


@auth_router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    _: None = Depends(register_limiter),
    service: UserService = Depends(get_user_service),
):
    user, token = service.register(data)
    return TokenResponse(access_token=token, user=user_response(user))


@auth_router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    _: None = Depends(login_limiter),
    service: UserService = Depends(get_user_service),
):
    user, token = service.authenticate(data.email, data.password)
    return TokenResponse(access_token=token, user=user_response(user))


# ============================================================================
# PROFILE
# ============================================================================


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return user_response(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return user_response(service.update_profile(current_user, data))


@router.post("/me/location", response_model=UserResponse)
async def update_location(
    data: LocationUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Washer reports current coordinates"""
    return user_response(service.update_location(current_user, data))


# ============================================================================
# ADMIN
# ============================================================================


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[Role] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    _: User = Depends(require_roles(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    users, total = service.list_users(role, search, limit, offset)
    return UserListResponse(users=[user_response(u) for u in users], total=total)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: AdminUserCreate,
    _: User = Depends(require_roles(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    return user_response(service.admin_create(data))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    _: User = Depends(require_roles(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    return user_response(service.get_user(user_id))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: AdminUserUpdate,
    _: User = Depends(require_roles(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    return user_response(service.admin_update(user_id, data))


@router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: str,
    current_user: User = Depends(require_roles(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    """Soft delete: the account is deactivated, history is kept"""
    return user_response(service.deactivate(user_id, current_user))
