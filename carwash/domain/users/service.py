"""User service - Registration, login, profiles and admin user management"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...config import MAX_PAGE_LIMIT
from ...models import User
from ...security_utils import create_access_token, hash_password_bcrypt, verify_password_bcrypt
from ...shared.enums import Role
from ...shared.errors import Conflict, Forbidden, NotAuthenticated, NotFound, ValidationFailed
from .repository import UserRepository
from .schemas import (
    AdminUserCreate,
    AdminUserUpdate,
    LocationUpdate,
    ProfileUpdate,
    RegisterRequest,
)

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def _create(self, data: RegisterRequest, **extra) -> User:
        if self.repo.get_by_email(self.db, data.email):
            raise Conflict("Email is already registered", code="DUPLICATE_EMAIL")

        return self.repo.create_user(
            self.db,
            email=data.email,
            password_hash=hash_password_bcrypt(data.password),
            name=data.name.strip(),
            phone=data.phone,
            address=data.address,
            role=Role(data.role).value,
            **extra,
        )

    # ============================================================================
    # AUTHENTICATION
    # ============================================================================

    def register(self, data: RegisterRequest) -> tuple[User, str]:
        """Self-service sign-up for clients and washers"""
        if data.role == Role.ADMIN:
            logger.warning(f"🚫 Attempt to self-register as ADMIN: {data.email}")
            raise Forbidden("Admin accounts cannot be self-registered")

        user = self._create(data)
        logger.info(f"✅ Registered {user.role} {user.id}")
        return user, create_access_token(user.id, user.role)

    def authenticate(self, email: str, password: str) -> tuple[User, str]:
        user = self.repo.get_by_email(self.db, email)
        if not user or not verify_password_bcrypt(password, user.password_hash):
            logger.warning(f"⚠️ Failed login for {email}")
            raise NotAuthenticated("Invalid email or password")
        if not user.is_active:
            raise NotAuthenticated("Account is deactivated")

        logger.info(f"🔑 User {user.id} logged in")
        return user, create_access_token(user.id, user.role)

    # ============================================================================
    # PROFILE
    # ============================================================================

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        updates = {"name": data.name, "phone": data.phone, "address": data.address}

        if data.newPassword is not None:
            if not data.currentPassword or not verify_password_bcrypt(
                data.currentPassword, user.password_hash
            ):
                raise ValidationFailed("Current password is incorrect")
            updates["password_hash"] = hash_password_bcrypt(data.newPassword)

        return self.repo.update_user(self.db, user, **updates)

    def update_location(self, user: User, data: LocationUpdate) -> User:
        """Store the washer's last known coordinates"""
        if user.role_enum != Role.WASHER:
            raise ValidationFailed("Only washers can update their location")

        user.latitude = float(data.latitude)
        user.longitude = float(data.longitude)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"📍 Washer {user.id} location updated")
        return user

    # ============================================================================
    # ADMIN
    # ============================================================================

    def list_users(
        self, role: Optional[Role], search: Optional[str], limit: int, offset: int
    ) -> tuple[list[User], int]:
        return self.repo.list_users(
            self.db,
            role=role.value if role else None,
            search=search,
            limit=min(limit, MAX_PAGE_LIMIT),
            offset=offset,
        )

    def get_user(self, user_id: str) -> User:
        user = self.repo.get_by_id(self.db, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def admin_create(self, data: AdminUserCreate) -> User:
        extra = {}
        if data.latitude is not None and data.longitude is not None:
            extra = {"latitude": float(data.latitude), "longitude": float(data.longitude)}
        user = self._create(data, **extra)
        logger.info(f"✅ Admin created {user.role} {user.id}")
        return user

    def admin_update(self, user_id: str, data: AdminUserUpdate) -> User:
        user = self.get_user(user_id)
        return self.repo.update_user(
            self.db,
            user,
            name=data.name,
            phone=data.phone,
            address=data.address,
            is_active=data.isActive,
            is_available=data.isAvailable,
        )

    def deactivate(self, user_id: str, admin: User) -> User:
        if user_id == admin.id:
            raise ValidationFailed("You cannot deactivate your own account")
        user = self.get_user(user_id)
        user.is_active = False
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"🗑️ User {user.id} deactivated by admin {admin.id}")
        return user
