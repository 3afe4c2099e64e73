import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security_utils import verify_jwt_token
from .shared.enums import Role
from .shared.errors import Forbidden, NotAuthenticated

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def resolve_user_from_token(token: Optional[str], db: Session) -> User:
    """Decode a bearer token and load the active user it names"""
    if not token:
        raise NotAuthenticated("Not authenticated. Please provide a valid Bearer token.")

    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        raise NotAuthenticated("Invalid or expired token")

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if not user:
        logger.warning(f"⚠️ Token for unknown user {payload['sub']}")
        raise NotAuthenticated("User not found")
    if not user.is_active:
        logger.warning(f"⚠️ Token for deactivated user {user.id}")
        raise NotAuthenticated("Account is deactivated")

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials if credentials else None
    return resolve_user_from_token(token, db)


def require_roles(*roles: Role):
    """
    Build a dependency that only lets the listed roles through.

    Example usage:
        @router.post("/jobs/{job_id}/accept")
        async def accept(current_user: User = Depends(require_roles(Role.WASHER))):
            ...
    """
    allowed = frozenset(roles)

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role_enum not in allowed:
            logger.warning(
                f"🚫 {current_user.role} {current_user.id} denied (requires {sorted(r.value for r in allowed)})"
            )
            raise Forbidden("You do not have permission to perform this action")
        return current_user

    return role_checker
