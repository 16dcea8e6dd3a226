"""
API Dependencies
Common dependencies for API endpoints
"""
from datetime import datetime
from typing import Callable

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from fishstocking.core.database import get_db
from fishstocking.core.exceptions import ErrorCode, InsufficientPermissionsError
from fishstocking.core.security import Actor, decode_access_token
from fishstocking.models.parties import TenantUser, User, UserType
from fishstocking.services.notifications import NotificationDispatcher

# Security scheme
security = HTTPBearer()


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Actor:
    """
    Resolve the caller from the bearer token.

    Registry users must exist, and a tenant profile must be one the user
    belongs to.
    """
    actor = decode_access_token(credentials.credentials)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if actor.is_user:
        user = db.query(User).filter(User.id == actor.user_id, User.deleted_at.is_(None)).first()
        if user is None or user.type != UserType.USER.value:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if actor.profile is not None:
            membership = db.query(TenantUser).filter(
                TenantUser.tenant_id == actor.profile,
                TenantUser.user_id == actor.user_id,
                TenantUser.deleted_at.is_(None),
            ).first()
            if membership is None:
                raise InsufficientPermissionsError(ErrorCode.NO_RIGHTS, "Not a member of this tenant")

    return actor


def get_clock() -> Callable[[], datetime]:
    """Source of the current local time"""
    return datetime.now


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()


def get_pagination_params(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000)
) -> dict:
    """
    Common pagination parameters.
    """
    return {"skip": skip, "limit": limit}
