"""
Security utilities
Token handling and the acting identity resolved from it
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Dict, Any, Tuple

from jose import JWTError, jwt

from fishstocking.core.config import settings


class ActorType(str, Enum):
    """Who is calling: a registry user, an administrator or an inspector"""
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"
    INSPECTOR = "INSPECTOR"


@dataclass(frozen=True)
class Actor:
    """
    Identity of the caller

    profile is the tenant the user acts for in this session; a USER without
    a profile is a freelancer. municipalities scope ADMIN and INSPECTOR
    actors.
    """
    user_id: int
    type: ActorType = ActorType.USER
    profile: Optional[int] = None
    municipalities: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def is_admin(self) -> bool:
        return self.type in (ActorType.ADMIN, ActorType.SUPER_ADMIN)

    @property
    def is_user(self) -> bool:
        return self.type == ActorType.USER

    @property
    def is_freelancer(self) -> bool:
        return self.is_user and self.profile is None


def create_access_token(actor: Actor, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token for an actor"""
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: Dict[str, Any] = {
        "sub": str(actor.user_id),
        "type": actor.type.value,
        "profile": actor.profile,
        "municipalities": list(actor.municipalities),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Actor]:
    """Verify JWT token and return the actor, or None when it is invalid"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            return None
        return Actor(
            user_id=int(user_id),
            type=ActorType(payload.get("type", ActorType.USER.value)),
            profile=payload.get("profile"),
            municipalities=tuple(int(m) for m in payload.get("municipalities") or ()),
        )
    except (JWTError, ValueError, TypeError):
        return None
