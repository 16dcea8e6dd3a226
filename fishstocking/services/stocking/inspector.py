"""
Inspector snapshot
Point-in-time copy of an inspector stored on the stocking event
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from fishstocking.models.parties import User


@dataclass(frozen=True)
class InspectorSnapshot:
    """
    Copied from the inspector's profile when they are assigned.

    Later profile edits do not reach events that were already assigned.
    """
    id: int
    first_name: str
    last_name: str
    email: Optional[str]
    phone: Optional[str]
    organization: str

    @classmethod
    def from_user(cls, user: User, organization: str) -> "InspectorSnapshot":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            phone=user.phone,
            organization=organization,
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["InspectorSnapshot"]:
        if not data:
            return None
        return cls(**{name: data.get(name) for name in cls.__dataclass_fields__})

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
