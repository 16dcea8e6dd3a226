"""
Fish Stocking SQLAlchemy Models
"""

# Import all models to ensure they are registered with SQLAlchemy
from .parties import Tenant, User, TenantUser, NotificationSubscription, UserType, TenantUserRole
from .reference import FishType, FishAge, MandatoryLocation
from .settings import Setting
from .stocking import FishStocking, FishBatch

__all__ = [
    "Tenant", "User", "TenantUser", "NotificationSubscription", "UserType", "TenantUserRole",
    "FishType", "FishAge", "MandatoryLocation",
    "Setting",
    "FishStocking", "FishBatch",
]
