"""
Party Models
Tenants, users, tenant memberships and notification subscribers
"""
from enum import Enum

from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from fishstocking.core.database import Base
from .common import AuditMixin


class UserType(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    INSPECTOR = "INSPECTOR"


class TenantUserRole(str, Enum):
    USER = "USER"
    USER_ADMIN = "USER_ADMIN"
    OWNER = "OWNER"


class Tenant(AuditMixin, Base):
    """Organization that owns stocking events and employs users"""
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=True, unique=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)

    members = relationship("TenantUser", back_populates="tenant")


class User(AuditMixin, Base):
    """Person acting in the registry"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(30), nullable=True)
    type = Column(String(20), nullable=False, default=UserType.USER.value)
    is_freelancer = Column(Boolean, nullable=False, default=False)

    memberships = relationship("TenantUser", back_populates="user")


class TenantUser(AuditMixin, Base):
    """Membership of a user in a tenant"""
    __tablename__ = "tenant_users"
    __table_args__ = (UniqueConstraint("tenant_id", "user_id"),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=TenantUserRole.USER.value)

    tenant = relationship("Tenant", back_populates="members")
    user = relationship("User", back_populates="memberships")


class NotificationSubscription(Base):
    """Address that receives stocking emails; no municipality means all of them"""
    __tablename__ = "notification_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False)
    municipality_id = Column(Integer, nullable=True, index=True)
