"""
Reference Data Models
Fish species, age classes and mandatory water bodies
"""
from sqlalchemy import Column, String, Integer

from fishstocking.core.database import Base
from .common import AuditMixin


class FishType(AuditMixin, Base):
    """Fish species"""
    __tablename__ = "fish_types"

    id = Column(Integer, primary_key=True, index=True)
    label = Column(String(100), nullable=False)
    priority = Column(Integer, nullable=False, default=0)


class FishAge(AuditMixin, Base):
    """Fish age class (fry, yearling, ...)"""
    __tablename__ = "fish_ages"

    id = Column(Integer, primary_key=True, index=True)
    label = Column(String(100), nullable=False)
    priority = Column(Integer, nullable=False, default=0)


class MandatoryLocation(AuditMixin, Base):
    """Water body where stocking is mandatory regardless of its area"""
    __tablename__ = "mandatory_locations"

    id = Column(Integer, primary_key=True, index=True)
    cadastral_id = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=True)
