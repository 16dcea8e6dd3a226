"""
Settings Model
Single-row table with the lifecycle durations
"""
from sqlalchemy import Column, Integer

from fishstocking.core.database import Base
from .common import AuditMixin


class Setting(AuditMixin, Base):
    """Lifecycle durations, in days"""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)
    min_time_till_stocking = Column(Integer, nullable=False)
    max_time_for_registration = Column(Integer, nullable=False)
