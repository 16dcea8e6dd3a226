"""
Shared model columns
Audit and soft-delete columns carried by every mutable table
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer


class AuditMixin:
    """Created/updated/deleted stamps; rows with deleted_at set are removed"""

    created_at = Column(DateTime, default=datetime.now, nullable=False)
    created_by = Column(Integer, nullable=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    updated_by = Column(Integer, nullable=True)
    deleted_at = Column(DateTime, nullable=True, index=True)
    deleted_by = Column(Integer, nullable=True)

    def mark_deleted(self, when: datetime, user_id=None):
        self.deleted_at = when
        self.deleted_by = user_id
