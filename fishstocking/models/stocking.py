"""
Fish Stocking Models
Stocking events and their fish batch line items
"""
from sqlalchemy import (
    Column, String, Integer, Float, DateTime, Text, JSON,
    ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship

from fishstocking.core.database import Base
from .common import AuditMixin


class FishStocking(AuditMixin, Base):
    """
    Fish Stocking Event

    One planned or executed release of fish into a water body. The lifecycle
    status is never stored; it is derived from the timestamps here and the
    review state of the event's batches.
    """
    __tablename__ = "fish_stockings"
    __table_args__ = (
        CheckConstraint(
            "fish_origin IN ('GROWN', 'CAUGHT')", name="fish_origin_values"
        ),
        Index("ix_fish_stockings_municipality_event", "municipality_id", "event_time"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Temporal
    event_time = Column(DateTime, nullable=False, doc="Planned stocking date and time")
    review_time = Column(DateTime, nullable=True, doc="Set when the review is submitted")
    canceled_at = Column(DateTime, nullable=True, doc="Set when the event is canceled")

    # Fish origin; exactly one companion field is populated
    fish_origin = Column(String(10), nullable=False, doc="GROWN or CAUGHT")
    fish_origin_company_name = Column(String(255), nullable=True)
    fish_origin_reservoir = Column(JSON, nullable=True, doc="Water body fish were caught in")

    # Parties
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=True, index=True)
    stocking_customer_id = Column(Integer, ForeignKey("tenants.id"), nullable=True, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_by_id = Column(Integer, nullable=True)
    phone = Column(String(30), nullable=True)

    # Point-in-time copy of the assigned inspector, never re-synced
    inspector = Column(JSON, nullable=True)

    # Location
    location = Column(JSON, nullable=False, doc="Water body descriptor")
    municipality_id = Column(Integer, nullable=True, index=True, doc="Copied from location")
    geom = Column(JSON, nullable=True, doc="GeoJSON geometry of the stocking place")
    review_location = Column(JSON, nullable=True, doc="GeoJSON point recorded at review")

    # Review artifacts
    signatures = Column(JSON, nullable=True)
    waybill_no = Column(String(100), nullable=True)
    veterinary_approval_no = Column(String(100), nullable=True)
    veterinary_approval_order_no = Column(String(100), nullable=True)
    container_water_temp = Column(Float, nullable=True)
    water_temp = Column(Float, nullable=True)
    comment = Column(Text, nullable=True)

    # Optimistic concurrency
    version = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    tenant = relationship("Tenant", foreign_keys=[tenant_id])
    stocking_customer = relationship("Tenant", foreign_keys=[stocking_customer_id])
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])

    def __repr__(self):
        return f"<FishStocking(id={self.id}, event_time={self.event_time})>"


class FishBatch(AuditMixin, Base):
    """
    Fish Batch

    A single species/age line of a stocking event with its planned quantity
    and, once reviewed, the quantity actually released.
    """
    __tablename__ = "fish_batches"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="amount_non_negative"),
        CheckConstraint("weight IS NULL OR weight >= 0", name="weight_non_negative"),
        CheckConstraint(
            "review_amount IS NULL OR review_amount >= 0", name="review_amount_non_negative"
        ),
        CheckConstraint(
            "review_weight IS NULL OR review_weight >= 0", name="review_weight_non_negative"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    fish_stocking_id = Column(
        Integer, ForeignKey("fish_stockings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    fish_type_id = Column(Integer, ForeignKey("fish_types.id"), nullable=False)
    fish_age_id = Column(Integer, ForeignKey("fish_ages.id"), nullable=False)

    # Planned data
    amount = Column(Integer, nullable=False, default=0)
    weight = Column(Float, nullable=True, doc="Kilograms")

    # Review data
    review_amount = Column(Integer, nullable=True)
    review_weight = Column(Float, nullable=True)

    fish_type = relationship("FishType")
    fish_age = relationship("FishAge")

    def __repr__(self):
        return f"<FishBatch(id={self.id}, fish_stocking_id={self.fish_stocking_id})>"
