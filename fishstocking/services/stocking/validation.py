"""
Fish Stocking Field Validation
Reference checks shared by the lifecycle operations
"""
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from fishstocking.core.exceptions import ErrorCode, ValidationError
from fishstocking.models.parties import Tenant, TenantUser, User, UserType
from fishstocking.services.reference_data import ReferenceDataService
from fishstocking.services.stocking.status import StockingSettings, is_time_before_review

GROWN = "GROWN"
CAUGHT = "CAUGHT"


class StockingValidator:
    """Validates references and field combinations before anything is written"""

    def __init__(self, db: Session):
        self.db = db
        self.reference_data = ReferenceDataService(db)

    def validate_event_time(self, event_time: datetime, settings: StockingSettings, now: datetime):
        """The event must be at least min_time_till_stocking days away"""
        if not is_time_before_review(event_time, settings, now):
            raise ValidationError(
                ErrorCode.INVALID_EVENT_TIME,
                f"Fish stocking must be registered at least "
                f"{settings.min_time_till_stocking} day(s) in advance"
            )

    def validate_fish_data(self, batches: Iterable[Dict[str, Any]]):
        """Every referenced fish type and age must exist"""
        batches = list(batches)
        type_ids = [b["fish_type_id"] for b in batches if b.get("fish_type_id") is not None]
        age_ids = [b["fish_age_id"] for b in batches if b.get("fish_age_id") is not None]

        missing_types = self.reference_data.missing_fish_types(type_ids)
        if missing_types:
            raise ValidationError(
                ErrorCode.INVALID_FISH_TYPE, f"Invalid fish type: {sorted(missing_types)}"
            )
        missing_ages = self.reference_data.missing_fish_ages(age_ids)
        if missing_ages:
            raise ValidationError(
                ErrorCode.INVALID_FISH_AGE, f"Invalid fish age: {sorted(missing_ages)}"
            )

    def validate_assigned_to(self, assigned_to: int, tenant_id: Optional[int]):
        """
        Tenant events are assigned to members of the tenant; freelancer events
        to an existing freelancer.
        """
        if tenant_id is not None:
            membership = self.db.query(TenantUser).filter(
                TenantUser.tenant_id == tenant_id,
                TenantUser.user_id == assigned_to,
                TenantUser.deleted_at.is_(None),
            ).first()
            if membership is None:
                raise ValidationError(ErrorCode.INVALID_ASSIGNED_TO, 'Invalid "assigned_to" id')
            return

        user = self._live_user(assigned_to)
        if user is None or not user.is_freelancer:
            raise ValidationError(ErrorCode.INVALID_ASSIGNED_TO, 'Invalid "assigned_to" id')

    def validate_stocking_customer(self, stocking_customer_id: Optional[int]):
        if stocking_customer_id is not None and self._live_tenant(stocking_customer_id) is None:
            raise ValidationError(ErrorCode.INVALID_STOCKING_CUSTOMER, "Invalid stocking customer")

    def validate_tenant(self, tenant_id: Optional[int]):
        if tenant_id is not None and self._live_tenant(tenant_id) is None:
            raise ValidationError(ErrorCode.INVALID_TENANT, "Invalid tenant")

    def validate_canceled_at(self, canceled_at: datetime, event_time: datetime):
        """A cancellation has to precede the event"""
        if canceled_at >= event_time:
            raise ValidationError(ErrorCode.INVALID_CANCELED_AT, 'Invalid "canceled_at" time')

    def resolve_fish_origin(
        self, changes: Dict[str, Any], existing: Any = None
    ) -> Tuple[str, Optional[str], Optional[Dict[str, Any]]]:
        """
        Merge submitted origin fields over the stored ones

        GROWN fish need a company name and no reservoir; CAUGHT fish need a
        reservoir and no company name.

        Returns:
            (fish_origin, fish_origin_company_name, fish_origin_reservoir)
        """
        def pick(name):
            if name in changes:
                return changes[name]
            return getattr(existing, name, None) if existing is not None else None

        origin = pick("fish_origin")
        origin_changed = (
            existing is not None
            and "fish_origin" in changes
            and changes["fish_origin"] != existing.fish_origin
        )
        company_name = pick("fish_origin_company_name")
        reservoir = pick("fish_origin_reservoir")

        # Switching origin drops the stored companion of the old origin
        if origin_changed:
            if origin == GROWN and "fish_origin_reservoir" not in changes:
                reservoir = None
            if origin == CAUGHT and "fish_origin_company_name" not in changes:
                company_name = None

        if origin == GROWN and company_name and not reservoir:
            return origin, company_name, None
        if origin == CAUGHT and reservoir and not company_name:
            return origin, None, reservoir
        raise ValidationError(ErrorCode.INVALID_FISH_ORIGIN, "Invalid fish origin")

    def resolve_inspector(self, inspector_id: int) -> User:
        inspector = self._live_user(inspector_id)
        if inspector is None or inspector.type != UserType.INSPECTOR.value:
            raise ValidationError(ErrorCode.INVALID_INSPECTOR, "Invalid inspector id")
        return inspector

    def _live_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()

    def _live_tenant(self, tenant_id: int) -> Optional[Tenant]:
        return self.db.query(Tenant).filter(Tenant.id == tenant_id, Tenant.deleted_at.is_(None)).first()
