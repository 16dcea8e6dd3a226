"""
Fish Stocking Lifecycle Service
Register, update, review, cancel, delete and administer stocking events

Every mutating operation follows the same order: load the event, check the
actor may touch it, derive the current status, check the status and field
preconditions, then write. Batch changes go through the BatchReconciler
before the status is derived again for the response. Email is never sent
here; operations return the notifications they want delivered.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from fishstocking.core.config import settings as app_settings
from fishstocking.core.exceptions import (
    ConcurrentModificationError, ErrorCode, FishStockingException, InsufficientPermissionsError,
    NotFoundError, ValidationError,
)
from fishstocking.core.security import Actor
from fishstocking.models.parties import NotificationSubscription
from fishstocking.models.stocking import FishBatch, FishStocking
from fishstocking.schemas.stocking import (
    FishStockingAdminUpdate, FishStockingRegister, FishStockingRegistrationUpdate, FishStockingReview
)
from fishstocking.services.geometry import coordinates_to_point, parse_geometry
from fishstocking.services.notifications import (
    NotificationKind, PendingNotification, StockingSummary
)
from fishstocking.services.reference_data import ReferenceDataService
from fishstocking.services.settings_service import SettingsService
from fishstocking.services.stocking.authorization import (
    admin_covers, can_view, ensure_admin, ensure_can_delete, ensure_can_modify, ensure_can_register,
    scope_query,
)
from fishstocking.services.stocking.batches import BatchMode, BatchReconciler
from fishstocking.services.stocking.inspector import InspectorSnapshot
from fishstocking.services.stocking.status import (
    FishStockingStatus, derive_status, is_deletable
)
from fishstocking.services.stocking.validation import StockingValidator

logger = logging.getLogger(__name__)

# Payload field -> FishStocking column
COLUMN_NAMES = {
    "assigned_to": "assigned_to_id",
    "stocking_customer": "stocking_customer_id",
    "tenant": "tenant_id",
}

ORIGIN_FIELDS = ("fish_origin", "fish_origin_company_name", "fish_origin_reservoir")

# Columns that can never be cleared through an update
REQUIRED_FIELDS = ("event_time", "location", "fish_origin", "assigned_to", "geom")

CANCELABLE = (
    FishStockingStatus.UPCOMING,
    FishStockingStatus.ONGOING,
    FishStockingStatus.NOT_FINISHED,
)


@dataclass
class OperationResult:
    """Outcome of a lifecycle operation; stocking is None once the event is removed"""
    stocking: Optional[FishStocking]
    notifications: List[PendingNotification] = field(default_factory=list)
    removed: bool = False


class FishStockingService:
    """
    Fish stocking lifecycle operations

    clock supplies the current local time so the time windows can be
    exercised deterministically.
    """

    def __init__(self, db: Session, actor: Actor, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.actor = actor
        self.clock = clock
        self.settings_service = SettingsService(db, actor.user_id)
        self.reference_data = ReferenceDataService(db)
        self.validator = StockingValidator(db)
        self.batches = BatchReconciler(db, actor.user_id, clock)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_status(self, stocking: FishStocking) -> Optional[FishStockingStatus]:
        return derive_status(
            stocking,
            self.batches.existing_batches(stocking.id),
            self.settings_service.get_settings(),
            self.clock(),
        )

    def get(self, stocking_id: int) -> Dict[str, Any]:
        """A visible event with its status, batches and mandatory flag"""
        stocking = self._find(stocking_id)
        if stocking is None or not can_view(self.actor, stocking):
            raise NotFoundError(ErrorCode.NOT_FOUND, f"Fish stocking {stocking_id} not found")
        return self.describe(stocking)

    def list_stockings(
        self,
        statuses: Optional[Sequence[FishStockingStatus]] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Events visible to the actor, newest event first

        Returns:
            (page of described events, total matching events)
        """
        query = scope_query(
            self.db.query(FishStocking).filter(FishStocking.deleted_at.is_(None)), self.actor
        )
        stockings = query.order_by(FishStocking.event_time.desc(), FishStocking.id.desc()).all()

        batches_by_stocking = self._batches_by_stocking([s.id for s in stockings])
        settings = self.settings_service.get_settings()
        now = self.clock()

        rows = []
        for stocking in stockings:
            batches = batches_by_stocking.get(stocking.id, [])
            status = derive_status(stocking, batches, settings, now)
            if statuses and status not in statuses:
                continue
            rows.append((stocking, batches, status))

        page = rows[skip:skip + limit]
        mandatory = self.reference_data.mandatory_cadastral_ids(
            (s.location or {}).get("cadastral_id") for s, _, _ in page
        )
        items = [
            self._describe(stocking, batches, status, mandatory)
            for stocking, batches, status in page
        ]
        return items, len(rows)

    def describe(self, stocking: FishStocking) -> Dict[str, Any]:
        batches = self.batches.existing_batches(stocking.id)
        status = derive_status(stocking, batches, self.settings_service.get_settings(), self.clock())
        mandatory = self.reference_data.mandatory_cadastral_ids(
            [(stocking.location or {}).get("cadastral_id")]
        )
        return self._describe(stocking, batches, status, mandatory)

    def recent_locations(self) -> List[Dict[str, Any]]:
        """
        Water bodies the caller registered events at, most recent first

        Scoped to the events the user created for the current profile, or as
        a freelancer when there is none. Each water body appears once, as
        recorded on its latest event.
        """
        if not self.actor.is_user:
            raise InsufficientPermissionsError(ErrorCode.NO_RIGHTS, "Only registry users have recent locations")

        if self.actor.profile is not None:
            tenant_filter = FishStocking.tenant_id == self.actor.profile
        else:
            tenant_filter = FishStocking.tenant_id.is_(None)

        query = self.db.query(FishStocking).filter(
            FishStocking.deleted_at.is_(None),
            FishStocking.created_by == self.actor.user_id,
            tenant_filter,
        ).order_by(FishStocking.event_time.desc(), FishStocking.id.desc())

        seen = set()
        locations = []
        for stocking in query:
            location = stocking.location or {}
            cadastral_id = location.get("cadastral_id")
            if cadastral_id in seen:
                continue
            seen.add(cadastral_id)
            locations.append({**location, "geom": stocking.geom})
        return locations

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    def register(self, payload: FishStockingRegister) -> OperationResult:
        """Create an event and its batches"""
        ensure_can_register(self.actor)
        settings = self.settings_service.get_settings()
        now = self.clock()

        self.validator.validate_event_time(payload.event_time, settings, now)

        tenant_id = self.actor.profile
        self.validator.validate_assigned_to(payload.assigned_to, tenant_id)

        batch_values = [batch.to_batch_values() for batch in payload.batches]
        for values in batch_values:
            values.pop("id", None)
        self.validator.validate_fish_data(batch_values)

        self.validator.validate_stocking_customer(payload.stocking_customer)

        changes = self._changes(payload)
        origin, company_name, reservoir = self.validator.resolve_fish_origin(changes)
        geom = parse_geometry(payload.geom)

        stocking = FishStocking(
            event_time=payload.event_time,
            phone=payload.phone,
            assigned_to_id=payload.assigned_to,
            tenant_id=tenant_id,
            stocking_customer_id=payload.stocking_customer,
            fish_origin=origin,
            fish_origin_company_name=company_name,
            fish_origin_reservoir=reservoir,
            geom=geom,
            created_by=self.actor.user_id,
        )
        self._set_location(stocking, changes["location"])

        with self._transaction("register"):
            self.db.add(stocking)
            self.db.flush()
            self.batches.reconcile(stocking.id, [], batch_values, BatchMode.REGISTRATION)

        logger.info(
            f"Fish stocking {stocking.id} registered by user {self.actor.user_id} "
            f"for {stocking.event_time:%Y-%m-%d}"
        )
        return OperationResult(stocking, self._subscriber_notifications(stocking, is_update=False))

    def update_registration(
        self, stocking_id: int, payload: FishStockingRegistrationUpdate
    ) -> OperationResult:
        """
        Amend a registered event

        While UPCOMING every registration field may change. While ONGOING only
        the assignee may change; any other difference is rejected.
        """
        stocking = self._load(stocking_id)
        ensure_can_modify(self.actor, stocking)

        settings = self.settings_service.get_settings()
        now = self.clock()
        existing = self.batches.existing_batches(stocking.id)
        status = derive_status(stocking, existing, settings, now)
        if status not in (FishStockingStatus.UPCOMING, FishStockingStatus.ONGOING):
            raise ValidationError(ErrorCode.INVALID_STATUS, f"Cannot update a {self._label(status)} fish stocking")

        changes = self._changes(payload)
        if changes.get("assigned_to") is not None:
            self.validator.validate_assigned_to(changes["assigned_to"], stocking.tenant_id)

        if status == FishStockingStatus.ONGOING:
            return self._update_assignee(stocking, existing, changes, now)

        if changes.get("event_time") is not None:
            self.validator.validate_event_time(changes["event_time"], settings, now)

        batch_values = None
        if payload.batches is not None:
            batch_values = self._batch_values(payload.batches)
            self.validator.validate_fish_data(batch_values)

        if "stocking_customer" in changes:
            self.validator.validate_stocking_customer(changes["stocking_customer"])

        if any(name in changes for name in ORIGIN_FIELDS):
            changes.update(zip(ORIGIN_FIELDS, self.validator.resolve_fish_origin(changes, stocking)))

        if "geom" in changes:
            changes["geom"] = parse_geometry(changes["geom"])

        with self._transaction("update", stocking.id):
            self._apply(stocking, changes, now)
            if batch_values is not None:
                self.batches.reconcile(stocking.id, existing, batch_values, BatchMode.REGISTRATION)

        logger.info(f"Fish stocking {stocking.id} registration updated by user {self.actor.user_id}")
        return OperationResult(stocking, self._subscriber_notifications(stocking, is_update=True))

    def review(self, payload: FishStockingReview) -> OperationResult:
        """Record what was actually released; only while the event is ONGOING"""
        stocking = self._load(payload.id)
        ensure_can_modify(self.actor, stocking)

        settings = self.settings_service.get_settings()
        now = self.clock()
        existing = self.batches.existing_batches(stocking.id)
        status = derive_status(stocking, existing, settings, now)
        if status != FishStockingStatus.ONGOING:
            raise ValidationError(ErrorCode.INVALID_STATUS, f"Cannot review a {self._label(status)} fish stocking")

        review_location = coordinates_to_point(
            payload.review_location.model_dump() if payload.review_location else None
        )
        changes = self._changes(payload)
        changes.pop("id", None)
        changes.pop("batches", None)
        changes["review_location"] = review_location

        with self._transaction("review", stocking.id):
            self.batches.reconcile(
                stocking.id,
                existing,
                [batch.to_batch_values() for batch in payload.batches],
                BatchMode.REVIEW,
            )
            self._apply(stocking, changes, now)
            stocking.reviewed_by_id = self.actor.user_id
            stocking.review_time = now

        logger.info(f"Fish stocking {stocking.id} reviewed by user {self.actor.user_id}")
        return OperationResult(stocking)

    def cancel(self, stocking_id: int) -> OperationResult:
        """
        Cancel an event

        An UPCOMING event has not happened yet and is removed outright;
        ONGOING and NOT_FINISHED events are stamped as canceled.
        """
        stocking = self._load(stocking_id)
        ensure_can_modify(self.actor, stocking)

        now = self.clock()
        status = derive_status(
            stocking,
            self.batches.existing_batches(stocking.id),
            self.settings_service.get_settings(),
            now,
        )
        if status not in CANCELABLE:
            raise ValidationError(ErrorCode.INVALID_STATUS, f"Cannot cancel a {self._label(status)} fish stocking")

        if status == FishStockingStatus.UPCOMING:
            with self._transaction("remove", stocking.id):
                self._remove(stocking, now)
            logger.info(f"Upcoming fish stocking {stocking.id} removed on cancel by user {self.actor.user_id}")
            return OperationResult(None, removed=True)

        with self._transaction("cancel", stocking.id):
            stocking.canceled_at = now
            self._touch(stocking, now)

        logger.info(f"Fish stocking {stocking.id} canceled by user {self.actor.user_id}")
        return OperationResult(stocking)

    def delete(self, stocking_id: int) -> OperationResult:
        """Remove an event while it is still far enough in the future"""
        stocking = self._load(stocking_id)
        ensure_can_delete(self.actor, stocking)

        now = self.clock()
        if not is_deletable(stocking.event_time, self.settings_service.get_settings(), now):
            raise ValidationError(
                ErrorCode.AFTER_PERMITTED_DELETION_TIME,
                "Fish stocking can no longer be deleted"
            )

        with self._transaction("delete", stocking.id):
            self._remove(stocking, now)

        logger.info(f"Fish stocking {stocking.id} deleted by user {self.actor.user_id}")
        return OperationResult(None, removed=True)

    def admin_update(self, stocking_id: int, payload: FishStockingAdminUpdate) -> OperationResult:
        """
        Privileged edit of any field, regardless of status

        Assigning a different inspector stores a fresh snapshot of their
        profile and notifies them.
        """
        ensure_admin(self.actor)
        stocking = self._load(stocking_id)
        if not admin_covers(self.actor, stocking):
            raise self._no_rights()

        now = self.clock()
        changes = self._changes(payload)

        if "tenant" in changes:
            self.validator.validate_tenant(changes["tenant"])
        if "stocking_customer" in changes:
            self.validator.validate_stocking_customer(changes["stocking_customer"])

        batch_values = None
        if payload.batches is not None:
            batch_values = self._batch_values(payload.batches)
            self.validator.validate_fish_data(batch_values)

        if changes.get("assigned_to") is not None:
            tenant_id = changes["tenant"] if "tenant" in changes else stocking.tenant_id
            self.validator.validate_assigned_to(changes["assigned_to"], tenant_id)

        if changes.get("canceled_at") is not None:
            event_time = changes.get("event_time") or stocking.event_time
            self.validator.validate_canceled_at(changes["canceled_at"], event_time)
        else:
            changes.pop("canceled_at", None)

        if any(name in changes for name in ORIGIN_FIELDS):
            changes.update(zip(ORIGIN_FIELDS, self.validator.resolve_fish_origin(changes, stocking)))

        if "geom" in changes:
            changes["geom"] = parse_geometry(changes["geom"])

        inspector = None
        inspector_id = changes.pop("inspector", None)
        if inspector_id is not None:
            inspector = self.validator.resolve_inspector(inspector_id)
        previous = InspectorSnapshot.from_dict(stocking.inspector)

        with self._transaction("update", stocking.id):
            if batch_values is not None:
                self.batches.reconcile(stocking.id, self.batches.existing_batches(stocking.id),
                                       batch_values, BatchMode.ADMIN)
            self._apply(stocking, changes, now)
            if inspector is not None:
                stocking.inspector = InspectorSnapshot.from_user(
                    inspector, app_settings.INSPECTOR_ORGANIZATION
                ).as_dict()

        notifications = []
        if inspector is not None and (previous is None or previous.id != inspector.id):
            logger.info(f"Inspector {inspector.id} assigned to fish stocking {stocking.id}")
            if inspector.email:
                notifications.append(PendingNotification(
                    NotificationKind.INSPECTOR_ASSIGNED,
                    (inspector.email,),
                    StockingSummary.from_stocking(stocking),
                ))

        logger.info(f"Fish stocking {stocking.id} updated by administrator {self.actor.user_id}")
        return OperationResult(stocking, notifications)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find(self, stocking_id: int) -> Optional[FishStocking]:
        return self.db.query(FishStocking).filter(
            FishStocking.id == stocking_id, FishStocking.deleted_at.is_(None)
        ).first()

    def _load(self, stocking_id: int) -> FishStocking:
        stocking = self._find(stocking_id)
        if stocking is None:
            raise ValidationError(ErrorCode.INVALID_ID, f"Invalid fish stocking id {stocking_id}")
        return stocking

    def _update_assignee(
        self,
        stocking: FishStocking,
        existing: List[FishBatch],
        changes: Dict[str, Any],
        now: datetime,
    ) -> OperationResult:
        frozen = [
            name for name in self._changed_fields(stocking, existing, changes)
            if name != "assigned_to"
        ]
        if frozen:
            raise ValidationError(
                ErrorCode.UPDATE_FAILED,
                f"Only the assignee can change while the fish stocking is ongoing "
                f"(changed: {', '.join(frozen)})"
            )

        assigned_to = changes.get("assigned_to")
        if assigned_to is not None and assigned_to != stocking.assigned_to_id:
            with self._transaction("reassign", stocking.id):
                stocking.assigned_to_id = assigned_to
                self._touch(stocking, now)
            logger.info(f"Ongoing fish stocking {stocking.id} reassigned to user {assigned_to}")
        return OperationResult(stocking)

    def _changed_fields(
        self, stocking: FishStocking, existing: List[FishBatch], changes: Dict[str, Any]
    ) -> List[str]:
        """Names of submitted fields whose value differs from the stored one"""
        changed = []
        for name, value in changes.items():
            if name == "batches":
                if value is not None and self._batch_key(value) != self._batch_key(
                    [self._stored_batch(b) for b in existing]
                ):
                    changed.append(name)
                continue
            if name == "geom":
                if value is not None and parse_geometry(value) != stocking.geom:
                    changed.append(name)
                continue
            if name in REQUIRED_FIELDS and value is None:
                continue
            if getattr(stocking, COLUMN_NAMES.get(name, name)) != value:
                changed.append(name)
        return changed

    @staticmethod
    def _stored_batch(batch: FishBatch) -> Dict[str, Any]:
        return {
            "id": batch.id,
            "fish_type": batch.fish_type_id,
            "fish_age": batch.fish_age_id,
            "amount": batch.amount,
            "weight": batch.weight,
        }

    @staticmethod
    def _stored_batch_response(batch: FishBatch) -> Dict[str, Any]:
        return {
            "id": batch.id,
            "fish_type_id": batch.fish_type_id,
            "fish_age_id": batch.fish_age_id,
            "amount": batch.amount,
            "weight": batch.weight,
            "review_amount": batch.review_amount,
            "review_weight": batch.review_weight,
        }

    @staticmethod
    def _batch_key(batches: Iterable[Dict[str, Any]]):
        return sorted(
            (b.get("id") or 0, b.get("fish_type"), b.get("fish_age"), b.get("amount"), b.get("weight"))
            for b in batches
        )

    @staticmethod
    def _batch_values(batches) -> List[Dict[str, Any]]:
        if not batches:
            raise ValidationError(ErrorCode.INVALID_BATCH_DATA, "At least one batch is required")
        return [batch.to_batch_values() for batch in batches]

    @staticmethod
    def _changes(payload) -> Dict[str, Any]:
        """Fields the caller actually sent, with enums flattened to their values"""
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("fish_origin") is not None:
            changes["fish_origin"] = getattr(changes["fish_origin"], "value", changes["fish_origin"])
        return changes

    def _apply(self, stocking: FishStocking, changes: Dict[str, Any], now: datetime):
        for name, value in changes.items():
            if name == "batches":
                continue
            if name in REQUIRED_FIELDS and value is None:
                continue
            if name == "location":
                self._set_location(stocking, value)
                continue
            setattr(stocking, COLUMN_NAMES.get(name, name), value)
        self._touch(stocking, now)

    @staticmethod
    def _set_location(stocking: FishStocking, location: Dict[str, Any]):
        stocking.location = location
        stocking.municipality_id = (location.get("municipality") or {}).get("id")

    def _touch(self, stocking: FishStocking, now: datetime):
        stocking.updated_at = now
        stocking.updated_by = self.actor.user_id

    def _remove(self, stocking: FishStocking, now: datetime):
        for batch in self.batches.existing_batches(stocking.id):
            batch.mark_deleted(now, self.actor.user_id)
        stocking.mark_deleted(now, self.actor.user_id)
        self._touch(stocking, now)

    @contextmanager
    def _transaction(self, action: str, stocking_id: Optional[int] = None):
        """Commit the block, or roll back everything it wrote"""
        try:
            yield
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            logger.warning(f"Concurrent modification while trying to {action} fish stocking {stocking_id}")
            raise ConcurrentModificationError(
                ErrorCode.CONCURRENT_MODIFICATION,
                f"Fish stocking {stocking_id} was changed by another request"
            ) from e
        except FishStockingException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to {action} fish stocking {stocking_id}: {e}")
            raise

    def _subscriber_notifications(self, stocking: FishStocking, is_update: bool) -> List[PendingNotification]:
        recipients = self._recipients_for(stocking)
        if not recipients:
            return []
        kind = NotificationKind.STOCKING_UPDATED if is_update else NotificationKind.STOCKING_CREATED
        return [PendingNotification(kind, recipients, StockingSummary.from_stocking(stocking))]

    def _recipients_for(self, stocking: FishStocking) -> Tuple[str, ...]:
        """Subscribers of the event's municipality and of all municipalities"""
        query = self.db.query(NotificationSubscription.email).filter(
            (NotificationSubscription.municipality_id == stocking.municipality_id)
            | NotificationSubscription.municipality_id.is_(None)
        )
        return tuple(sorted({row.email for row in query}))

    def _batches_by_stocking(self, stocking_ids: List[int]) -> Dict[int, List[FishBatch]]:
        grouped: Dict[int, List[FishBatch]] = {}
        if not stocking_ids:
            return grouped
        rows = (
            self.db.query(FishBatch)
            .filter(FishBatch.fish_stocking_id.in_(stocking_ids), FishBatch.deleted_at.is_(None))
            .order_by(FishBatch.id)
        )
        for batch in rows:
            grouped.setdefault(batch.fish_stocking_id, []).append(batch)
        return grouped

    @staticmethod
    def _is_mandatory(stocking: FishStocking, mandatory_ids) -> bool:
        location = stocking.location or {}
        area = location.get("area") or 0
        return area > app_settings.MANDATORY_AREA_THRESHOLD or location.get("cadastral_id") in mandatory_ids

    def _describe(
        self,
        stocking: FishStocking,
        batches: List[FishBatch],
        status: Optional[FishStockingStatus],
        mandatory_ids,
    ) -> Dict[str, Any]:
        return {
            "id": stocking.id,
            "status": status,
            "event_time": stocking.event_time,
            "review_time": stocking.review_time,
            "canceled_at": stocking.canceled_at,
            "fish_origin": stocking.fish_origin,
            "fish_origin_company_name": stocking.fish_origin_company_name,
            "fish_origin_reservoir": stocking.fish_origin_reservoir,
            "tenant_id": stocking.tenant_id,
            "stocking_customer_id": stocking.stocking_customer_id,
            "assigned_to_id": stocking.assigned_to_id,
            "reviewed_by_id": stocking.reviewed_by_id,
            "created_by": stocking.created_by,
            "phone": stocking.phone,
            "inspector": stocking.inspector,
            "location": stocking.location,
            "geom": stocking.geom,
            "review_location": stocking.review_location,
            "signatures": stocking.signatures,
            "waybill_no": stocking.waybill_no,
            "veterinary_approval_no": stocking.veterinary_approval_no,
            "veterinary_approval_order_no": stocking.veterinary_approval_order_no,
            "container_water_temp": stocking.container_water_temp,
            "water_temp": stocking.water_temp,
            "comment": stocking.comment,
            "mandatory": self._is_mandatory(stocking, mandatory_ids),
            "batches": [self._stored_batch_response(b) for b in batches],
        }

    @staticmethod
    def _label(status: Optional[FishStockingStatus]) -> str:
        return status.value.lower().replace("_", " ") if status else "undetermined"

    @staticmethod
    def _no_rights() -> InsufficientPermissionsError:
        return InsufficientPermissionsError(ErrorCode.NO_RIGHTS, "Fish stocking is outside your municipalities")
