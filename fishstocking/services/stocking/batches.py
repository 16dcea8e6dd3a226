"""
Fish Batch Reconciler
Applies a desired list of batches to the persisted batches of one event
"""
import logging
from datetime import datetime
from enum import Enum
from numbers import Integral, Real
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from fishstocking.core.exceptions import ErrorCode, NotFoundError, ValidationError
from fishstocking.models.stocking import FishBatch

logger = logging.getLogger(__name__)


class BatchMode(str, Enum):
    """Which batch fields a caller may write"""
    REGISTRATION = "REGISTRATION"
    REVIEW = "REVIEW"
    ADMIN = "ADMIN"


MODE_FIELDS = {
    BatchMode.REGISTRATION: ("fish_type_id", "fish_age_id", "amount", "weight"),
    BatchMode.REVIEW: ("review_amount", "review_weight"),
    BatchMode.ADMIN: (
        "fish_type_id", "fish_age_id", "amount", "weight", "review_amount", "review_weight"
    ),
}

INTEGER_FIELDS = ("fish_type_id", "fish_age_id", "amount", "review_amount")
FLOAT_FIELDS = ("weight", "review_weight")
CREATE_REQUIRED = ("fish_type_id", "fish_age_id", "amount")


def _invalid(message: str) -> ValidationError:
    return ValidationError(ErrorCode.INVALID_BATCH_DATA, message)


class BatchReconciler:
    """
    Batch reconciliation

    Desired entries carrying an id update that batch, entries without an id
    are created, and existing batches missing from the desired list are
    deleted. The whole set of changes runs inside one savepoint, so a failing
    entry leaves none of them applied.
    """

    def __init__(self, db: Session, user_id: Optional[int] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.user_id = user_id
        self.clock = clock

    def existing_batches(self, stocking_id: int) -> List[FishBatch]:
        """Non-deleted batches of an event, oldest first"""
        return (
            self.db.query(FishBatch)
            .filter(FishBatch.fish_stocking_id == stocking_id, FishBatch.deleted_at.is_(None))
            .order_by(FishBatch.id)
            .all()
        )

    def reconcile(
        self,
        stocking_id: int,
        existing: Sequence[FishBatch],
        desired: Sequence[Dict[str, Any]],
        mode: BatchMode = BatchMode.REGISTRATION,
    ) -> List[FishBatch]:
        """
        Bring the event's batches in line with the desired list

        Args:
            stocking_id: owning event
            existing: the event's current non-deleted batches
            desired: dicts of batch fields, with an optional "id"
            mode: restricts which fields are written

        Returns:
            The event's batches after reconciliation
        """
        existing_by_id = {batch.id: batch for batch in existing}
        desired_ids = [entry["id"] for entry in desired if entry.get("id") is not None]

        if len(desired_ids) != len(set(desired_ids)):
            raise _invalid("Duplicate batch id")
        for batch_id in desired_ids:
            if batch_id not in existing_by_id:
                raise NotFoundError(
                    ErrorCode.NOT_FOUND,
                    f"Fish batch {batch_id} does not belong to fish stocking {stocking_id}"
                )

        allowed = MODE_FIELDS[mode]
        now = self.clock()
        kept = set(desired_ids)
        deleted = updated = created = 0

        with self.db.begin_nested():
            for batch in existing:
                if batch.id not in kept:
                    batch.mark_deleted(now, self.user_id)
                    deleted += 1

            for entry in desired:
                batch_id = entry.get("id")
                values = self._clean(entry, allowed)
                if mode == BatchMode.REVIEW and values.get("review_amount") is None:
                    raise _invalid("Reviewed batches need a review amount")
                if batch_id is not None:
                    batch = existing_by_id[batch_id]
                    for name, value in values.items():
                        setattr(batch, name, value)
                    batch.updated_by = self.user_id
                    updated += 1
                else:
                    if mode == BatchMode.REVIEW:
                        raise _invalid("Reviewed batches must reference an existing batch")
                    missing = [name for name in CREATE_REQUIRED if values.get(name) is None]
                    if missing:
                        raise _invalid(f"New batch is missing {', '.join(missing)}")
                    self.db.add(FishBatch(
                        fish_stocking_id=stocking_id,
                        created_by=self.user_id,
                        **values,
                    ))
                    created += 1

            self.db.flush()

        logger.info(
            f"Reconciled batches of fish stocking {stocking_id} ({mode.value}): "
            f"{created} created, {updated} updated, {deleted} deleted"
        )
        return self.existing_batches(stocking_id)

    @staticmethod
    def _clean(entry: Dict[str, Any], allowed: Sequence[str]) -> Dict[str, Any]:
        """Keep the writable fields of an entry and check their numeric ranges"""
        values = {}
        for name in allowed:
            if name not in entry:
                continue
            value = entry[name]
            if value is None and name in CREATE_REQUIRED:
                raise _invalid(f"{name} is required")
            if value is not None:
                if isinstance(value, bool):
                    raise _invalid(f"Invalid {name}")
                if name in INTEGER_FIELDS and not isinstance(value, Integral):
                    raise _invalid(f"{name} must be an integer")
                if name in FLOAT_FIELDS and not isinstance(value, Real):
                    raise _invalid(f"{name} must be a number")
                if value < 0:
                    raise _invalid(f"{name} must not be negative")
            values[name] = value
        return values
