"""
Fish Stocking Status Derivation
Computes the lifecycle status of an event from its stored data

The status is never persisted. Every reader derives it from the event's
timestamps, its signatures and the review state of its batches, so it is
recomputed on each read and can never drift from the underlying data.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)


class FishStockingStatus(str, Enum):
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    NOT_FINISHED = "NOT_FINISHED"
    FINISHED = "FINISHED"
    INSPECTED = "INSPECTED"
    CANCELED = "CANCELED"


@dataclass(frozen=True)
class StockingSettings:
    """Lifecycle durations in days, passed explicitly to every check"""
    min_time_till_stocking: int
    max_time_for_registration: int


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max)


def review_window_end(event_time: datetime, settings: StockingSettings) -> datetime:
    """End of the last calendar day on which the event may still be reviewed"""
    return end_of_day(event_time + timedelta(days=settings.max_time_for_registration))


def is_fully_reviewed(batches: Iterable[Any]) -> bool:
    """
    True when the event has batches and every one of them carries a review amount.

    A zero review amount counts as reviewed. An event without batches is
    never fully reviewed.
    """
    batches = list(batches)
    return bool(batches) and all(batch.review_amount is not None for batch in batches)


def is_time_before_review(event_time: datetime, settings: StockingSettings, now: datetime) -> bool:
    """True while the event is at least min_time_till_stocking days away"""
    return event_time - now >= timedelta(days=settings.min_time_till_stocking)


def is_deletable(event_time: datetime, settings: StockingSettings, now: datetime) -> bool:
    """True while the event is more than min_time_till_stocking days away"""
    return event_time - now > timedelta(days=settings.min_time_till_stocking)


def derive_status(
    stocking: Any,
    batches: Iterable[Any],
    settings: StockingSettings,
    now: datetime,
) -> Optional[FishStockingStatus]:
    """
    Derive the lifecycle status of a stocking event

    Args:
        stocking: object with event_time, canceled_at and signatures
        batches: the event's non-deleted batches (objects with review_amount)
        settings: lifecycle durations
        now: current local time

    Returns:
        The status, or None when the moment falls exactly on a window boundary
    """
    # Checks run in priority order; later branches assume earlier ones failed
    if stocking.canceled_at is not None:
        return FishStockingStatus.CANCELED

    reviewed = is_fully_reviewed(batches)
    if reviewed and stocking.signatures:
        return FishStockingStatus.INSPECTED
    if reviewed:
        return FishStockingStatus.FINISHED

    window_start = start_of_day(stocking.event_time)
    window_end = review_window_end(stocking.event_time, settings)

    if window_start < now < window_end:
        return FishStockingStatus.ONGOING
    if now < window_start:
        return FishStockingStatus.UPCOMING
    if now > window_end:
        return FishStockingStatus.NOT_FINISHED

    logger.error(
        f"Could not derive status for fish stocking {getattr(stocking, 'id', None)} "
        f"(event_time={stocking.event_time}, now={now})"
    )
    return None
