"""
Fish Stocking Statistics
Public totals over completed stocking events
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List

from sqlalchemy.orm import Session

from fishstocking.models.stocking import FishBatch, FishStocking
from fishstocking.services.settings_service import SettingsService
from fishstocking.services.stocking.status import FishStockingStatus, derive_status

logger = logging.getLogger(__name__)

COMPLETED = (FishStockingStatus.FINISHED, FishStockingStatus.INSPECTED)


@dataclass(frozen=True)
class StockingStatistics:
    fish_stocking_count: int
    fishing_area_count: int
    fish_count: int


class StockingStatisticsService:
    """
    Totals shown to the public

    Only FINISHED and INSPECTED events count as stockings and contribute
    released fish. Fishing areas are the distinct water bodies of all live
    events.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.clock = clock

    def get_statistics(self) -> StockingStatistics:
        stockings = self.db.query(FishStocking).filter(FishStocking.deleted_at.is_(None)).all()
        batches = self._live_batches()
        settings = SettingsService(self.db).get_settings()
        now = self.clock()

        completed = 0
        fish_count = 0
        areas = set()
        for stocking in stockings:
            cadastral_id = (stocking.location or {}).get("cadastral_id")
            if cadastral_id:
                areas.add(cadastral_id)

            own = batches.get(stocking.id, [])
            if derive_status(stocking, own, settings, now) in COMPLETED:
                completed += 1
                fish_count += sum(batch.review_amount or 0 for batch in own)

        logger.debug(f"Statistics: {completed} completed stockings in {len(areas)} fishing areas")
        return StockingStatistics(
            fish_stocking_count=completed,
            fishing_area_count=len(areas),
            fish_count=fish_count,
        )

    def _live_batches(self) -> Dict[int, List[FishBatch]]:
        grouped: Dict[int, List[FishBatch]] = {}
        for batch in self.db.query(FishBatch).filter(FishBatch.deleted_at.is_(None)):
            grouped.setdefault(batch.fish_stocking_id, []).append(batch)
        return grouped
