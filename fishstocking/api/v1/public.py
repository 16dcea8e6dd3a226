"""
Public API endpoints
"""
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fishstocking.api import deps
from fishstocking.core.database import get_db
from fishstocking.schemas.stocking import FishStockingStatisticsResponse
from fishstocking.services.stocking.statistics import StockingStatisticsService

router = APIRouter()


@router.get("/statistics", response_model=FishStockingStatisticsResponse)
def get_statistics(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
):
    """
    Completed fish stockings, fishing areas and released fish. No login required.
    """
    return StockingStatisticsService(db, clock).get_statistics()
