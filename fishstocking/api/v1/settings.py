"""
Settings API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fishstocking.api import deps
from fishstocking.core.database import get_db
from fishstocking.core.security import Actor
from fishstocking.schemas.settings import SettingsResponse, SettingsUpdate
from fishstocking.services.settings_service import SettingsService
from fishstocking.services.stocking.authorization import ensure_admin

router = APIRouter()


@router.get("", response_model=SettingsResponse)
def get_settings(
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
):
    """
    Current lifecycle durations, in days.
    """
    return SettingsService(db).get_settings()


@router.patch("", response_model=SettingsResponse)
def update_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
):
    """
    Change the lifecycle durations. Administrators only.
    """
    ensure_admin(actor)
    return SettingsService(db, actor.user_id).update_settings(
        min_time_till_stocking=payload.min_time_till_stocking,
        max_time_for_registration=payload.max_time_for_registration,
    )
