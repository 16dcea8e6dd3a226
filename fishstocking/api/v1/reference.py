"""
Reference data API endpoints
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fishstocking.api import deps
from fishstocking.core.database import get_db
from fishstocking.core.security import Actor
from fishstocking.schemas.reference import FishAgeResponse, FishTypeResponse
from fishstocking.services.reference_data import ReferenceDataService

router = APIRouter()


@router.get("/fish-types", response_model=List[FishTypeResponse])
def list_fish_types(
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
):
    """
    Fish species, highest priority first.
    """
    return ReferenceDataService(db).list_fish_types()


@router.get("/fish-ages", response_model=List[FishAgeResponse])
def list_fish_ages(
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
):
    """
    Fish age classes, highest priority first.
    """
    return ReferenceDataService(db).list_fish_ages()
