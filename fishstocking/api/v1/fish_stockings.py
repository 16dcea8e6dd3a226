"""
Fish Stockings API endpoints
"""
from datetime import datetime
from typing import Callable, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from fishstocking.api import deps
from fishstocking.core.database import get_db
from fishstocking.core.security import Actor
from fishstocking.schemas.stocking import (
    FishStockingAdminUpdate, FishStockingListResponse, FishStockingRegister,
    FishStockingRegistrationUpdate, FishStockingResponse, FishStockingReview, OperationResponse,
    RecentLocationResponse,
)
from fishstocking.services.notifications import NotificationDispatcher
from fishstocking.services.stocking.lifecycle import FishStockingService, OperationResult
from fishstocking.services.stocking.status import FishStockingStatus

router = APIRouter()


def _service(db: Session, actor: Actor, clock: Callable[[], datetime]) -> FishStockingService:
    return FishStockingService(db, actor, clock=clock)


def _finish(
    service: FishStockingService,
    result: OperationResult,
    background_tasks: BackgroundTasks,
    dispatcher: NotificationDispatcher,
) -> Optional[dict]:
    """Queue the operation's notifications and describe the event it left behind"""
    if result.notifications:
        background_tasks.add_task(dispatcher.dispatch, result.notifications)
    if result.stocking is None:
        return None
    return service.describe(result.stocking)


@router.post("/register", response_model=FishStockingResponse, status_code=201)
def register_fish_stocking(
    payload: FishStockingRegister,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
    dispatcher: NotificationDispatcher = Depends(deps.get_notification_dispatcher),
):
    """
    Register a new fish stocking.
    """
    service = _service(db, actor, clock)
    result = service.register(payload)
    return _finish(service, result, background_tasks, dispatcher)


@router.patch("/register/{stocking_id}", response_model=FishStockingResponse)
def update_fish_stocking_registration(
    stocking_id: int,
    payload: FishStockingRegistrationUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
    dispatcher: NotificationDispatcher = Depends(deps.get_notification_dispatcher),
):
    """
    Update a registered fish stocking before or during the stocking window.
    """
    service = _service(db, actor, clock)
    result = service.update_registration(stocking_id, payload)
    return _finish(service, result, background_tasks, dispatcher)


@router.post("/review", response_model=FishStockingResponse)
def review_fish_stocking(
    payload: FishStockingReview,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
    dispatcher: NotificationDispatcher = Depends(deps.get_notification_dispatcher),
):
    """
    Submit the actual stocked quantities of an ongoing fish stocking.
    """
    service = _service(db, actor, clock)
    result = service.review(payload)
    return _finish(service, result, background_tasks, dispatcher)


@router.patch("/cancel/{stocking_id}", response_model=OperationResponse)
def cancel_fish_stocking(
    stocking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
):
    """
    Cancel a fish stocking. Upcoming fish stockings are removed instead.
    """
    service = _service(db, actor, clock)
    result = service.cancel(stocking_id)
    if result.removed:
        return {"success": True, "removed": True, "message": "Fish stocking removed"}
    return {
        "success": True,
        "message": "Fish stocking canceled",
        "fish_stocking": service.describe(result.stocking),
    }


@router.delete("/{stocking_id}", response_model=OperationResponse)
def delete_fish_stocking(
    stocking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
):
    """
    Delete a fish stocking while it is still far enough in the future.
    """
    service = _service(db, actor, clock)
    service.delete(stocking_id)
    return {"success": True, "removed": True, "message": "Fish stocking deleted"}


@router.patch("/{stocking_id}", response_model=FishStockingResponse)
def update_fish_stocking(
    stocking_id: int,
    payload: FishStockingAdminUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
    dispatcher: NotificationDispatcher = Depends(deps.get_notification_dispatcher),
):
    """
    Administrator update of any fish stocking field, including the inspector.
    """
    service = _service(db, actor, clock)
    result = service.admin_update(stocking_id, payload)
    return _finish(service, result, background_tasks, dispatcher)


@router.get("/recent-locations", response_model=List[RecentLocationResponse])
def list_recent_locations(
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
):
    """
    Water bodies the caller stocked before, to prefill a new registration.
    """
    return _service(db, actor, clock).recent_locations()


@router.get("/{stocking_id}", response_model=FishStockingResponse)
def get_fish_stocking(
    stocking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
):
    """
    Get a specific fish stocking with its status and batches.
    """
    return _service(db, actor, clock).get(stocking_id)


@router.get("", response_model=FishStockingListResponse)
def list_fish_stockings(
    status: Optional[List[FishStockingStatus]] = Query(None),
    pagination: dict = Depends(deps.get_pagination_params),
    db: Session = Depends(get_db),
    actor: Actor = Depends(deps.get_current_actor),
    clock: Callable[[], datetime] = Depends(deps.get_clock),
):
    """
    List fish stockings visible to the caller, optionally filtered by status.
    """
    items, total = _service(db, actor, clock).list_stockings(
        statuses=status, skip=pagination["skip"], limit=pagination["limit"]
    )
    return {"items": items, "total": total, **pagination}
