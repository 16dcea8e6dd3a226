"""
Fish Stocking Authorization
Who may see and who may modify a stocking event
"""
from sqlalchemy import and_, or_
from sqlalchemy.orm import Query

from fishstocking.core.exceptions import ErrorCode, InsufficientPermissionsError
from fishstocking.core.security import Actor, ActorType
from fishstocking.models.stocking import FishStocking


def _no_rights(message: str = "Not allowed to modify this fish stocking") -> InsufficientPermissionsError:
    return InsufficientPermissionsError(ErrorCode.NO_RIGHTS, message)


def admin_covers(actor: Actor, stocking: FishStocking) -> bool:
    """Administrators act on events in their municipalities; super admins on all"""
    if actor.type == ActorType.SUPER_ADMIN:
        return True
    return actor.type == ActorType.ADMIN and stocking.municipality_id in actor.municipalities


def can_profile_modify(actor: Actor, stocking: FishStocking) -> bool:
    """
    Only registry users modify events. Tenant events belong to members of the
    owning tenant and of the stocking customer tenant; freelancer events to
    their creator and assignee.
    """
    if not actor.is_user:
        return False

    if stocking.tenant_id is not None:
        return actor.profile is not None and actor.profile in (
            stocking.tenant_id, stocking.stocking_customer_id
        )
    return actor.is_freelancer and actor.user_id in (
        stocking.created_by, stocking.assigned_to_id
    )


def ensure_can_modify(actor: Actor, stocking: FishStocking):
    if not can_profile_modify(actor, stocking):
        raise _no_rights()


def ensure_can_delete(actor: Actor, stocking: FishStocking):
    """Owners delete their own events; administrators those in their municipalities"""
    if not (admin_covers(actor, stocking) or can_profile_modify(actor, stocking)):
        raise _no_rights()


def ensure_admin(actor: Actor):
    if not actor.is_admin:
        raise _no_rights("Administrator rights required")
    if actor.type == ActorType.ADMIN and not actor.municipalities:
        raise _no_rights("No municipality permissions")


def ensure_can_register(actor: Actor):
    if not actor.is_user:
        raise _no_rights("Only registry users can register fish stockings")


def scope_query(query: Query, actor: Actor) -> Query:
    """Restrict a FishStocking query to what the actor may see"""
    if actor.type == ActorType.SUPER_ADMIN:
        return query
    if actor.type in (ActorType.ADMIN, ActorType.INSPECTOR):
        if not actor.municipalities:
            raise _no_rights("No municipality permissions")
        return query.filter(FishStocking.municipality_id.in_(actor.municipalities))
    if actor.profile is not None:
        return query.filter(or_(
            FishStocking.tenant_id == actor.profile,
            FishStocking.stocking_customer_id == actor.profile,
        ))
    return query.filter(and_(
        FishStocking.tenant_id.is_(None),
        or_(
            FishStocking.created_by == actor.user_id,
            FishStocking.assigned_to_id == actor.user_id,
        ),
    ))


def can_view(actor: Actor, stocking: FishStocking) -> bool:
    if actor.is_admin:
        return admin_covers(actor, stocking)
    if actor.type == ActorType.INSPECTOR:
        return stocking.municipality_id in actor.municipalities
    return can_profile_modify(actor, stocking)
