"""Timeline capability checks.

A caller must be a member of the wedding to read its timeline, and must hold
an admin timeline role to write it. Non-members get a 404 so wedding ids are
not disclosed.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from weddingday.exceptions import PermissionDeniedError, WeddingNotFoundError
from weddingday.models.membership import WeddingMembership
from weddingday.repositories.timeline_repo import TimelineRepository
from weddingday.schemas.wedding import can_edit_timeline


async def require_member(wedding_id: str, user_id: str, db: AsyncSession) -> WeddingMembership:
    """Return the caller's membership.

    Raises:
        WeddingNotFoundError: If the wedding does not exist or the caller is not a member
    """
    repo = TimelineRepository(db)
    if await repo.get_wedding(wedding_id) is None:
        raise WeddingNotFoundError(wedding_id)
    membership = await repo.get_membership(wedding_id, user_id)
    if membership is None:
        raise WeddingNotFoundError(wedding_id)
    return membership


async def require_timeline_editor(wedding_id: str, user_id: str, db: AsyncSession) -> WeddingMembership:
    membership = await require_member(wedding_id, user_id, db)
    if not can_edit_timeline(membership.timeline_role):
        raise PermissionDeniedError()
    return membership
