import logging
import uuid

from fastapi import APIRouter, status

from weddingday.api.access import require_member, require_timeline_editor
from weddingday.api.deps import CurrentActor, DbSession
from weddingday.config import get_settings
from weddingday.exceptions import ConfigurationError, InvalidFieldValueError
from weddingday.models.wedding import Wedding
from weddingday.repositories.timeline_repo import TimelineRepository
from weddingday.schemas.wedding import (
    MembershipCreate,
    MembershipResponse,
    TimelineRole,
    WeddingCreate,
    WeddingDetail,
)
from weddingday.services.time_window import compute_timeline_window

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


def _wedding_detail(wedding: Wedding) -> WeddingDetail:
    return WeddingDetail(
        id=wedding.id,
        name=wedding.name,
        wedding_date=wedding.wedding_date,
        venue_timezone=wedding.venue_timezone,
        timeline_version=wedding.timeline_version,
        created_at=wedding.created_at,
    )


@router.post("/weddings", response_model=WeddingDetail, status_code=status.HTTP_201_CREATED)
async def create_wedding(
    request: WeddingCreate,
    actor: CurrentActor,
    db: DbSession,
) -> WeddingDetail:
    """Create a wedding. The creator becomes its couple timeline admin."""
    try:
        compute_timeline_window(request.wedding_date, request.venue_timezone)
    except ConfigurationError as e:
        field = e.location.field if e.location else None
        raise InvalidFieldValueError(e.message, field=field) from e

    repo = TimelineRepository(db)
    wedding_id = request.id or str(uuid.uuid4())
    if await repo.get_wedding(wedding_id) is not None:
        raise InvalidFieldValueError(f"Wedding already exists: {wedding_id}", field="id")

    wedding = await repo.create_wedding(
        wedding_id,
        request.name,
        request.wedding_date.isoformat(),
        request.venue_timezone,
    )
    display_name = settings.dev_user_name if actor.user_id == settings.dev_user_id else actor.user_id
    await repo.upsert_membership(
        wedding.id, actor.user_id, display_name, TimelineRole.COUPLE_TIMELINE_ADMIN.value
    )

    logger.info(f"User {actor.user_id} created wedding {wedding.id} on {wedding.wedding_date}")
    return _wedding_detail(wedding)


@router.get("/weddings/{wedding_id}", response_model=WeddingDetail)
async def get_wedding(
    wedding_id: str,
    actor: CurrentActor,
    db: DbSession,
) -> WeddingDetail:
    await require_member(wedding_id, actor.user_id, db)
    wedding = await TimelineRepository(db).get_wedding(wedding_id)
    return _wedding_detail(wedding)


@router.post(
    "/weddings/{wedding_id}/members",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    wedding_id: str,
    request: MembershipCreate,
    actor: CurrentActor,
    db: DbSession,
) -> MembershipResponse:
    """Add or update a member's timeline role. Timeline admins only."""
    await require_timeline_editor(wedding_id, actor.user_id, db)
    membership = await TimelineRepository(db).upsert_membership(
        wedding_id, request.user_id, request.display_name, request.timeline_role.value
    )

    logger.info(
        f"User {actor.user_id} set {request.user_id} to {request.timeline_role.value} "
        f"on wedding {wedding_id}"
    )
    return MembershipResponse(
        wedding_id=membership.wedding_id,
        user_id=membership.user_id,
        display_name=membership.display_name,
        timeline_role=membership.timeline_role,
    )
