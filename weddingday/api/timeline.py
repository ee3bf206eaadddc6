"""Timeline API: canonical reads and versioned publishes.

A publish answers 409 with the current snapshot when its baseVersion is
stale; the body shape is produced by the VersionConflictError handler in
``weddingday.main``.
"""

import logging

from fastapi import APIRouter, Query

from weddingday.api.access import require_member, require_timeline_editor
from weddingday.api.deps import CurrentActor, DbSession, TimelineServiceDep
from weddingday.schemas.envelope import ErrorResponse
from weddingday.schemas.patch import PublishRequest
from weddingday.schemas.timeline import (
    BandsReplaceRequest,
    TimelineConflictResponse,
    TimelineSnapshot,
)
from weddingday.schemas.wedding import TimelineRevisionList

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/weddings/{wedding_id}/timeline", response_model=TimelineSnapshot)
async def get_timeline(
    wedding_id: str,
    actor: CurrentActor,
    db: DbSession,
    service: TimelineServiceDep,
) -> TimelineSnapshot:
    await require_member(wedding_id, actor.user_id, db)
    return await service.get_timeline(wedding_id)


@router.put(
    "/weddings/{wedding_id}/timeline",
    response_model=TimelineSnapshot,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": TimelineConflictResponse},
    },
)
async def publish_timeline(
    wedding_id: str,
    request: PublishRequest,
    actor: CurrentActor,
    db: DbSession,
    service: TimelineServiceDep,
) -> TimelineSnapshot:
    """Apply a draft. All ops succeed together or nothing is written."""
    await require_timeline_editor(wedding_id, actor.user_id, db)
    return await service.publish(
        wedding_id, request.base_version, request.patch_ops, actor_id=actor.user_id
    )


@router.put("/weddings/{wedding_id}/timeline/bands", response_model=TimelineSnapshot)
async def replace_bands(
    wedding_id: str,
    request: BandsReplaceRequest,
    actor: CurrentActor,
    db: DbSession,
    service: TimelineServiceDep,
) -> TimelineSnapshot:
    """Replace all background bands (night, golden hour, forecast)."""
    await require_timeline_editor(wedding_id, actor.user_id, db)
    return await service.replace_bands(wedding_id, request.bands)


@router.get("/weddings/{wedding_id}/timeline/revisions", response_model=TimelineRevisionList)
async def list_revisions(
    wedding_id: str,
    actor: CurrentActor,
    db: DbSession,
    service: TimelineServiceDep,
    since_version: int = Query(0, ge=0),
) -> TimelineRevisionList:
    await require_member(wedding_id, actor.user_id, db)
    return await service.list_revisions(wedding_id, since_version)
