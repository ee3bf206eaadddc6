from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from weddingday.config import get_settings
from weddingday.models.database import async_session_maker, get_db
from weddingday.services.timeline_service import TimelineService, wedding_locks

settings = get_settings()


@dataclass
class Actor:
    """Identity of the caller. Roles are looked up per wedding."""

    user_id: str


async def get_current_actor(
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> Actor:
    """Resolve the caller from the X-User-Id header.

    Without the header, dev_mode falls back to the configured dev user.
    """
    if x_user_id:
        return Actor(user_id=x_user_id)
    if settings.dev_mode:
        return Actor(user_id=settings.dev_user_id)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing X-User-Id header",
    )


_timeline_service = TimelineService(async_session_maker, wedding_locks)


def get_timeline_service() -> TimelineService:
    return _timeline_service


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
TimelineServiceDep = Annotated[TimelineService, Depends(get_timeline_service)]
