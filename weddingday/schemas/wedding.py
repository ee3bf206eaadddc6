from datetime import date
from enum import Enum
from typing import Any

from pydantic import Field

from weddingday.schemas.base import CamelModel, UtcDateTime


class TimelineRole(str, Enum):
    COUPLE_TIMELINE_ADMIN = "COUPLE_TIMELINE_ADMIN"
    PLANNER_TIMELINE_ADMIN = "PLANNER_TIMELINE_ADMIN"
    VENDOR_TIMELINE_COLLAB = "VENDOR_TIMELINE_COLLAB"
    VIEW_ONLY = "VIEW_ONLY"


TIMELINE_EDITOR_ROLES = frozenset(
    [TimelineRole.COUPLE_TIMELINE_ADMIN, TimelineRole.PLANNER_TIMELINE_ADMIN]
)


def can_edit_timeline(role: TimelineRole | str | None) -> bool:
    """Only couple and planner admins may publish timeline changes."""
    if role is None:
        return False
    try:
        return TimelineRole(role) in TIMELINE_EDITOR_ROLES
    except ValueError:
        return False


class WeddingCreate(CamelModel):
    id: str | None = Field(None, min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    wedding_date: date
    venue_timezone: str = "America/New_York"


class WeddingDetail(CamelModel):
    id: str
    name: str
    wedding_date: date
    venue_timezone: str
    timeline_version: int
    created_at: UtcDateTime


class MembershipCreate(CamelModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    display_name: str = Field(..., min_length=1, max_length=255)
    timeline_role: TimelineRole = TimelineRole.VIEW_ONLY


class MembershipResponse(CamelModel):
    wedding_id: str
    user_id: str
    display_name: str
    timeline_role: TimelineRole


class TimelineRevisionItem(CamelModel):
    """A single successful publish in the revision history."""

    id: str
    base_version: int
    version: int
    patch_ops: list[dict[str, Any]] = Field(default_factory=list)
    user_id: str | None = None
    created_at: UtcDateTime


class TimelineRevisionList(CamelModel):
    current_version: int
    revisions: list[TimelineRevisionItem]
