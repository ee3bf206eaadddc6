"""Timeline domain schemas: lanes, events, background bands and snapshots."""

from datetime import date
from enum import Enum

from pydantic import Field

from weddingday.schemas.base import FrozenCamelModel, UtcDateTime
from weddingday.schemas.envelope import ErrorInfo


class LaneType(str, Enum):
    PHOTO = "photo"
    CEREMONY = "ceremony"
    TRANSPORT = "transport"
    VENUE_OPS = "venue_ops"
    MUSIC = "music"
    MEAL = "meal"
    PREP = "prep"
    MISC = "misc"


class OwnerType(str, Enum):
    COUPLE = "couple"
    PLANNER = "planner"
    VENDOR = "vendor"
    PERSON = "person"
    GROUP = "group"
    SYSTEM = "system"


class EventStatus(str, Enum):
    TENTATIVE = "tentative"
    CONFIRMED = "confirmed"


class BandType(str, Enum):
    NIGHT = "night"
    GOLDEN = "golden"
    FORECAST = "forecast"


class OwnerRef(FrozenCamelModel):
    """Denormalized reference to whoever owns a lane or event."""

    id: str
    type: OwnerType = OwnerType.COUPLE
    display_name: str


class TimelineLane(FrozenCamelModel):
    id: str = Field(..., min_length=1)
    wedding_id: str | None = None
    name: str
    lane_type: LaneType = LaneType.MISC
    owner: OwnerRef | None = None
    sort_order: int = 0


class TimelineEvent(FrozenCamelModel):
    id: str = Field(..., min_length=1)
    wedding_id: str | None = None
    title: str
    start_utc: UtcDateTime
    end_utc: UtcDateTime
    lane_id: str
    category: LaneType | None = None  # Filled from the lane type on creation
    assigned_owner: OwnerRef | None = None
    status: EventStatus = EventStatus.TENTATIVE
    locked: bool = False
    notes: str | None = None
    location_label: str | None = None
    location_lat: float | None = None
    location_lng: float | None = None


class BackgroundBand(FrozenCamelModel):
    id: str = Field(..., min_length=1)
    wedding_id: str | None = None
    band_type: BandType
    start_utc: UtcDateTime
    end_utc: UtcDateTime
    label: str = ""


class TimelineSnapshot(FrozenCamelModel):
    """Canonical timeline as served by GET and returned after a publish."""

    version: int
    venue_timezone: str
    wedding_date: date
    window_start_utc: UtcDateTime
    window_end_utc: UtcDateTime
    lanes: list[TimelineLane] = Field(default_factory=list)
    events: list[TimelineEvent] = Field(default_factory=list)
    bands: list[BackgroundBand] = Field(default_factory=list)


class TimelineConflictResponse(TimelineSnapshot):
    """409 body: the error plus the current canonical snapshot."""

    error: ErrorInfo
    current_version: int


class BandsReplaceRequest(FrozenCamelModel):
    bands: list[BackgroundBand] = Field(default_factory=list)
