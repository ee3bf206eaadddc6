from weddingday.schemas.patch import PatchOp, PublishRequest
from weddingday.schemas.timeline import (
    BackgroundBand,
    OwnerRef,
    TimelineEvent,
    TimelineLane,
    TimelineSnapshot,
)
from weddingday.schemas.wedding import TimelineRole, WeddingCreate, WeddingDetail

__all__ = [
    "BackgroundBand",
    "OwnerRef",
    "PatchOp",
    "PublishRequest",
    "TimelineEvent",
    "TimelineLane",
    "TimelineRole",
    "TimelineSnapshot",
    "WeddingCreate",
    "WeddingDetail",
]
