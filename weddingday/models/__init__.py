from weddingday.models.base import Base
from weddingday.models.membership import WeddingMembership
from weddingday.models.revision import TimelineRevision
from weddingday.models.timeline import (
    BackgroundBandRecord,
    TimelineEventRecord,
    TimelineLaneRecord,
)
from weddingday.models.wedding import Wedding

__all__ = [
    "Base",
    "Wedding",
    "WeddingMembership",
    "TimelineLaneRecord",
    "TimelineEventRecord",
    "BackgroundBandRecord",
    "TimelineRevision",
]
