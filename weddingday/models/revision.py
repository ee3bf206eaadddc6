"""TimelineRevision model: one row per successful publish.

Used for:
- Revision history queries (``since_version``)
- Audit of who changed the timeline and how
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from weddingday.models.base import Base, JSONType, utcnow


class TimelineRevision(Base):
    """Record of an applied patch batch.

    Attributes:
        id: Revision ID (UUID string)
        wedding_id: FK to weddings table
        base_version: Version the publishing draft was forked from
        version: Version produced by this publish (base_version + 1)
        patch_ops: The applied ops in wire form
        user_id: Caller who published
        created_at: When the publish committed
    """

    __tablename__ = "timeline_revisions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    wedding_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("weddings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    base_version: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    patch_ops: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list, nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<TimelineRevision {self.wedding_id} v{self.base_version}->v{self.version}>"
