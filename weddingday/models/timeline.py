"""Timeline rows: lanes, events and background bands.

Owner references are stored denormalized (id, type, display name) exactly as
they travel on the wire.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from weddingday.models.base import Base, TimestampMixin


class TimelineLaneRecord(Base, TimestampMixin):
    __tablename__ = "timeline_lanes"

    # Ids are client-generated, so they are only unique within a wedding
    wedding_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("weddings.id", ondelete="CASCADE"), primary_key=True
    )
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    lane_type: Mapped[str] = mapped_column(String(20), nullable=False, default="misc")
    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    owner_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    owner_display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    wedding: Mapped["Wedding"] = relationship("Wedding", back_populates="lanes")  # noqa: F821

    def __repr__(self) -> str:
        return f"<TimelineLane {self.name} (wedding={self.wedding_id})>"


class TimelineEventRecord(Base, TimestampMixin):
    __tablename__ = "timeline_events"

    wedding_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("weddings.id", ondelete="CASCADE"), primary_key=True
    )
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # No FK to timeline_lanes: lane deletion cascades are applied by the service
    lane_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    start_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="misc")
    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    owner_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    owner_display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="tentative")
    locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    location_label: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    wedding: Mapped["Wedding"] = relationship("Wedding", back_populates="events")  # noqa: F821

    def __repr__(self) -> str:
        return f"<TimelineEvent {self.title} {self.start_utc}-{self.end_utc}>"


class BackgroundBandRecord(Base):
    __tablename__ = "timeline_bands"

    wedding_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("weddings.id", ondelete="CASCADE"), primary_key=True
    )
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    band_type: Mapped[str] = mapped_column(String(20), nullable=False)
    start_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    wedding: Mapped["Wedding"] = relationship("Wedding", back_populates="bands")  # noqa: F821
