from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from weddingday.models.base import Base, TimestampMixin


class Wedding(Base, TimestampMixin):
    __tablename__ = "weddings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    wedding_date: Mapped[str] = mapped_column(String(10), nullable=False)  # Venue-local YYYY-MM-DD
    venue_timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    # Only ever changed by a compare-and-increment in TimelineRepository.bump_version
    timeline_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    lanes: Mapped[list["TimelineLaneRecord"]] = relationship(  # noqa: F821
        "TimelineLaneRecord", back_populates="wedding", cascade="all, delete-orphan"
    )
    events: Mapped[list["TimelineEventRecord"]] = relationship(  # noqa: F821
        "TimelineEventRecord", back_populates="wedding", cascade="all, delete-orphan"
    )
    bands: Mapped[list["BackgroundBandRecord"]] = relationship(  # noqa: F821
        "BackgroundBandRecord", back_populates="wedding", cascade="all, delete-orphan"
    )
    members: Mapped[list["WeddingMembership"]] = relationship(  # noqa: F821
        "WeddingMembership", back_populates="wedding", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Wedding {self.id} v{self.timeline_version}>"
