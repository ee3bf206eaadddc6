from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from weddingday.models.base import Base, TimestampMixin


class WeddingMembership(Base, TimestampMixin):
    __tablename__ = "wedding_memberships"
    __table_args__ = (
        UniqueConstraint("wedding_id", "user_id", name="uq_wedding_membership"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    wedding_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("weddings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    timeline_role: Mapped[str] = mapped_column(String(32), nullable=False, default="VIEW_ONLY")

    wedding: Mapped["Wedding"] = relationship("Wedding", back_populates="members")  # noqa: F821

    def __repr__(self) -> str:
        return f"<WeddingMembership wedding={self.wedding_id} user={self.user_id} role={self.timeline_role}>"
