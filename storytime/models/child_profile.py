"""Child profile model."""

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storytime.database import Base
from storytime.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class ChildProfile(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A child a parent generates stories for.

    At most one profile per user has ``is_active`` set; the flag is only
    changed through the profile store's activation operation.
    """

    __tablename__ = "child_profiles"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    grade: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reading_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    interests: Mapped[list[str]] = mapped_column(JSON, default=list)
    favorite_themes: Mapped[list[str]] = mapped_column(JSON, default=list)
    content_safety: Mapped[str] = mapped_column(String(20), default="strict")
    preferred_art_style: Mapped[str] = mapped_column(String(50), default="watercolor")
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="child_profiles")  # noqa: F821

    __table_args__ = (
        Index("idx_child_profiles_user_id", "user_id"),
        Index("idx_child_profiles_user_active", "user_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<ChildProfile(id={self.id}, name='{self.name}', is_active={self.is_active})>"
