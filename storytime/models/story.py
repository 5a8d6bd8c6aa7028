"""Story model for generated and hand-written bedtime stories."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storytime.database import Base
from storytime.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Story(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A finished story.

    Stories outlive the child profile they were written for; deleting the
    profile only clears ``child_profile_id``.
    """

    __tablename__ = "stories"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    child_profile_id: Mapped[str | None] = mapped_column(
        ForeignKey("child_profiles.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    theme: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reading_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    word_count: Mapped[int] = mapped_column(Integer, default=0)
    generation_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    illustrations: Mapped[list[str]] = mapped_column(JSON, default=list)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_stories_user_id", "user_id"),
        Index("idx_stories_child_profile_id", "child_profile_id"),
        Index("idx_stories_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Story(id={self.id}, title='{self.title}')>"


def count_words(content: str) -> int:
    """Count whitespace-separated words."""
    return len(content.split())
