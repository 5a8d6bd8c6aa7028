"""Generation request model tracking one asynchronous story generation."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storytime.database import Base
from storytime.models.mixins import UUIDPrimaryKeyMixin, utcnow


class GenerationStatus(str, Enum):
    """Lifecycle status of a generation request."""

    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class GenerationRequest(Base, UUIDPrimaryKeyMixin):
    """One attempt to produce a story.

    Only the background task moves ``status`` forward:
    pending -> generating -> completed | failed. ``story_id`` is set only on
    completion and ``error_message`` only on failure. Rows are kept as an
    audit trail.
    """

    __tablename__ = "generation_requests"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    child_profile_id: Mapped[str | None] = mapped_column(
        ForeignKey("child_profiles.id", ondelete="SET NULL"), nullable=True
    )

    # Generation parameters
    theme: Mapped[str | None] = mapped_column(String(100), nullable=True)
    story_length: Mapped[str] = mapped_column(String(20), default="medium")
    custom_word_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reading_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    custom_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    story_about: Mapped[str] = mapped_column(String(20), default="child")
    custom_character_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    include_illustrations: Mapped[bool] = mapped_column(Boolean, default=False)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(20), default=GenerationStatus.PENDING.value)
    story_id: Mapped[str | None] = mapped_column(
        ForeignKey("stories.id", ondelete="SET NULL"), nullable=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_generation_requests_user_id", "user_id"),
        Index("idx_generation_requests_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<GenerationRequest(id={self.id}, status='{self.status}')>"
