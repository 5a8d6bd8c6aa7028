"""Story store.

Every operation takes the owner's id; a story owned by someone else is
indistinguishable from one that does not exist.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from storytime.errors import NotFoundError
from storytime.models.child_profile import ChildProfile
from storytime.models.story import Story, count_words

logger = logging.getLogger(__name__)


class StoryStore:
    """Persistence operations for stories."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list(
        self,
        user_id: str,
        child_profile_id: str | None = None,
        favorites_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Story]:
        query = select(Story).where(Story.user_id == user_id)
        if child_profile_id:
            query = query.where(Story.child_profile_id == child_profile_id)
        if favorites_only:
            query = query.where(Story.is_favorite.is_(True))
        query = query.order_by(Story.created_at.desc()).offset(skip).limit(limit)
        return list(self.db.scalars(query))

    def get(self, user_id: str, story_id: str) -> Story:
        story = self.db.scalar(
            select(Story).where(Story.id == story_id).where(Story.user_id == user_id)
        )
        if story is None:
            raise NotFoundError("Story not found")
        return story

    def create(self, user_id: str, data: dict[str, Any], commit: bool = True) -> Story:
        """Insert a story. Word count is always derived from the content.

        With ``commit=False`` the row is only flushed, so the caller can commit
        it together with other changes.
        """
        data = dict(data)
        self._check_profile(user_id, data.get("child_profile_id"))
        data["word_count"] = count_words(data["content"])
        story = Story(user_id=user_id, **data)
        self.db.add(story)
        if commit:
            self.db.commit()
            self.db.refresh(story)
        else:
            self.db.flush()
        return story

    def update(self, user_id: str, story_id: str, data: dict[str, Any]) -> Story:
        story = self.get(user_id, story_id)
        data = {k: v for k, v in data.items() if v is not None or k == "child_profile_id"}
        if "child_profile_id" in data:
            self._check_profile(user_id, data["child_profile_id"])
        for field, value in data.items():
            setattr(story, field, value)
        if "content" in data:
            story.word_count = count_words(data["content"])
        self.db.commit()
        self.db.refresh(story)
        return story

    def delete(self, user_id: str, story_id: str) -> None:
        story = self.get(user_id, story_id)
        self.db.delete(story)
        self.db.commit()
        logger.info(f"Deleted story {story_id} for user {user_id}")

    def toggle_favorite(self, user_id: str, story_id: str) -> Story:
        story = self.get(user_id, story_id)
        story.is_favorite = not story.is_favorite
        self.db.commit()
        self.db.refresh(story)
        return story

    def mark_as_read(self, user_id: str, story_id: str) -> Story:
        """Record the first time a story was read. Later reads change nothing."""
        story = self.get(user_id, story_id)
        if story.last_read_at is None:
            story.last_read_at = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(story)
        return story

    def _check_profile(self, user_id: str, profile_id: str | None) -> None:
        if profile_id is None:
            return
        owned = self.db.scalar(
            select(ChildProfile.id)
            .where(ChildProfile.id == profile_id)
            .where(ChildProfile.user_id == user_id)
        )
        if owned is None:
            raise NotFoundError("Child profile not found")
