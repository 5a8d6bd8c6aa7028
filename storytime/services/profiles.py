"""Child profile store.

All operations are scoped by owner: a profile belonging to another user is
reported exactly like a missing one.
"""

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storytime.errors import NotFoundError, PersistenceError
from storytime.models.child_profile import ChildProfile
from storytime.models.generation_request import GenerationRequest
from storytime.models.story import Story

logger = logging.getLogger(__name__)


class ProfileStore:
    """CRUD and activation for child profiles."""

    REQUIRED_FIELDS = frozenset(
        {"name", "interests", "favorite_themes", "content_safety", "preferred_art_style"}
    )

    def __init__(self, db: Session) -> None:
        self.db = db

    def list(self, user_id: str) -> list[ChildProfile]:
        return list(
            self.db.scalars(
                select(ChildProfile)
                .where(ChildProfile.user_id == user_id)
                .order_by(ChildProfile.created_at.desc())
            )
        )

    def get(self, user_id: str, profile_id: str) -> ChildProfile:
        profile = self.db.scalar(
            select(ChildProfile)
            .where(ChildProfile.id == profile_id)
            .where(ChildProfile.user_id == user_id)
        )
        if profile is None:
            raise NotFoundError("Child profile not found")
        return profile

    def get_active(self, user_id: str) -> ChildProfile | None:
        return self.db.scalar(
            select(ChildProfile)
            .where(ChildProfile.user_id == user_id)
            .where(ChildProfile.is_active.is_(True))
        )

    def create(self, user_id: str, data: dict[str, Any]) -> ChildProfile:
        profile = ChildProfile(user_id=user_id, is_active=False, **data)
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        logger.info(f"Created child profile {profile.id} for user {user_id}")
        return profile

    def update(self, user_id: str, profile_id: str, data: dict[str, Any]) -> ChildProfile:
        profile = self.get(user_id, profile_id)
        data.pop("is_active", None)
        for field, value in data.items():
            if value is None and field in self.REQUIRED_FIELDS:
                continue
            setattr(profile, field, value)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def delete(self, user_id: str, profile_id: str) -> None:
        """Delete a profile, keeping its stories and generation history."""
        profile = self.get(user_id, profile_id)
        self.db.execute(
            update(Story).where(Story.child_profile_id == profile.id).values(child_profile_id=None)
        )
        self.db.execute(
            update(GenerationRequest)
            .where(GenerationRequest.child_profile_id == profile.id)
            .values(child_profile_id=None)
        )
        self.db.delete(profile)
        self.db.commit()
        logger.info(f"Deleted child profile {profile_id} for user {user_id}")

    def activate(self, user_id: str, profile_id: str) -> ChildProfile:
        """Make ``profile_id`` the owner's only active profile.

        Runs as one transaction: the owner's rows are locked first, then a
        single UPDATE flips every row so that only the target stays active.
        A concurrent activation blocks on the row locks until this one
        commits, so the owner never ends up with zero or two active profiles.
        """
        try:
            owned_ids = list(
                self.db.scalars(
                    select(ChildProfile.id)
                    .where(ChildProfile.user_id == user_id)
                    .with_for_update()
                )
            )
            if profile_id not in owned_ids:
                self.db.rollback()
                raise NotFoundError("Child profile not found")

            self.db.execute(
                update(ChildProfile)
                .where(ChildProfile.user_id == user_id)
                .values(is_active=(ChildProfile.id == profile_id))
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to activate child profile {profile_id}: {e}")
            raise PersistenceError("Failed to activate child profile") from e

        self.db.expire_all()
        logger.info(f"Activated child profile {profile_id} for user {user_id}")
        return self.get(user_id, profile_id)
