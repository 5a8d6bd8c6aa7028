"""Generation request tracker.

Owns the asynchronous story generation workflow. A request is created in
``pending`` and returned to the caller at once; a background worker later
calls :meth:`GenerationTracker.run`, which claims the request
(``pending -> generating``), calls the content generator and finishes in
``completed`` (with ``story_id``) or ``failed`` (with ``error_message``).
A request reaches ``completed`` in the same commit that writes its story,
only while it is still ``generating``; terminal states are never left and a
failed request is never retried.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storytime.config import get_app_config, get_settings
from storytime.errors import GenerationError, NotFoundError, ValidationError
from storytime.models.child_profile import ChildProfile
from storytime.models.generation_request import GenerationRequest, GenerationStatus
from storytime.schemas.generation import GenerateStoryRequest
from storytime.services.illustrations import IllustrationService
from storytime.services.profiles import ProfileStore
from storytime.services.stories import StoryStore
from storytime.services.story_generator import ContentGenerator, StoryGenerator, StoryParams

logger = logging.getLogger(__name__)


class GenerationTracker:
    """Creates, drives and reports on generation requests."""

    def __init__(
        self,
        db: Session,
        generator: ContentGenerator | None = None,
        illustrator: IllustrationService | None = None,
        timeout: float | None = None,
        illustration_timeout: float | None = None,
    ) -> None:
        self.db = db
        self._generator = generator
        self._illustrator = illustrator
        self.timeout = timeout or get_settings().generation_timeout_seconds
        self.illustration_timeout = illustration_timeout or get_app_config().illustrations.get(
            "timeout_seconds", 240
        )

    @property
    def generator(self) -> ContentGenerator:
        if self._generator is None:
            self._generator = StoryGenerator()
        return self._generator

    @property
    def illustrator(self) -> IllustrationService:
        if self._illustrator is None:
            self._illustrator = IllustrationService()
        return self._illustrator

    def create(self, user_id: str, params: GenerateStoryRequest) -> GenerationRequest:
        """Track a new request in ``pending``. Does not start generation."""
        profiles = ProfileStore(self.db)
        if params.child_profile_id:
            profile = profiles.get(user_id, params.child_profile_id)
        else:
            profile = profiles.get_active(user_id)
            if profile is None:
                raise ValidationError(
                    "No child profile specified and no active child profile found",
                    details=[{"loc": ["body", "child_profile_id"], "msg": "Field required"}],
                )

        request = GenerationRequest(
            user_id=user_id,
            child_profile_id=profile.id,
            **params.model_dump(exclude={"child_profile_id"}),
            status=GenerationStatus.PENDING.value,
        )
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"Created generation request {request.id} for profile {profile.id}")
        return request

    def get_status(self, user_id: str, request_id: str) -> GenerationRequest:
        request = self.db.scalar(
            select(GenerationRequest)
            .where(GenerationRequest.id == request_id)
            .where(GenerationRequest.user_id == user_id)
        )
        if request is None:
            raise NotFoundError("Generation request not found")
        return request

    def claim(self, request_id: str) -> bool:
        """Move a request from ``pending`` to ``generating``.

        Conditional on the current status, so only one worker can win the
        claim even if the request was dispatched twice.
        """
        result = self.db.execute(
            update(GenerationRequest)
            .where(GenerationRequest.id == request_id)
            .where(GenerationRequest.status == GenerationStatus.PENDING.value)
            .values(
                status=GenerationStatus.GENERATING.value,
                started_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    async def run(self, request_id: str) -> GenerationRequest | None:
        """Drive a claimed request to a terminal state."""
        if not self.claim(request_id):
            logger.info(f"Generation request {request_id} is not pending, skipping")
            return self.db.get(GenerationRequest, request_id)

        self.db.expire_all()
        request = self.db.get(GenerationRequest, request_id)
        logger.info(f"Generating story for request {request_id}")

        profile = None
        if request.child_profile_id:
            profile = self.db.get(ChildProfile, request.child_profile_id)
        if profile is None or profile.user_id != request.user_id:
            return self.fail(request, "Child profile not found")

        params = StoryParams(
            theme=request.theme,
            custom_prompt=request.custom_prompt,
            story_length=request.story_length,
            custom_word_count=request.custom_word_count,
            reading_level=request.reading_level,
            story_about=request.story_about,
            custom_character_name=request.custom_character_name,
        )

        try:
            generated = await asyncio.wait_for(
                self.generator.generate(profile, params), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            return self.fail(request, f"Story generation timed out after {int(self.timeout)} seconds")
        except GenerationError as e:
            return self.fail(request, e.message)

        illustrations: list[str] = []
        if request.include_illustrations:
            character = params.character_name_override or profile.name
            try:
                illustrations = await asyncio.wait_for(
                    self.illustrator.generate(character, request.theme, profile.preferred_art_style),
                    timeout=self.illustration_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Illustrations for request {request_id} timed out, saving story without them"
                )

        try:
            story = StoryStore(self.db).create(
                request.user_id,
                {
                    "child_profile_id": profile.id,
                    "title": generated.title,
                    "content": generated.content,
                    "theme": request.theme,
                    "reading_level": request.reading_level or profile.reading_level,
                    "generation_prompt": generated.prompt,
                    "illustrations": illustrations,
                    "is_favorite": False,
                },
                commit=False,
            )
            # Story and completion commit together, and only if still generating
            completed = self._transition(
                request_id,
                status=GenerationStatus.COMPLETED.value,
                story_id=story.id,
                error_message=None,
                completed_at=datetime.now(timezone.utc),
            )
            if completed:
                self.db.commit()
            else:
                self.db.rollback()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save story for request {request_id}: {e}")
            return self.fail(request, "Failed to save story")

        self.db.refresh(request)
        if not completed:
            logger.warning(
                f"Generation request {request_id} was already {request.status}, discarding its story"
            )
            return request
        logger.info(f"Generation request {request_id} completed with story {story.id}")
        return request

    def fail(self, request: GenerationRequest, message: str) -> GenerationRequest:
        """Record a terminal failure on a request that is being generated.

        Requests in any other state are returned unchanged: pending work has
        to pass through ``generating`` first and terminal states are final.
        """
        failed = self._transition(
            request.id,
            status=GenerationStatus.FAILED.value,
            error_message=message or "Unknown error occurred",
            story_id=None,
            completed_at=datetime.now(timezone.utc),
        )
        self.db.commit()
        self.db.refresh(request)
        if failed:
            logger.error(f"Generation request {request.id} failed: {request.error_message}")
        return request

    def _transition(self, request_id: str, **values) -> bool:
        """Apply ``values`` only if the row is still ``generating``. Does not commit."""
        result = self.db.execute(
            update(GenerationRequest)
            .where(GenerationRequest.id == request_id)
            .where(GenerationRequest.status == GenerationStatus.GENERATING.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def pending_for_dispatch(self, limit: int = 50) -> list[str]:
        """Ids of pending requests that were never claimed by a worker."""
        age = get_app_config().generation.get("pending_redispatch_seconds", 120)
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=age)
        return list(
            self.db.scalars(
                select(GenerationRequest.id)
                .where(GenerationRequest.status == GenerationStatus.PENDING.value)
                .where(GenerationRequest.created_at < cutoff)
                .order_by(GenerationRequest.created_at.asc())
                .limit(limit)
            )
        )

    def fail_stale(self) -> int:
        """Fail requests stuck in ``generating`` past the stale threshold."""
        age = get_app_config().generation.get("stale_generation_seconds", 600)
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=age)
        stale = list(
            self.db.scalars(
                select(GenerationRequest)
                .where(GenerationRequest.status == GenerationStatus.GENERATING.value)
                .where(GenerationRequest.started_at < cutoff)
            )
        )
        for request in stale:
            self.fail(request, "Story generation timed out")
        return len(stale)
