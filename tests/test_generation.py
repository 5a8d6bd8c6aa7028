"""Tests for asynchronous story generation."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from kombu.exceptions import OperationalError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storytime.api.deps import get_dispatcher
from storytime.errors import GenerationError, ValidationError
from storytime.main import app
from storytime.models.child_profile import ChildProfile
from storytime.models.generation_request import GenerationRequest, GenerationStatus
from storytime.models.story import Story
from storytime.schemas.generation import GenerateStoryRequest
from storytime.services.generation import GenerationTracker
from storytime.services.illustrations import IllustrationService
from storytime.services.profiles import ProfileStore
from storytime.services.stories import StoryStore


def start(client: TestClient, headers: dict, **params) -> dict:
    response = client.post("/api/stories/generate", json=params, headers=headers)
    assert response.status_code == 202
    return response.json()["data"]


def status(client: TestClient, headers: dict, request_id: str) -> dict:
    response = client.get(f"/api/generate-story/{request_id}/status", headers=headers)
    assert response.status_code == 200
    return response.json()["data"]


def test_generate_story_end_to_end(
    client: TestClient, auth_headers: dict, active_profile: dict, dispatched: list, worker
):
    """An ocean story for the active profile is generated and saved."""
    started = start(client, auth_headers, theme="ocean")
    assert started["status"] == "pending"
    assert started["pollIntervalSeconds"] == 2
    assert dispatched == [started["requestId"]]

    pending = status(client, auth_headers, started["requestId"])
    assert pending["status"] == "pending"
    assert pending["storyId"] is None

    worker()

    done = status(client, auth_headers, started["requestId"])
    assert done["status"] == "completed"
    assert done["childProfileId"] == active_profile["id"]
    assert done["errorMessage"] is None
    assert done["startedAt"] is not None
    assert done["completedAt"] is not None

    story = client.get(f"/api/stories/{done['storyId']}", headers=auth_headers).json()["data"]
    assert story["title"] == "Deep Dive"
    assert story["theme"] == "ocean"
    assert story["child_profile_id"] == active_profile["id"]
    assert story["word_count"] == len(story["content"].split())
    assert story["reading_level"] == "intermediate"


def test_generate_story_alias_endpoint(
    client: TestClient, auth_headers: dict, active_profile: dict, dispatched: list
):
    """Test the legacy route starts a generation too."""
    response = client.post("/api/generate-story", json={"theme": "space"}, headers=auth_headers)
    assert response.status_code == 202
    assert response.json()["data"]["status"] == "pending"
    assert len(dispatched) == 1


def test_generate_story_failure_is_reported(
    client: TestClient, auth_headers: dict, active_profile: dict, story_generator, worker
):
    """A generator timeout ends in failed with a message and no story."""
    story_generator.error = GenerationError("Story generation timed out")

    started = start(client, auth_headers, theme="space", story_length="short")
    worker()

    failed = status(client, auth_headers, started["requestId"])
    assert failed["status"] == "failed"
    assert failed["errorMessage"] == "Story generation timed out"
    assert failed["storyId"] is None

    stories = client.get("/api/stories", headers=auth_headers).json()["data"]
    assert stories == []


def test_generate_story_for_explicit_profile(
    client: TestClient, auth_headers: dict, story_generator, worker
):
    """An explicit profile is used even when none is active."""
    theo = client.post("/api/profiles", json={"name": "Theo", "age": 5}, headers=auth_headers)
    theo_id = theo.json()["data"]["id"]

    started = start(client, auth_headers, child_profile_id=theo_id, theme="dinosaurs")
    worker()

    assert status(client, auth_headers, started["requestId"])["childProfileId"] == theo_id
    assert story_generator.calls[0][0] == theo_id


def test_generate_story_without_profile(client: TestClient, auth_headers: dict, dispatched: list):
    """Test 400 when no profile is given and none is active."""
    response = client.post("/api/stories/generate", json={"theme": "ocean"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert dispatched == []


def test_generate_story_for_foreign_profile(
    client: TestClient, auth_headers: dict, other_auth_headers: dict, dispatched: list
):
    """Test another parent's profile cannot be used."""
    juno = client.post("/api/profiles", json={"name": "Juno"}, headers=other_auth_headers)
    response = client.post(
        "/api/stories/generate",
        json={"child_profile_id": juno.json()["data"]["id"]},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert dispatched == []


def test_generate_story_validation(client: TestClient, auth_headers: dict, active_profile: dict):
    """Test parameter validation."""
    response = client.post(
        "/api/stories/generate", json={"story_length": "epic"}, headers=auth_headers
    )
    assert response.status_code == 400

    response = client.post(
        "/api/stories/generate", json={"story_about": "other_character"}, headers=auth_headers
    )
    assert response.status_code == 400

    response = client.post(
        "/api/stories/generate", json={"custom_prompt": "hi"}, headers=auth_headers
    )
    assert response.status_code == 400


def test_generate_story_requires_auth(client: TestClient):
    """Test starting a generation needs a bearer token."""
    response = client.post("/api/stories/generate", json={"theme": "ocean"})
    assert response.status_code == 401


def test_queue_unavailable_leaves_request_pending(
    client: TestClient, auth_headers: dict, active_profile: dict, db_session: Session
):
    """If the broker is down the request is still tracked as pending."""
    def broken_dispatch(request_id: str) -> None:
        raise OperationalError("Connection refused")

    app.dependency_overrides[get_dispatcher] = lambda: broken_dispatch

    started = start(client, auth_headers, theme="ocean")
    assert started["status"] == "pending"
    request = db_session.get(GenerationRequest, started["requestId"])
    assert request.status == GenerationStatus.PENDING.value


def test_status_of_foreign_request(
    client: TestClient, auth_headers: dict, other_auth_headers: dict, active_profile: dict
):
    """Test another parent's request looks missing."""
    started = start(client, auth_headers, theme="ocean")

    response = client.get(
        f"/api/generate-story/{started['requestId']}/status", headers=other_auth_headers
    )
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Generation request not found"

    response = client.get("/api/generate-story/unknown/status", headers=auth_headers)
    assert response.status_code == 404


class TestGenerationTracker:
    """Tests for the generation request state machine."""

    @pytest.fixture
    def profile(self, client, auth_headers, active_profile, db_session):
        return db_session.get(ChildProfile, active_profile["id"])

    def test_create_without_profile(self, db_session):
        """Test creating without any profile raises a validation error."""
        tracker = GenerationTracker(db_session)
        with pytest.raises(ValidationError):
            tracker.create("user-without-profiles", GenerateStoryRequest(theme="ocean"))

    def test_second_run_is_a_no_op(self, db_session, profile, make_generator):
        """A request is generated at most once."""
        generator = make_generator()
        tracker = GenerationTracker(db_session, generator=generator)
        request = tracker.create(profile.user_id, GenerateStoryRequest(theme="ocean"))

        first = asyncio.run(tracker.run(request.id))
        story_id = first.story_id
        second = asyncio.run(tracker.run(request.id))

        assert second.status == GenerationStatus.COMPLETED.value
        assert second.story_id == story_id
        assert len(generator.calls) == 1
        assert db_session.query(Story).count() == 1

    def test_failed_request_is_never_retried(self, db_session, profile, make_generator):
        """Test a failed request stays failed even if run again."""
        request = GenerationTracker(db_session).create(
            profile.user_id, GenerateStoryRequest(theme="space")
        )
        failing = GenerationTracker(
            db_session, generator=make_generator(error=GenerationError("No story generated"))
        )
        asyncio.run(failing.run(request.id))

        working = make_generator()
        result = asyncio.run(GenerationTracker(db_session, generator=working).run(request.id))

        assert result.status == GenerationStatus.FAILED.value
        assert result.error_message == "No story generated"
        assert working.calls == []

    def test_run_times_out(self, db_session, profile, make_generator):
        """Test a slow generator is cut off by the tracker timeout."""
        tracker = GenerationTracker(
            db_session, generator=make_generator(delay=1.0), timeout=0.05
        )
        request = tracker.create(profile.user_id, GenerateStoryRequest(theme="ocean"))

        result = asyncio.run(tracker.run(request.id))

        assert result.status == GenerationStatus.FAILED.value
        assert "timed out" in result.error_message
        assert result.story_id is None

    def test_story_is_saved_before_completion(self, db_session, profile, make_generator):
        """If the story cannot be saved the request fails instead of completing."""
        tracker = GenerationTracker(db_session, generator=make_generator())
        request = tracker.create(profile.user_id, GenerateStoryRequest(theme="ocean"))

        with patch.object(StoryStore, "create", side_effect=SQLAlchemyError("disk full")):
            result = asyncio.run(tracker.run(request.id))

        assert result.status == GenerationStatus.FAILED.value
        assert result.error_message == "Failed to save story"
        assert result.story_id is None
        assert db_session.query(Story).count() == 0

    def test_deleted_profile_fails_request(self, db_session, profile, make_generator):
        """Test a request whose profile was deleted before it ran."""
        generator = make_generator()
        tracker = GenerationTracker(db_session, generator=generator)
        request = tracker.create(profile.user_id, GenerateStoryRequest(theme="ocean"))
        ProfileStore(db_session).delete(profile.user_id, profile.id)

        result = asyncio.run(tracker.run(request.id))

        assert result.status == GenerationStatus.FAILED.value
        assert result.error_message == "Child profile not found"
        assert generator.calls == []

    def test_other_character_name_is_passed_on(self, db_session, profile, make_generator):
        """Test custom character parameters reach the generator."""
        generator = make_generator()
        tracker = GenerationTracker(db_session, generator=generator)
        request = tracker.create(
            profile.user_id,
            GenerateStoryRequest(story_about="other_character", custom_character_name="Pip"),
        )

        asyncio.run(tracker.run(request.id))

        params = generator.calls[0][1]
        assert params.character_name_override == "Pip"

    def test_fail_ignores_requests_not_generating(self, db_session, profile):
        """Test fail() only acts on requests in generating."""
        tracker = GenerationTracker(db_session)
        request = tracker.create(profile.user_id, GenerateStoryRequest(theme="ocean"))

        tracker.fail(request, "should not apply")

        assert request.status == GenerationStatus.PENDING.value
        assert request.error_message is None

    def test_fail_stale(self, db_session, profile):
        """Test requests stuck in generating are failed."""
        tracker = GenerationTracker(db_session)
        stuck = tracker.create(profile.user_id, GenerateStoryRequest(theme="ocean"))
        fresh = tracker.create(profile.user_id, GenerateStoryRequest(theme="space"))
        for request in (stuck, fresh):
            assert tracker.claim(request.id)
        db_session.expire_all()
        stuck = db_session.get(GenerationRequest, stuck.id)
        stuck.started_at = datetime.now(timezone.utc) - timedelta(hours=1)
        db_session.commit()

        assert tracker.fail_stale() == 1

        db_session.expire_all()
        assert db_session.get(GenerationRequest, stuck.id).status == GenerationStatus.FAILED.value
        assert (
            db_session.get(GenerationRequest, fresh.id).status
            == GenerationStatus.GENERATING.value
        )

    def test_pending_for_dispatch(self, db_session, profile):
        """Only old pending requests are picked up for re-dispatch."""
        tracker = GenerationTracker(db_session)
        old = tracker.create(profile.user_id, GenerateStoryRequest(theme="ocean"))
        tracker.create(profile.user_id, GenerateStoryRequest(theme="space"))
        old.created_at = datetime.now(timezone.utc) - timedelta(minutes=10)
        db_session.commit()

        assert tracker.pending_for_dispatch() == [old.id]

    def test_illustrations_are_attached(self, db_session, profile, make_generator):
        """Test illustrations are requested and stored with the story."""
        illustrator = AsyncMock(spec=IllustrationService)
        illustrator.generate.return_value = ["https://images.example.com/1.png"]
        tracker = GenerationTracker(
            db_session, generator=make_generator(), illustrator=illustrator
        )
        request = tracker.create(
            profile.user_id, GenerateStoryRequest(theme="ocean", include_illustrations=True)
        )

        result = asyncio.run(tracker.run(request.id))

        illustrator.generate.assert_awaited_once_with("Mira", "ocean", "watercolor")
        story = db_session.get(Story, result.story_id)
        assert story.illustrations == ["https://images.example.com/1.png"]

    def test_request_failed_meanwhile_stays_failed(
        self, db_session, session_factory, profile, make_generator
    ):
        """A request failed by another worker while illustrating is not completed later."""
        created = {}

        async def fail_meanwhile(character, theme, art_style):
            other = session_factory()
            try:
                stale = other.get(GenerationRequest, created["request"])
                GenerationTracker(other).fail(stale, "Story generation timed out")
            finally:
                other.close()
            return ["https://images.example.com/1.png"]

        illustrator = AsyncMock(spec=IllustrationService)
        illustrator.generate.side_effect = fail_meanwhile
        tracker = GenerationTracker(
            db_session, generator=make_generator(), illustrator=illustrator
        )
        request = tracker.create(
            profile.user_id, GenerateStoryRequest(theme="ocean", include_illustrations=True)
        )
        created["request"] = request.id

        result = asyncio.run(tracker.run(request.id))

        assert result.status == GenerationStatus.FAILED.value
        assert result.error_message == "Story generation timed out"
        assert result.story_id is None
        assert db_session.query(Story).count() == 0

    def test_fail_does_not_overwrite_finished_request(self, db_session, session_factory, profile):
        """Test fail() checks the stored status, not the loaded one."""
        tracker = GenerationTracker(db_session)
        request = tracker.create(profile.user_id, GenerateStoryRequest(theme="ocean"))
        tracker.claim(request.id)
        db_session.expire_all()
        request = db_session.get(GenerationRequest, request.id)
        assert request.status == GenerationStatus.GENERATING.value

        other = session_factory()
        other.get(GenerationRequest, request.id).status = GenerationStatus.COMPLETED.value
        other.commit()
        other.close()

        tracker.fail(request, "Too late")

        assert request.status == GenerationStatus.COMPLETED.value
        assert request.error_message is None

    def test_slow_illustrations_are_skipped(self, db_session, profile, make_generator):
        """Test illustrations are cut off by their own timeout and the story still saves."""

        async def never_finishes(character, theme, art_style):
            await asyncio.sleep(5)
            return ["https://images.example.com/late.png"]

        illustrator = AsyncMock(spec=IllustrationService)
        illustrator.generate.side_effect = never_finishes
        tracker = GenerationTracker(
            db_session,
            generator=make_generator(),
            illustrator=illustrator,
            illustration_timeout=0.05,
        )
        request = tracker.create(
            profile.user_id, GenerateStoryRequest(theme="ocean", include_illustrations=True)
        )

        result = asyncio.run(tracker.run(request.id))

        assert result.status == GenerationStatus.COMPLETED.value
        assert db_session.get(Story, result.story_id).illustrations == []
