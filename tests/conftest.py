"""Pytest configuration and fixtures."""

import asyncio
import os
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["REPLICATE_API_TOKEN"] = ""

from storytime.api.deps import get_dispatcher
from storytime.database import Base, get_db
from storytime.main import app
from storytime.services.generation import GenerationTracker
from storytime.services.story_generator import GeneratedStory

OCEAN_STORY = (
    "Mira took a deep breath and dove beneath the waves. "
    "A friendly turtle showed her a garden of glowing coral, "
    "and together they found the lost pearl of the reef."
)


class FakeStoryGenerator:
    """Content generator that returns a canned story or raises a set error."""

    def __init__(
        self,
        title: str = "Deep Dive",
        content: str = OCEAN_STORY,
        error: Exception | None = None,
        delay: float = 0,
    ) -> None:
        self.title = title
        self.content = content
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate(self, profile, params) -> GeneratedStory:
        self.calls.append((profile.id, params))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return GeneratedStory(
            title=self.title,
            content=self.content,
            prompt=f"Write a bedtime story for {profile.name}",
        )


@pytest.fixture
def engine():
    """Create an in-memory database shared by every session in a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a new database session for a test."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def story_generator() -> FakeStoryGenerator:
    return FakeStoryGenerator()


@pytest.fixture
def make_generator() -> Callable[..., FakeStoryGenerator]:
    return FakeStoryGenerator


@pytest.fixture
def dispatched() -> list[str]:
    """Request ids handed to the worker queue."""
    return []


@pytest.fixture
def worker(
    db_session: Session, dispatched: list[str], story_generator: FakeStoryGenerator
) -> Callable[[], list]:
    """Run every queued generation request the way the Celery worker would."""

    def run_queued() -> list:
        results = []
        while dispatched:
            request_id = dispatched.pop(0)
            tracker = GenerationTracker(db_session, generator=story_generator)
            results.append(asyncio.run(tracker.run(request_id)))
        return results

    return run_queued


@pytest.fixture
def client(db_session: Session, dispatched: list[str]) -> Generator[TestClient, None, None]:
    """Create a test client with database session and queue overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatched.append
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register_and_login(client: TestClient, email: str, password: str = "bedtime-stories") -> dict:
    client.post("/api/auth/register", json={"email": email, "password": password})
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client: TestClient) -> dict:
    """Bearer headers for a freshly registered parent."""
    return register_and_login(client, "parent@example.com")


@pytest.fixture
def other_auth_headers(client: TestClient) -> dict:
    """Bearer headers for a second, unrelated parent."""
    return register_and_login(client, "neighbour@example.com")


@pytest.fixture
def active_profile(client: TestClient, auth_headers: dict) -> dict:
    """A child profile that has been activated."""
    response = client.post(
        "/api/profiles",
        json={
            "name": "Mira",
            "age": 7,
            "reading_level": "intermediate",
            "interests": ["ocean", "turtles"],
        },
        headers=auth_headers,
    )
    profile = response.json()["data"]
    client.post(f"/api/profiles/{profile['id']}/activate", headers=auth_headers)
    return profile
