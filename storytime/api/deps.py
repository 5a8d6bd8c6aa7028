"""Shared request dependencies."""

from collections.abc import Callable
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storytime.database import get_db
from storytime.errors import AuthenticationError
from storytime.models.user import User
from storytime.services.auth import AuthService

bearer = HTTPBearer(auto_error=False)

Dispatcher = Callable[[str], Any]


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> str:
    if credentials is None:
        raise AuthenticationError("Access token required")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_bearer_token), db: Session = Depends(get_db)
) -> User:
    """Resolve the caller from the bearer token."""
    return AuthService(db).authenticate(token)


def get_dispatcher() -> Dispatcher:
    """Callable that hands a generation request to the background worker."""
    from storytime.tasks.generation_tasks import generate_story

    return generate_story.delay
