"""Application error taxonomy.

Every error carries the HTTP status it maps to at the API boundary; the
exception handlers in ``storytime.main`` render them in the response envelope.
"""

from typing import Any


class StoryTimeError(Exception):
    """Base class for application errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(StoryTimeError):
    """Malformed or missing input."""

    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(StoryTimeError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Authentication required"


class NotFoundError(StoryTimeError):
    """Target does not exist or is not owned by the caller."""

    status_code = 404
    default_message = "Not found"


class ConflictError(StoryTimeError):
    """Request conflicts with existing state."""

    status_code = 409
    default_message = "Conflict"


class GenerationError(StoryTimeError):
    """Upstream text or image generation failed or returned unusable output."""

    status_code = 502
    default_message = "Failed to generate story"


class ContentSafetyError(GenerationError):
    """Generated content failed the profile's safety check."""

    default_message = "Generated story did not pass the content safety check"


class PersistenceError(StoryTimeError):
    """The storage layer failed."""

    status_code = 500
    default_message = "Database operation failed"
