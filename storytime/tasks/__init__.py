"""Celery tasks for storytime."""

from storytime.tasks.generation_tasks import (
    dispatch_pending_requests,
    fail_stale_requests,
    generate_story,
)

__all__ = [
    "dispatch_pending_requests",
    "fail_stale_requests",
    "generate_story",
]
