"""Story generation tasks."""

import asyncio
import logging

from storytime.celery_app import app
from storytime.database import SessionLocal
from storytime.models.generation_request import GenerationRequest
from storytime.services.generation import GenerationTracker

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run an async coroutine in a sync context."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@app.task
def generate_story(request_id: str) -> dict:
    """Generate the story for a tracked request.

    Never retried: a failure is recorded on the request and the client has
    to start a new generation.

    Args:
        request_id: ID of the generation request to run

    Returns:
        dict with the request's final status
    """
    db = SessionLocal()
    try:
        tracker = GenerationTracker(db)
        try:
            request = run_async(tracker.run(request_id))
        except Exception as e:
            logger.exception(f"Unexpected error generating story for request {request_id}: {e}")
            db.rollback()
            request = db.get(GenerationRequest, request_id)
            if request is not None:
                tracker.fail(request, "Unexpected error occurred during story generation")

        if request is None:
            return {"success": False, "error": "Generation request not found"}
        return {
            "success": request.status == "completed",
            "request_id": request_id,
            "status": request.status,
            "story_id": request.story_id,
        }

    finally:
        db.close()


@app.task
def dispatch_pending_requests() -> dict:
    """Re-enqueue pending requests that no worker has picked up.

    Covers queue messages lost before a worker claimed them. A request that
    is already generating is left alone, so this never retries work.
    """
    db = SessionLocal()
    try:
        request_ids = GenerationTracker(db).pending_for_dispatch()
        for request_id in request_ids:
            generate_story.delay(request_id)

        logger.info(f"Queued {len(request_ids)} pending generation requests")
        return {"queued": len(request_ids)}

    finally:
        db.close()


@app.task
def fail_stale_requests() -> dict:
    """Mark requests stuck in generating as failed."""
    db = SessionLocal()
    try:
        failed = GenerationTracker(db).fail_stale()
        if failed:
            logger.warning(f"Marked {failed} stale generation requests as failed")
        return {"failed": failed}

    finally:
        db.close()
