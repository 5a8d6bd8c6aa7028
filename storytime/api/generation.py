"""Story generation API endpoints.

Starting a generation only records a pending request and hands its id to the
worker; clients then poll the status endpoint until it reports ``completed``
or ``failed``.
"""

import logging

from fastapi import APIRouter, Depends
from kombu.exceptions import OperationalError
from sqlalchemy.orm import Session

from storytime.api.deps import Dispatcher, get_current_user, get_dispatcher
from storytime.config import get_app_config
from storytime.database import get_db
from storytime.models.user import User
from storytime.schemas.envelope import ApiResponse, ok
from storytime.schemas.generation import (
    GenerateStoryRequest,
    GenerationStarted,
    GenerationStatusResponse,
)
from storytime.services.generation import GenerationTracker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])


def start_generation(
    params: GenerateStoryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    dispatch: Dispatcher = Depends(get_dispatcher),
) -> dict:
    """Track a new generation request and queue it for the worker."""
    request = GenerationTracker(db).create(user.id, params)
    try:
        dispatch(request.id)
    except OperationalError as e:
        # Left pending; the periodic dispatcher re-queues it.
        logger.warning(f"Could not queue generation request {request.id}: {e}")

    return ok(
        {
            "request_id": request.id,
            "status": request.status,
            "poll_interval_seconds": get_app_config().generation.get("poll_interval_seconds", 2),
        }
    )


router.add_api_route(
    "/api/stories/generate",
    start_generation,
    methods=["POST"],
    response_model=ApiResponse[GenerationStarted],
    status_code=202,
)
router.add_api_route(
    "/api/generate-story",
    start_generation,
    methods=["POST"],
    response_model=ApiResponse[GenerationStarted],
    status_code=202,
)


@router.get(
    "/api/generate-story/{request_id}/status",
    response_model=ApiResponse[GenerationStatusResponse],
)
def get_generation_status(
    request_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Get the current state of a generation request."""
    return ok(GenerationTracker(db).get_status(user.id, request_id))
