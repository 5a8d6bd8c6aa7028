"""Celery application configuration."""

from celery import Celery

from storytime.config import get_settings

settings = get_settings()

app = Celery(
    "storytime",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["storytime.tasks.generation_tasks"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Generation calls are slow; one at a time per worker process
    worker_prefetch_multiplier=1,
    # Result expiration
    result_expires=3600,  # 1 hour
    # Beat schedule for periodic tasks
    beat_schedule={
        "dispatch-pending-requests-every-minute": {
            "task": "storytime.tasks.generation_tasks.dispatch_pending_requests",
            "schedule": 60.0,
        },
        "fail-stale-requests-every-5-minutes": {
            "task": "storytime.tasks.generation_tasks.fail_stale_requests",
            "schedule": 300.0,
        },
    },
)
