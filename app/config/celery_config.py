# app/config/celery_config.py
"""Celery configuration, task routing and the periodic hold sweep"""
from celery import Celery
from kombu import Queue

from app.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create and configure Celery application"""

    celery_app = Celery(
        "salon_booking",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["app.tasks.hold_tasks"],
    )

    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,

        # Task routing
        task_routes={
            "app.tasks.hold_tasks.*": {"queue": "maintenance"},
        },

        # Queue definitions
        task_queues=(
            Queue("maintenance", routing_key="maintenance"),
        ),

        # Worker settings
        worker_max_tasks_per_child=1000,
        worker_prefetch_multiplier=1,
        task_acks_late=True,

        broker_connection_retry_on_startup=True,
    )

    # ========================================================================
    # BEAT SCHEDULE (periodic tasks)
    # ========================================================================
    celery_app.conf.beat_schedule = {
        # Holds expire lazily on read; this sweep records expiry analytics promptly
        "cleanup-expired-holds": {
            "task": "app.tasks.hold_tasks.cleanup_expired_holds",
            "schedule": float(settings.HOLD_CLEANUP_INTERVAL_SECONDS),
            "options": {"expires": max(settings.HOLD_CLEANUP_INTERVAL_SECONDS - 10, 5)},
        },
    }

    return celery_app


# Create the Celery app instance
celery_app = create_celery_app()
