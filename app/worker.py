"""
Hold sweep worker.

Runs the maintenance queue with an embedded beat scheduler. On startup it
sweeps once so holds that expired while no worker was running get their
expiry analytics without waiting for the first beat tick.
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from app.config.celery_config import celery_app
from app.config.settings import get_settings
from app.tasks.hold_tasks import cleanup_expired_holds
from app.utils.my_logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

settings = get_settings()


def sweep_on_startup() -> None:
    """Queue one sweep right away instead of waiting a full interval"""
    cleanup_expired_holds.apply_async(queue="maintenance")
    logger.info(
        f"Queued startup hold sweep; beat repeats it every "
        f"{settings.HOLD_CLEANUP_INTERVAL_SECONDS}s"
    )


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    sweep_on_startup()


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    logger.info("Hold sweep worker shutting down")


def worker_argv(concurrency: int = 1) -> list:
    """Command line for a maintenance-queue worker with embedded beat"""
    return [
        "worker",
        "--beat",
        "--loglevel=info",
        f"--concurrency={concurrency}",
        "--queues=maintenance",
        "--max-tasks-per-child=1000",
    ]


if __name__ == "__main__":
    celery_app.start(worker_argv())
