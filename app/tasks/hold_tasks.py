# ===== app/tasks/hold_tasks.py =====
from app.config.celery_config import celery_app
from app.config.database import SessionLocal
from app.services.holds.hold_service import BookingHoldService
import logging

logger = logging.getLogger(__name__)


def run_hold_cleanup(session_factory=SessionLocal) -> int:
    """Sweep expired holds with a dedicated session"""
    db = session_factory()
    try:
        return BookingHoldService(db).cleanup_expired_holds()
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3)
def cleanup_expired_holds(self):
    """Periodic sweep; lazy eviction already keeps reads correct between runs"""
    try:
        removed = run_hold_cleanup()
        if removed:
            logger.info(f"Hold sweep removed {removed} expired hold(s)")
        return {"status": "success", "removed": removed}

    except Exception as exc:
        logger.error(f"Hold sweep failed: {exc}", exc_info=True)
        raise self.retry(exc=exc, countdown=10 * (self.request.retries + 1))
