"""Health checks for the booking API, its database and the hold sweep broker"""
from datetime import datetime
from typing import Callable, Dict

import redis
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.api.dependencies import get_clock
from app.config.database import get_db
from app.config.settings import get_settings
from app.repositories.hold_repository import HoldRepository

health_router = APIRouter()


@health_router.get("")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "salon-booking-api"}


def check_broker(url: str) -> str:
    """Ping the Redis broker that carries the hold sweep"""
    client = redis.Redis.from_url(url, socket_connect_timeout=2, socket_timeout=2)
    try:
        client.ping()
        return "healthy"
    except redis.RedisError as e:
        return f"unhealthy: {str(e)}"
    finally:
        client.close()


def hold_stats(db: Session, now: datetime) -> Dict[str, int]:
    """Live holds, and expired rows the sweep has not removed yet"""
    return {
        "live": HoldRepository.count_live(db, now),
        "awaiting_sweep": HoldRepository.count_expired(db, now),
    }


@health_router.get("/detailed")
def detailed_health_check(
        db: Session = Depends(get_db),
        now_fn: Callable[[], datetime] = Depends(get_clock)
):
    """Detailed health check with dependencies; runs in the threadpool"""
    checks = {
        "api": "healthy",
        "database": "unknown",
        "broker": "unknown",
        "overall": "unknown"
    }

    # Check database and the hold table together
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
        checks["holds"] = hold_stats(db, now_fn())
    except Exception as e:
        db.rollback()
        checks["database"] = f"unhealthy: {str(e)}"

    checks["broker"] = check_broker(get_settings().CELERY_BROKER_URL)

    # Overall status
    statuses = (checks["api"], checks["database"], checks["broker"])
    checks["overall"] = "healthy" if all(status == "healthy" for status in statuses) else "degraded"

    return checks
