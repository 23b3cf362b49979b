# app/services/analytics/hold_analytics_service.py
"""
Hold analytics sink.

Writes go through a SAVEPOINT on the caller's session so a failed
analytics write never aborts or fails the surrounding hold/booking
transaction.
"""
import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.models.hold_analytics import HoldAnalytics
from app.utils.business_time import utc_now

logger = logging.getLogger(__name__)


class HoldAnalyticsRecorder:
    """Fire-and-forget recorder for hold created / converted / expired events"""

    def __init__(self, db: Session, now_fn: Callable[[], datetime] = utc_now):
        self.db = db
        self.now_fn = now_fn

    def record_hold_created(
            self,
            session_id: str,
            staff_id: UUID,
            service_id: UUID,
            hold_id: Optional[UUID] = None
    ) -> None:
        try:
            with self.db.begin_nested():
                self.db.add(HoldAnalytics(
                    hold_id=hold_id,
                    session_id=session_id,
                    staff_id=staff_id,
                    service_id=service_id,
                    held_at=self.now_fn(),
                    converted=False,
                ))
        except Exception:
            logger.error(f"Failed to record hold creation for session {session_id}", exc_info=True)

    def record_hold_converted(
            self,
            session_id: str,
            staff_id: UUID,
            service_id: UUID,
            hold_id: Optional[UUID] = None
    ) -> None:
        try:
            with self.db.begin_nested():
                query = self.db.query(HoldAnalytics).filter(HoldAnalytics.converted.is_(False))
                if hold_id:
                    query = query.filter(or_(
                        HoldAnalytics.hold_id == hold_id,
                        and_(
                            HoldAnalytics.hold_id.is_(None),
                            HoldAnalytics.session_id == session_id,
                            HoldAnalytics.staff_id == staff_id,
                            HoldAnalytics.service_id == service_id,
                        ),
                    ))
                else:
                    query = query.filter(
                        HoldAnalytics.session_id == session_id,
                        HoldAnalytics.staff_id == staff_id,
                        HoldAnalytics.service_id == service_id,
                    )
                updated = query.update({HoldAnalytics.converted: True}, synchronize_session=False)
            logger.debug(f"Marked {updated} hold analytics rows converted for session {session_id}")
        except Exception:
            logger.error(f"Failed to record hold conversion for session {session_id}", exc_info=True)

    def record_hold_expired(self, session_id: str, hold_id: Optional[UUID] = None) -> None:
        try:
            with self.db.begin_nested():
                query = self.db.query(HoldAnalytics).filter(
                    HoldAnalytics.converted.is_(False),
                    HoldAnalytics.expired_at.is_(None),
                )
                if hold_id:
                    query = query.filter(HoldAnalytics.hold_id == hold_id)
                else:
                    query = query.filter(HoldAnalytics.session_id == session_id)
                query.update({HoldAnalytics.expired_at: self.now_fn()}, synchronize_session=False)
        except Exception:
            logger.error(f"Failed to record hold expiry for session {session_id}", exc_info=True)
