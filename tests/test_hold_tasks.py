"""
Tests for the periodic expired-hold sweep.
"""

from datetime import timedelta
from unittest.mock import patch

from app.models import BookingHold, HoldAnalytics
from app.tasks.hold_tasks import run_hold_cleanup
from app.utils.business_time import utc_now
from helpers import WORK_DAY, local


def _insert_hold(db, salon, session_id, hour, expires_at):
    start = local(WORK_DAY, hour)
    hold = BookingHold(
        session_id=session_id,
        staff_id=salon.maya,
        service_id=salon.haircut,
        slot_datetime=start,
        slot_end_datetime=start + timedelta(minutes=60),
        duration_minutes=60,
        expires_at=expires_at,
        created_at=expires_at - timedelta(minutes=5),
    )
    db.add(hold)
    db.flush()
    db.add(HoldAnalytics(
        hold_id=hold.id,
        session_id=session_id,
        staff_id=salon.maya,
        service_id=salon.haircut,
        held_at=hold.created_at,
    ))
    db.commit()
    return hold.id


class TestHoldCleanupTask:

    def test_sweep_removes_only_expired_holds(self, db, salon, session_factory):
        now = utc_now()
        expired_id = _insert_hold(db, salon, "session-old", 10, now - timedelta(minutes=1))
        live_id = _insert_hold(db, salon, "session-new", 12, now + timedelta(days=30))
        db.close()

        removed = run_hold_cleanup(session_factory)

        assert removed == 1
        check = session_factory()
        try:
            assert check.get(BookingHold, expired_id) is None
            assert check.get(BookingHold, live_id) is not None

            expired_row = check.query(HoldAnalytics).filter(HoldAnalytics.hold_id == expired_id).one()
            live_row = check.query(HoldAnalytics).filter(HoldAnalytics.hold_id == live_id).one()
            assert expired_row.expired_at is not None
            assert live_row.expired_at is None
        finally:
            check.close()

    def test_sweep_is_idempotent(self, db, salon, session_factory):
        _insert_hold(db, salon, "session-old", 10, utc_now() - timedelta(minutes=1))
        db.close()

        assert run_hold_cleanup(session_factory) == 1
        assert run_hold_cleanup(session_factory) == 0

    def test_sweep_with_nothing_to_do(self, db, salon, session_factory):
        db.close()

        assert run_hold_cleanup(session_factory) == 0


class TestWorkerStartup:

    def test_startup_queues_one_sweep_on_maintenance_queue(self):
        from app import worker

        with patch("app.worker.cleanup_expired_holds") as task:
            worker.worker_ready_handler()

        task.apply_async.assert_called_once_with(queue="maintenance")

    def test_worker_command_line_runs_beat_on_maintenance_queue(self):
        from app.worker import worker_argv

        argv = worker_argv(concurrency=2)

        assert argv[0] == "worker"
        assert "--beat" in argv
        assert "--queues=maintenance" in argv
        assert "--concurrency=2" in argv

    def test_beat_schedule_runs_the_sweep(self):
        from app.config.celery_config import celery_app

        entry = celery_app.conf.beat_schedule["cleanup-expired-holds"]

        assert entry["task"] == "app.tasks.hold_tasks.cleanup_expired_holds"
        assert entry["schedule"] == 60.0
