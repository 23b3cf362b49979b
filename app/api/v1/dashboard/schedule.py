# ============================================================================
# FILE: app/api/v1/dashboard/schedule.py
# Staff schedule management - weekly hours, date overrides, time off
# ============================================================================
import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_schedule_service
from app.schemas.schedule import DateOverrideRequest, TimeOffRequest, WeeklyScheduleRequest
from app.services.exceptions import BookingSystemError
from app.services.schedule.schedule_service import ScheduleService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/staff", tags=["dashboard-schedule"])


@router.get("/{staff_id}/schedule")
def get_schedule(
        staff_id: UUID,
        schedules: ScheduleService = Depends(get_schedule_service)
):
    """Weekly rules, overrides and upcoming bookings for a staff member"""
    return schedules.get_schedule(staff_id)


@router.put("/{staff_id}/schedule")
def set_weekly_schedule(
        staff_id: UUID,
        request: WeeklyScheduleRequest,
        schedules: ScheduleService = Depends(get_schedule_service)
):
    """
    Replace weekly hours for the listed days.
    Returns 409 with the conflicting bookings unless force=true.
    """
    try:
        return schedules.set_weekly_schedule(staff_id, request.days, force=request.force)
    except BookingSystemError:
        raise
    except Exception as e:
        logger.error(f"Error updating schedule for staff {staff_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update schedule")


@router.post("/{staff_id}/schedule/default")
def create_default_schedule(
        staff_id: UUID,
        schedules: ScheduleService = Depends(get_schedule_service)
):
    return schedules.create_default_schedule(staff_id)


@router.put("/{staff_id}/overrides/{override_date}")
def set_date_override(
        staff_id: UUID,
        override_date: date,
        request: DateOverrideRequest,
        schedules: ScheduleService = Depends(get_schedule_service)
):
    return schedules.set_date_override(
        staff_id, override_date, request, reason=request.reason, force=request.force
    )


@router.delete("/{staff_id}/overrides/{override_date}")
def clear_date_override(
        staff_id: UUID,
        override_date: date,
        force: bool = Query(False),
        schedules: ScheduleService = Depends(get_schedule_service)
):
    return schedules.clear_date_override(staff_id, override_date, force=force)


@router.post("/{staff_id}/time-off")
def set_time_off(
        staff_id: UUID,
        request: TimeOffRequest,
        schedules: ScheduleService = Depends(get_schedule_service)
):
    return schedules.set_time_off(
        staff_id, request.start_date, request.end_date, reason=request.reason, force=request.force
    )
