"""
API v1 router setup
Organized into: public (customer checkout) and dashboard (staff schedule) routes
"""
from fastapi import APIRouter

from app.api.v1.public import availability, holds, bookings
from app.api.v1.dashboard import schedule

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (customer checkout flow)
# ============================================================================
api_v1_router.include_router(
    availability.router,
    tags=["Public"]
)

api_v1_router.include_router(
    holds.router,
    # No prefix needed - holds.router already has "/holds" prefix
    tags=["Public"]
)

api_v1_router.include_router(
    bookings.router,
    tags=["Public"]
)

# ============================================================================
# DASHBOARD ROUTES (staff schedule management)
# ============================================================================
api_v1_router.include_router(
    schedule.router,
    tags=["Dashboard"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """
    API information and available endpoints.
    """
    return {
        "version": "1.0",
        "endpoints": {
            "availability": "/api/v1/availability",
            "holds": "/api/v1/holds",
            "bookings": "/api/v1/bookings",
            "schedule": "/api/v1/staff/{staff_id}/schedule",
        }
    }
