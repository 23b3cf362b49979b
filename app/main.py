"""
FastAPI application for the salon booking service

Availability, checkout holds, bookings and staff schedules
"""
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from contextlib import asynccontextmanager

from app.config.settings import get_settings
from app.core.errors import register_exception_handlers
from app.core.middleware import correlation_id_middleware, request_logging_middleware
from app.core.monitoring import health_router
from app.api.v1.router import api_v1_router
from app.utils.my_logging import setup_logging

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    setup_logging()
    print(f"🚀 {settings.APP_NAME} starting up...")
    print(f"🕒 Business timezone: {settings.BUSINESS_TIMEZONE}")
    print(f"⏳ Hold duration: {settings.HOLD_DURATION_SECONDS}s")
    print(f"❤️  Health check at /health")

    if settings.DEBUG:
        print("\n" + "="*80)
        print("📋 REGISTERED ROUTES:")
        print("="*80)

        routes_list = []
        for route in app.routes:
            if isinstance(route, APIRoute):
                for method in route.methods:
                    routes_list.append((method, route.path, route.name))

        for method, path, name in sorted(routes_list, key=lambda x: (x[1], x[0])):
            print(f"  {method:8} {path:50} ({name})")

        print("\n" + "="*80)
        print(f"✅ Total routes registered: {len(routes_list)}")
        print("="*80 + "\n")

    yield

    # Shutdown
    print(f"🛑 {settings.APP_NAME} shutting down...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Slot availability, checkout holds and double-booking-safe appointments",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
    )

    # Add custom middleware
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(correlation_id_middleware)

    register_exception_handlers(app)

    # Include routers
    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1", tags=["api"])

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "api": "/api/v1/",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
