"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from astral_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from astral_gateway.api.v1 import advisory, conversations, loans, plans, profiles, quotes, samples
from astral_gateway.infrastructure.observability.logging import setup_logging
from astral_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Astral Gateway",
        description="Vehicle financing and leasing service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(quotes.router, prefix="/v1", tags=["quotes"])
    app.include_router(profiles.router, prefix="/v1", tags=["profiles"])
    app.include_router(plans.router, prefix="/v1", tags=["plans"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(advisory.router, prefix="/v1", tags=["advisory"])
    app.include_router(conversations.router, prefix="/v1", tags=["conversations"])
    app.include_router(samples.router, prefix="/v1", tags=["samples"])

    return app


app = create_app()
