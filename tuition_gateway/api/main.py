"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from tuition_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from tuition_gateway.api.v1 import admin, applications, fees, payments
from tuition_gateway.domain.guard import PaymentGuard
from tuition_gateway.infrastructure.cache import ApplicationListCache
from tuition_gateway.infrastructure.database.models import Base
from tuition_gateway.infrastructure.database.session import engine
from tuition_gateway.infrastructure.observability.logging import setup_logging
from tuition_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Tuition Gateway",
        description="Tuition fee plans, installment schedules and payment reconciliation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Per-app state, never shared between app instances
    app.state.payment_guard = PaymentGuard()
    app.state.application_cache = ApplicationListCache()

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
    app.include_router(fees.router, prefix="/v1", tags=["fees"])
    app.include_router(applications.router, prefix="/v1", tags=["applications"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(admin.router, prefix="/v1", tags=["admin"])

    return app


app = create_app()
