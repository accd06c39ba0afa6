"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finance_flow.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finance_flow.api.v1 import advice, data, expenses, incomes, references, summary
from finance_flow.infrastructure.database.session import init_db
from finance_flow.infrastructure.observability.logging import setup_logging
from finance_flow.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finance Flow",
        description="Personal finance tracking: incomes, installment expenses and monthly summaries",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
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
    app.include_router(expenses.router, prefix="/v1", tags=["expenses"])
    app.include_router(incomes.router, prefix="/v1", tags=["incomes"])
    app.include_router(summary.router, prefix="/v1", tags=["summary"])
    app.include_router(references.router, prefix="/v1", tags=["references"])
    app.include_router(data.router, prefix="/v1", tags=["data"])
    app.include_router(advice.router, prefix="/v1", tags=["advice"])

    return app


app = create_app()
