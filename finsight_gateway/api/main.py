"""FastAPI application factory"""

from fastapi import FastAPI, Depends
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.responses import Response

from finsight_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finsight_gateway.api.v1 import insights, bureau
from finsight_gateway.infrastructure.database.session import get_db
from finsight_gateway.infrastructure.observability.logging import setup_logging
from finsight_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finsight Gateway",
        description="Statement insights and credit bureau checks",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check(db: Session = Depends(get_db)):
        try:
            db.execute(text("SELECT 1"))
            database = "connected"
        except SQLAlchemyError:
            database = "disconnected"
        return {"status": "ok", "service": settings.service_name, "database": database}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(insights.router, prefix="/v1", tags=["insights"])
    app.include_router(bureau.router, prefix="/v1", tags=["bureau"])

    return app


app = create_app()
