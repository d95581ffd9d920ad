"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from majubersama_pos.api.middleware import RequestIDMiddleware, MetricsMiddleware
from majubersama_pos.api.v1 import auth, backup, customers, debts, products, purchasing, reports, sales
from majubersama_pos.domain.exceptions import DomainException
from majubersama_pos.infrastructure.database.session import init_db
from majubersama_pos.infrastructure.observability.logging import setup_logging
from majubersama_pos.services.locks import EntityLocks
from majubersama_pos.config import settings

# Setup structured logging
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready", extra={"database_url": settings.database_url.split("@")[-1]})
    yield


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Surface domain errors as 4xx JSON; the endpoint session has already rolled back"""
    logger.warning(
        exc.message,
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "error_code": exc.error_code,
            "path": request.url.path,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Maju Bersama POS",
        description="Point of sale, customer debt ledger and purchasing service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.entity_locks = EntityLocks()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name, "store": settings.store_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(products.router, prefix="/v1", tags=["products"])
    app.include_router(customers.router, prefix="/v1", tags=["customers"])
    app.include_router(debts.router, prefix="/v1", tags=["debts"])
    app.include_router(sales.router, prefix="/v1", tags=["sales"])
    app.include_router(purchasing.router, prefix="/v1", tags=["purchasing"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(backup.router, prefix="/v1", tags=["backup"])

    return app


app = create_app()
