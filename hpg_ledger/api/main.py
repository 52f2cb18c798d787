"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from hpg_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from hpg_ledger.api.v1 import assessments, customers, history, loans, plan
from hpg_ledger.config import settings
from hpg_ledger.domain.exceptions import (
    AlreadyActive,
    CorruptLedgerData,
    CustomerNotFound,
    DuplicateAssessment,
    LedgerError,
    LoanAlreadySettled,
    LoanNotFound,
)
from hpg_ledger.infrastructure.database.models import Base
from hpg_ledger.infrastructure.database.session import engine
from hpg_ledger.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)

ERROR_STATUS = {
    CustomerNotFound: 404,
    LoanNotFound: 404,
    DuplicateAssessment: 409,
    AlreadyActive: 409,
    LoanAlreadySettled: 409,
    CorruptLedgerData: 503,
}


def status_for(error: LedgerError) -> int:
    """404 for unknown ids, 409 for state conflicts, 503 for unreadable storage, 422 otherwise"""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 422


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="HPG Tax & Lending Ledger",
        description="Tax assessments, micro-loans, EMI collection and trust scores",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        return JSONResponse(
            status_code=status_for(exc),
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(customers.router, prefix="/v1", tags=["customers"])
    app.include_router(assessments.router, prefix="/v1", tags=["assessments"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(plan.router, prefix="/v1", tags=["plan"])
    app.include_router(history.router, prefix="/v1", tags=["history"])

    return app


app = create_app()
