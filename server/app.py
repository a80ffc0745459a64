"""FastAPI application factory for the RCA knowledge base API."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config.database import RecordStore, open_record_store
from config.settings import AppSettings
from observability.prometheus_metrics import record_error, setup_prometheus_metrics
from services.assist import AssistService
from services.errors import RCAServiceError
from services.llm import LLMGateway
from services.records import RecordService
from services.solver import ProblemSolver

from .routes import create_assist_router, create_solver_router, records_router
from .schemas import error_envelope
from .security import setup_api_security, setup_rate_limiting

logger = logging.getLogger(__name__)


def _validation_error_text(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # Drop the leading "body"/"query"/"path" segment
        loc = ".".join(str(p) for p in err.get("loc", ())[1:]) or "request"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI, settings: AppSettings) -> None:
    """Map domain and framework errors to envelope responses."""

    async def service_error_handler(request: Request, exc: RCAServiceError):
        error = exc.error
        if exc.status_code >= 500:
            logger.error(f"{exc.message}: {exc.error}")
            if settings.is_production:
                error = None
        return JSONResponse(status_code=exc.status_code, content=error_envelope(exc.message, error))

    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_envelope("Validation failed", _validation_error_text(exc)),
        )

    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        record_error(type(exc).__name__, "api")
        error = None if settings.is_production else str(exc)
        return JSONResponse(status_code=500, content=error_envelope("Something went wrong!", error))

    app.add_exception_handler(RCAServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def create_app(settings: Optional[AppSettings] = None,
               store: Optional[RecordStore] = None,
               gateway: Optional[LLMGateway] = None) -> FastAPI:
    """Build the API.

    ``store`` and ``gateway`` replace the ones built from ``settings``; an
    injected store must already be initialized and is not closed on shutdown.
    """
    settings = settings or AppSettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store = store or await open_record_store(settings.database)
        app_gateway = gateway or LLMGateway(settings.llm)

        records = RecordService(app_store)
        app.state.settings = settings
        app.state.store = app_store
        app.state.gateway = app_gateway
        app.state.record_service = records
        app.state.assist_service = AssistService(app_store, app_gateway)
        app.state.solver = ProblemSolver(records, app_gateway, settings.llm.solver_max_tokens)

        logger.info(f"AI features: {'ENABLED' if app_gateway.configured else 'DISABLED (no API key)'}")
        try:
            yield
        finally:
            if gateway is None:
                await app_gateway.close()
            if store is None:
                await app_store.close()

    app = FastAPI(title="RCA Knowledge Base API", version=settings.version, lifespan=lifespan)

    setup_prometheus_metrics(app, settings.version, settings.environment)
    setup_api_security(app, settings.allowed_origins, settings.is_production)
    limiter = setup_rate_limiting(app, settings.rate_limit_enabled, settings.rate_limit_storage)
    register_exception_handlers(app, settings)

    app.include_router(records_router)
    app.include_router(create_assist_router(limiter, settings.rate_limit_ai))
    app.include_router(create_solver_router(limiter, settings.rate_limit_ai))

    @app.get("/api/health", tags=["health"])
    async def health(request: Request):
        """Liveness plus AI and database status."""
        body = {
            "status": "ok",
            "message": "RCA System API is running",
            "aiEnabled": request.app.state.gateway.configured,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            body["database"] = await request.app.state.store.get_database_stats()
        except Exception as e:
            logger.warning(f"Database stats unavailable: {e}")
            body["database"] = {"status": "unavailable"}
        return body

    return app
