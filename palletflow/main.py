# palletflow/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from palletflow.api.middleware import (
    ActorContextMiddleware,
    AuditTriggerMiddleware,
    CorrelationIdMiddleware,
)
from palletflow.api.routers import health, pallets
from palletflow.application.exceptions import (
    ApplicationError,
    ConcurrencyConflictError,
    StorageFailureError,
)
from palletflow.config.logging import configure_logging
from palletflow.config.settings import get_settings
from palletflow.domain.exceptions import (
    DomainError,
    DomainValidationError,
    DuplicatePalletIdError,
    InvalidStatusError,
    PalletNotFoundError,
)
from palletflow.infrastructure.database.session import Database
from palletflow.security.exceptions import AuthenticationError, AuthorizationError

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared pool on startup; drain and dispose it on shutdown."""
    database = Database.from_settings(settings)
    await database.connect()
    if settings.auto_create_schema:
        await database.create_schema()
    app.state.database = database
    try:
        yield
    finally:
        await database.shutdown()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Middleware order: last added runs first (outermost). Request flow: CorrelationId -> ActorContext -> AuditTrigger.
app.add_middleware(AuditTriggerMiddleware)
app.add_middleware(ActorContextMiddleware)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(InvalidStatusError)
async def invalid_status_error_handler(request, exc: InvalidStatusError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(DomainValidationError)
async def domain_validation_error_handler(request, exc: DomainValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(PalletNotFoundError)
async def pallet_not_found_error_handler(request, exc: PalletNotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(DuplicatePalletIdError)
async def duplicate_pallet_id_error_handler(request, exc: DuplicatePalletIdError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(DomainError)
async def domain_error_handler(request, exc: DomainError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(ConcurrencyConflictError)
async def concurrency_conflict_error_handler(request, exc: ConcurrencyConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(StorageFailureError)
async def storage_failure_error_handler(request, exc: StorageFailureError):
    return JSONResponse(status_code=503, content={"detail": exc.message})


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request, exc: AuthenticationError):
    return JSONResponse(status_code=401, content={"detail": exc.message})


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request, exc: AuthorizationError):
    return JSONResponse(status_code=403, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request, exc: Exception):
    logger.exception("unhandled_error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Routers: /health, /pallets
app.include_router(health.router)
app.include_router(pallets.router, prefix="/pallets")
