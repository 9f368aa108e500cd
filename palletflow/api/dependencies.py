"""FastAPI dependency injection: database, unit of work, services, actor, capability checks."""

import logging
from typing import Annotated, Callable

from fastapi import Depends, Request

from palletflow.application.pallet_repository import UnitOfWorkFactory
from palletflow.application.pallet_service import PalletService
from palletflow.application.transition_engine import TransitionEngine
from palletflow.config.settings import AppSettings, get_settings
from palletflow.domain.models.actor import Actor
from palletflow.infrastructure.database.session import Database
from palletflow.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork
from palletflow.security.exceptions import AuthenticationError
from palletflow.security.rbac import RBACService

_rbac = RBACService()


def get_database(request: Request) -> Database:
    """Return the process-wide Database opened in the app lifespan."""
    return request.app.state.database


def get_uow_factory(
    database: Annotated[Database, Depends(get_database)],
) -> UnitOfWorkFactory:
    return lambda: SqlAlchemyUnitOfWork(database)


def get_transition_engine(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    settings: Annotated[AppSettings, Depends(get_settings)],
) -> TransitionEngine:
    return TransitionEngine(
        uow_factory,
        logging.getLogger("palletflow.transition_engine"),
        retry_attempts=settings.lock_retry_attempts,
        retry_backoff_seconds=settings.lock_retry_backoff_seconds,
    )


def get_pallet_service(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    settings: Annotated[AppSettings, Depends(get_settings)],
) -> PalletService:
    return PalletService(
        uow_factory,
        logging.getLogger("palletflow.pallet_service"),
        retry_attempts=settings.lock_retry_attempts,
        retry_backoff_seconds=settings.lock_retry_backoff_seconds,
    )


def get_actor(request: Request) -> Actor:
    """Extract the actor from request.state (set by ActorContextMiddleware)."""
    actor = getattr(request.state, "actor", None)
    if actor is None:
        raise AuthenticationError("No authenticated actor on request")
    return actor


def get_correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", "") or ""


def require_permission(action: str) -> Callable[..., Actor]:
    """Dependency factory: one capability check per entry point; yields the actor."""

    def _check(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
        _rbac.check_permission(actor, action)
        return actor

    return _check
