"""API middleware: correlation ID, actor context, audit trigger."""

import json
import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from palletflow.core.context import actor_id_ctx, correlation_id_ctx
from palletflow.domain.models.actor import Actor, Role

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
ACTOR_ID_HEADER = "X-Actor-ID"
ACTOR_ROLE_HEADER = "X-Actor-Role"
ACTOR_NAME_HEADER = "X-Actor-Name"

PUBLIC_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Generate or preserve correlation ID; attach to request.state, response header, and logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        correlation_id_ctx.set(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class ActorContextMiddleware(BaseHTTPMiddleware):
    """
    Read the actor resolved by the upstream authentication collaborator
    (X-Actor-ID, X-Actor-Role, X-Actor-Name). 401 if missing or role unknown.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in PUBLIC_PATHS:
            request.state.actor = None
            return await call_next(request)

        actor_id = (request.headers.get(ACTOR_ID_HEADER) or "").strip()
        role_value = (request.headers.get(ACTOR_ROLE_HEADER) or "").strip().lower()
        display_name = (request.headers.get(ACTOR_NAME_HEADER) or "").strip() or actor_id
        if not actor_id or not role_value:
            return JSONResponse(
                status_code=401,
                content={"detail": f"{ACTOR_ID_HEADER} and {ACTOR_ROLE_HEADER} headers are required"},
            )
        try:
            role = Role(role_value)
        except ValueError:
            return JSONResponse(
                status_code=401,
                content={"detail": f"Unknown actor role: {role_value}"},
            )

        request.state.actor = Actor(id=actor_id, role=role, display_name=display_name)
        actor_id_ctx.set(actor_id)
        return await call_next(request)


class AuditTriggerMiddleware(BaseHTTPMiddleware):
    """After response: log structured request audit event (correlation_id, actor_id, path, method, status_code)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        actor = getattr(request.state, "actor", None)
        audit_event = {
            "event": "request_audit",
            "correlation_id": getattr(request.state, "correlation_id", None),
            "actor_id": actor.id if actor else None,
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
        }
        logger.info(json.dumps(audit_event))
        return response
