# palletflow/api/routers/health.py

from fastapi import APIRouter, Request

from palletflow.config.settings import get_settings

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Liveness plus in-flight database sessions. No actor required."""
    settings = get_settings()
    database = getattr(request.app.state, "database", None)
    return {
        "status": "ok",
        "correlation_id": request.state.correlation_id,
        "environment": settings.environment,
        "version": settings.version,
        "database_in_flight": database.in_flight if database is not None else None,
    }
