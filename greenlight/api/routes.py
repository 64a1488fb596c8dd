"""Service health endpoint."""

from fastapi import APIRouter

from greenlight.config import APP_VERSION, get_settings
from greenlight.database import health_check

router = APIRouter(prefix="/v1", tags=["Health"])


@router.get("/healthcheck")
async def healthcheck() -> dict:
    """Report availability, environment, version and database status."""
    settings = get_settings()
    database_ok = await health_check()
    return {
        "status": "available",
        "system_info": {
            "environment": settings.environment,
            "version": APP_VERSION,
        },
        "database": "ok" if database_ok else "unavailable",
    }
