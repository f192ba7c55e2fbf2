"""Status endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from tokscrape.api.deps import get_app_settings, get_data_service
from tokscrape.config import Settings
from tokscrape.services.data_service import DataService

router = APIRouter(tags=["health"])


@router.get("/status")
async def status(settings: Settings = Depends(get_app_settings)) -> dict:
    """Basic liveness check."""
    return {
        "status": "online",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.api.environment,
    }


@router.get("/status/backend")
def backend_status(service: DataService = Depends(get_data_service)) -> dict:
    """Check the database is reachable."""
    return {
        "database": service.check_connection(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
