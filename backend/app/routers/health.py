"""Health check router."""

from fastapi import APIRouter, Depends

from ..dependencies import get_settings
from ..services.config import Settings

router = APIRouter()


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "tf2-price-tracker",
        "version": "1.0.0",
        "credential_configured": settings.has_api_key,
    }
