"""Router exposing basic system endpoints."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.config import Settings, get_settings
from app.routers.ai_coach import get_ai_factory
from app.services.ai.factory import AIServiceFactory, normalize_provider


router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/status")
async def get_status() -> dict[str, str]:
    """Return a minimal status payload."""
    return {"status": "online"}


@router.get("/ai")
async def get_ai_status(
    factory: Annotated[AIServiceFactory, Depends(get_ai_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict:
    """
    Report how the AI layer is configured without calling any provider.

    Returns:
        dict: {
            "provider": configured provider name,
            "supported": whether the provider is known,
            "credential_configured": bool,
            "cached_services": number of warm service instances
        }
    """
    provider = normalize_provider(settings.ai_provider)
    return {
        "provider": provider,
        "supported": provider in factory.supported_providers,
        "credential_configured": bool(settings.api_key_for(provider)),
        "model_override": settings.ai_model_name,
        "cached_services": len(factory),
    }
