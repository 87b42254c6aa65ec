"""FastAPI application entry point."""
from fastapi import FastAPI

from app.config import get_settings
from app.routers import ai_coach, health
from app.services.ai.factory import AIServiceFactory


app = FastAPI(title="AI Coach API")
app.state.ai_factory = AIServiceFactory(prompt_config_path=get_settings().prompt_config_path)


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Simple health probe for liveness checks."""
    return {"status": "ok"}


# Include routers
app.include_router(health.router)
app.include_router(ai_coach.router)
