"""Health check endpoint: no dependencies, always available."""

from fastapi import APIRouter

from audit_query.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """Returns the application status and whether AI analysis is configured."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "ai_analysis": bool(settings.openrouter_api_key.strip()),
    }
