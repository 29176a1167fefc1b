"""Runtime config endpoint for frontend consumption."""
from __future__ import annotations

from fastapi import APIRouter

from ..config import get_settings

router = APIRouter(tags=["config"])


@router.get("/config")
async def get_config() -> dict:
    """Expose non-sensitive render defaults and the poll budget."""
    settings = get_settings()
    return {
        "defaultWidth": settings.DEFAULT_WIDTH,
        "defaultHeight": settings.DEFAULT_HEIGHT,
        "defaultModel": settings.DEFAULT_MODEL,
        "defaultSampler": settings.DEFAULT_SAMPLER,
        "pollIntervalSeconds": settings.POLL_INTERVAL_SECONDS,
        "pollMaxAttempts": settings.POLL_MAX_ATTEMPTS,
    }
