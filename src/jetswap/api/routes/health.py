"""Health check endpoints."""

from fastapi import APIRouter, Depends

from jetswap import __version__
from jetswap.api.deps import get_services
from jetswap.bridge import BridgeService
from jetswap.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "jetswap"}


@router.get("/health/detailed")
async def detailed_health(services: BridgeService = Depends(get_services)):
    """Component status: audit mode, market tiers and the bridge session."""
    market_tiers = [p.name for p in services.market.providers]
    return {
        "status": "healthy",
        "service": "jetswap",
        "version": __version__,
        "components": {
            "audit": "remote" if services.pipeline.auditor.enabled else "offline",
            "market": market_tiers or "seed-only",
            "session": {
                "state": services.sessions.state.value,
                "watching": services.sessions.watching,
            },
        },
        "config": get_settings().get_safe_dict(),
    }
