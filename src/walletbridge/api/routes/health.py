"""Liveness and configuration checks for the wallet API."""

from fastapi import APIRouter, Request

from walletbridge import __version__
from walletbridge.chains import get_all_chains

router = APIRouter()

SERVICE_NAME = "walletbridge"


@router.get("/health")
async def health_check():
    """Liveness check."""
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Version, served networks and the redacted settings the app runs with."""
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": __version__,
        "networks": [chain.network.value for chain in get_all_chains()],
        "solana_endpoints": len(settings.solana_endpoints),
        "config": settings.get_safe_dict(),
    }
