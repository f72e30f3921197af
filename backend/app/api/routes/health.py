"""
Health check endpoints
"""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_ledger
from app.core.exceptions import StoreUnavailable
from app.services.ledger import LedgerStore

router = APIRouter()

PROBE_EMAIL = "healthcheck@kiaora-oracle.invalid"


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "kiaora-oracle-api"}


@router.get("/health/ledger")
async def ledger_health_check(ledger: LedgerStore = Depends(get_ledger)):
    """Check consultation ledger connectivity."""
    try:
        # A lookup for an address that never consults exercises the read path
        await ledger.find_by_email(PROBE_EMAIL)
        return {
            "status": "healthy",
            "ledger": "connected",
            "backend": type(ledger).__name__
        }
    except StoreUnavailable as e:
        return {
            "status": "unhealthy",
            "ledger": "disconnected",
            "backend": type(ledger).__name__,
            "error": str(e)
        }
