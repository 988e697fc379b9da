# marketing_auth/routers/status_router.py
import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from marketing_auth.dependencies.services import get_credential_store
from marketing_auth.infrastructure.credential_store import CredentialStore
from marketing_auth.schemas.connection_schema import AuthStatus

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["status"])


@router.get("/status", response_model=AuthStatus)
async def auth_status(store: CredentialStore = Depends(get_credential_store)):
    try:
        connected = await store.get_connected_platforms()
    except Exception as e:
        logger.exception("auth_status_failed", error=str(e))
        return JSONResponse({"error": "Failed to check authentication status"}, status_code=500)
    return {"isAuthenticated": len(connected) > 0, "connectedPlatforms": connected}
