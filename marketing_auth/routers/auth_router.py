# marketing_auth/routers/auth_router.py
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from marketing_auth.dependencies.services import get_credential_store, get_oauth_service
from marketing_auth.infrastructure.credential_store import CredentialStore
from marketing_auth.schemas.connection_schema import DisconnectResponse, VerifyResponse
from marketing_auth.services.oauth_service import OAuthCallbackError, OAuthService
from marketing_auth.services.providers import OAUTH2_PLATFORMS

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

TWITTER_REQUEST_TOKEN_KEY = "twitter_request_token"


def landing_redirect(platform: str, status: str) -> RedirectResponse:
    return RedirectResponse(f"/?platform={platform}&status={status}", status_code=302)


def error_json(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


# ---------- connection queries ----------
@router.get("/connected")
async def connected(store: CredentialStore = Depends(get_credential_store)):
    try:
        return await store.get_connected_platforms()
    except Exception as e:
        logger.exception("connected_list_failed", error=str(e))
        return error_json("Failed to get connected accounts")


@router.get("/verify/{platform}/{user_id}", response_model=VerifyResponse)
async def verify(platform: str, user_id: str, store: CredentialStore = Depends(get_credential_store)):
    try:
        return {"valid": await store.verify_token(platform, user_id)}
    except Exception as e:
        logger.exception("token_verify_failed", platform=platform, user_id=user_id, error=str(e))
        return error_json("Failed to verify token")


@router.post("/disconnect/{platform}/{user_id}", response_model=DisconnectResponse)
async def disconnect(platform: str, user_id: str, store: CredentialStore = Depends(get_credential_store)):
    try:
        return {"success": await store.remove_token(platform, user_id)}
    except Exception as e:
        logger.exception("disconnect_failed", platform=platform, user_id=user_id, error=str(e))
        return error_json("Failed to disconnect account")


@router.get("/profile/{platform}")
async def profile(platform: str, store: CredentialStore = Depends(get_credential_store)):
    try:
        cached = await store.get_profile(platform)
    except Exception as e:
        logger.exception("profile_fetch_failed", platform=platform, error=str(e))
        return error_json("Failed to fetch profile")
    if cached is None:
        return error_json("Profile not found", status_code=404)
    return cached


# ---------- Twitter (OAuth1) ----------
@router.get("/twitter")
async def twitter_start(request: Request, svc: OAuthService = Depends(get_oauth_service)):
    try:
        url, request_token = await svc.start_twitter()
    except Exception as e:
        logger.exception("twitter_auth_start_failed", error=str(e))
        return error_json("Failed to initialize Twitter authentication")
    request.session[TWITTER_REQUEST_TOKEN_KEY] = request_token
    return RedirectResponse(url, status_code=302)


@router.get("/twitter/callback")
async def twitter_callback(
    request: Request,
    oauth_token: Optional[str] = None,
    oauth_verifier: Optional[str] = None,
    svc: OAuthService = Depends(get_oauth_service),
):
    try:
        await svc.complete_twitter(oauth_token, oauth_verifier, request.session.get(TWITTER_REQUEST_TOKEN_KEY))
    except OAuthCallbackError as e:
        logger.warning("oauth_callback_failed", platform="twitter", reason=type(e).__name__, error=str(e))
        return landing_redirect("twitter", "error")
    except Exception as e:
        logger.exception("oauth_callback_failed", platform="twitter", error=str(e))
        return landing_redirect("twitter", "error")
    request.session.pop(TWITTER_REQUEST_TOKEN_KEY, None)
    return landing_redirect("twitter", "connected")


# ---------- OAuth2 (facebook, linkedin, google, instagram) ----------
@router.get("/{platform}")
async def oauth2_start(platform: str, svc: OAuthService = Depends(get_oauth_service)):
    if platform not in OAUTH2_PLATFORMS:
        return error_json("Unsupported platform", status_code=404)
    return RedirectResponse(svc.authorize_url(platform), status_code=302)


@router.get("/{platform}/callback")
async def oauth2_callback(platform: str, code: Optional[str] = None, svc: OAuthService = Depends(get_oauth_service)):
    if platform not in OAUTH2_PLATFORMS:
        return error_json("Unsupported platform", status_code=404)
    try:
        await svc.complete_oauth2(platform, code)
    except OAuthCallbackError as e:
        logger.warning("oauth_callback_failed", platform=platform, reason=type(e).__name__, error=str(e))
        return landing_redirect(platform, "error")
    except Exception as e:
        logger.exception("oauth_callback_failed", platform=platform, error=str(e))
        return landing_redirect(platform, "error")
    return landing_redirect(platform, "connected")
