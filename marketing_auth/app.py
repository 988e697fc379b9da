# marketing_auth/app.py
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware
import structlog

from marketing_auth.config import Settings, check_secrets
from marketing_auth.infrastructure.credential_store import CredentialStore
from marketing_auth.infrastructure.oauth_http_client import OAuthHTTPClient
from marketing_auth.infrastructure.token_cipher import TokenCipher
from marketing_auth.infrastructure.twitter_oauth_client import TwitterOAuthClient
from marketing_auth.middleware.logging import OAuthRequestLogMiddleware, configure_structlog
from marketing_auth.routers.auth_router import router as auth_router
from marketing_auth.routers.status_router import router as status_router
from marketing_auth.services.oauth_service import OAuthService
from marketing_auth.services.providers import OAUTH2_PLATFORMS, build_providers

configure_structlog()
logger = structlog.get_logger()

def build_oauth_service(settings: Settings, store: CredentialStore) -> OAuthService:
    client_id, client_secret, callback_url = settings.client_credentials("twitter")
    return OAuthService(
        store=store,
        providers=build_providers(settings),
        http_client=OAuthHTTPClient(timeout=settings.HTTP_TIMEOUT_SECONDS),
        twitter_client=TwitterOAuthClient(client_id, client_secret, callback_url),
    )

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CredentialStore] = None,
    oauth_service: Optional[OAuthService] = None,
) -> FastAPI:
    settings = settings or Settings()
    check_secrets(settings)

    if store is None:
        store = CredentialStore(settings.TOKENS_FILE, TokenCipher(settings.ENCRYPTION_KEY))
    if oauth_service is None:
        oauth_service = build_oauth_service(settings, store)

    app = FastAPI(title="Marketing Auth")
    app.state.settings = settings
    app.state.credential_store = store
    app.state.oauth_service = oauth_service

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        max_age=24 * 60 * 60,
        https_only=settings.COOKIE_SECURE,
    )
    app.add_middleware(OAuthRequestLogMiddleware, platforms=("twitter",) + OAUTH2_PLATFORMS)

    app.include_router(auth_router)
    app.include_router(status_router)

    @app.on_event("startup")
    async def on_startup():
        logger.info("app_startup", environment=settings.ENVIRONMENT, tokens_file=str(store.path))

    return app
