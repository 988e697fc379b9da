# marketing_auth/services/oauth_service.py
import time
from datetime import timedelta
from typing import Dict, Optional, Tuple

import httpx
import structlog
from starlette.concurrency import run_in_threadpool

from marketing_auth.infrastructure.credential_store import CredentialStore
from marketing_auth.infrastructure.oauth_http_client import OAuthHTTPClient
from marketing_auth.infrastructure.twitter_oauth_client import TwitterOAuthClient
from marketing_auth.models.credential_entry import to_iso, utc_now
from marketing_auth.services.profiles import NORMALIZERS
from marketing_auth.services.providers import OAuth2Provider

logger = structlog.get_logger(__name__)

REQUEST_TOKEN_TTL_SECONDS = 15 * 60


class OAuthCallbackError(Exception):
    pass


class MissingCodeError(OAuthCallbackError):
    pass


class TokenExchangeError(OAuthCallbackError):
    pass


class ProfileFetchError(OAuthCallbackError):
    pass


class InvalidCallbackError(OAuthCallbackError):
    pass


def expires_at_from(expires_in) -> Optional[str]:
    if not expires_in:
        return None
    try:
        return to_iso(utc_now() + timedelta(seconds=int(expires_in)))
    except (TypeError, ValueError):
        return None


class OAuthService:
    """
    Drives the provider round trips and hands the normalized result to the
    credential store. A successful callback is the only way entries get created.
    """

    def __init__(
        self,
        store: CredentialStore,
        providers: Dict[str, OAuth2Provider],
        http_client: OAuthHTTPClient,
        twitter_client: TwitterOAuthClient,
        request_token_ttl: float = REQUEST_TOKEN_TTL_SECONDS,
    ):
        self.store = store
        self.providers = providers
        self.http_client = http_client
        self.twitter_client = twitter_client
        self.request_token_ttl = request_token_ttl
        # request_token -> (request_token_secret, created); per process
        self._pending_twitter: Dict[str, Tuple[str, float]] = {}

    # ---------- OAuth2 authorization code flow ----------
    def authorize_url(self, platform: str) -> str:
        return self.providers[platform].build_authorize_url()

    async def _exchange_code(self, provider: OAuth2Provider, code: str) -> dict:
        try:
            token_data = await self.http_client.request_token(
                provider.token_method, provider.token_url, provider.token_request(code)
            )
        except (httpx.HTTPError, ValueError) as e:
            raise TokenExchangeError(f"{provider.name} token request failed: {e}") from e

        if not isinstance(token_data, dict) or not token_data.get("access_token"):
            error = token_data.get("error") if isinstance(token_data, dict) else None
            raise TokenExchangeError(f"{provider.name} returned no access token (error={error})")
        return token_data

    async def _fetch_profile(self, provider: OAuth2Provider, access_token: str) -> dict:
        params = dict(provider.profile_params)
        bearer = None
        if provider.profile_auth == "bearer":
            bearer = access_token
        else:
            params["access_token"] = access_token
        try:
            raw = await self.http_client.get_json(provider.profile_url, params=params or None, bearer=bearer)
        except (httpx.HTTPError, ValueError) as e:
            raise ProfileFetchError(f"{provider.name} profile request failed: {e}") from e
        if not isinstance(raw, dict):
            raise ProfileFetchError(f"{provider.name} profile has unexpected shape")
        return raw

    async def complete_oauth2(self, platform: str, code: Optional[str]) -> str:
        """Redeem ``code`` and store the credential. Returns the provider user id."""
        if not code:
            raise MissingCodeError(f"{platform} callback without code")

        provider = self.providers[platform]
        token_data = await self._exchange_code(provider, code)
        access_token = token_data["access_token"]

        raw_profile = await self._fetch_profile(provider, access_token)
        user_id = provider.normalizer.user_id(raw_profile)
        if not user_id:
            raise ProfileFetchError(f"{platform} profile without {provider.normalizer.id_field}")

        payload = {
            "accessToken": access_token,
            "expiresAt": expires_at_from(token_data.get("expires_in")),
            "profile": provider.normalizer.normalize(raw_profile),
        }
        if token_data.get("refresh_token"):
            payload["refreshToken"] = token_data["refresh_token"]

        await self.store.store_token(platform, user_id, payload)
        logger.info("oauth_connected", platform=platform, user_id=user_id)
        return user_id

    # ---------- Twitter OAuth1 request-token dance ----------
    def _prune_pending(self) -> None:
        now = time.monotonic()
        for token, (_, created) in list(self._pending_twitter.items()):
            if now - created > self.request_token_ttl:
                del self._pending_twitter[token]

    async def start_twitter(self) -> Tuple[str, str]:
        """
        Returns (authorize_url, request_token). The request token secret stays
        here; only the request token, which is public, goes into the session.
        """
        url, request_token, secret = await run_in_threadpool(self.twitter_client.get_authorization_url)
        self._prune_pending()
        self._pending_twitter[request_token] = (secret, time.monotonic())
        return url, request_token

    async def complete_twitter(
        self,
        oauth_token: Optional[str],
        oauth_verifier: Optional[str],
        session_request_token: Optional[str],
    ) -> str:
        if not oauth_token or not oauth_verifier:
            raise MissingCodeError("twitter callback without oauth_token/oauth_verifier")
        if not session_request_token:
            raise InvalidCallbackError("no pending twitter request token in session")
        if session_request_token != oauth_token:
            raise InvalidCallbackError("twitter callback oauth_token does not match the session")

        self._prune_pending()
        pending = self._pending_twitter.get(oauth_token)
        if pending is None:
            raise InvalidCallbackError("twitter request token unknown, expired or already used")
        request_secret, _ = pending

        try:
            access_token, access_secret = await run_in_threadpool(
                self.twitter_client.get_access_token, oauth_token, request_secret, oauth_verifier
            )
        except Exception as e:
            raise TokenExchangeError(f"twitter access token exchange failed: {e}") from e

        try:
            raw_profile = await run_in_threadpool(
                self.twitter_client.verify_credentials, access_token, access_secret
            )
        except Exception as e:
            raise ProfileFetchError(f"twitter verify_credentials failed: {e}") from e

        normalizer = NORMALIZERS["twitter"]
        user_id = normalizer.user_id(raw_profile or {})
        if not user_id:
            raise ProfileFetchError("twitter profile without id_str")

        await self.store.store_token("twitter", user_id, {
            "accessToken": access_token,
            "accessSecret": access_secret,
            "profile": normalizer.normalize(raw_profile),
        })
        self._pending_twitter.pop(oauth_token, None)
        logger.info("oauth_connected", platform="twitter", user_id=user_id)
        return user_id
