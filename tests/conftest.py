import httpx
import pytest
import pytest_asyncio

from marketing_auth.app import create_app
from marketing_auth.config import Settings
from marketing_auth.infrastructure.credential_store import CredentialStore
from marketing_auth.infrastructure.oauth_http_client import OAuthHTTPClient
from marketing_auth.infrastructure.token_cipher import TokenCipher
from marketing_auth.services.oauth_service import OAuthService
from marketing_auth.services.providers import build_providers

TEST_KEY = "unit-test-encryption-key"

PROVIDER_ROUTES = {
    # google
    "oauth2.googleapis.com/token": {
        "access_token": "ya29.google-access",
        "refresh_token": "1//google-refresh",
        "expires_in": 3599,
    },
    "www.googleapis.com/oauth2/v3/userinfo": {
        "sub": "g-123",
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "picture": "https://lh3.googleusercontent.com/ada.png",
    },
    # facebook
    "graph.facebook.com/v17.0/oauth/access_token": {"access_token": "EAAB-facebook-access", "expires_in": 5183944},
    "graph.facebook.com/me": {
        "id": "fb-1",
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "picture": {"data": {"url": "https://graph.facebook.com/ada.jpg"}},
    },
    # linkedin
    "www.linkedin.com/oauth/v2/accessToken": {"access_token": "AQV-linkedin-access", "expires_in": 5184000},
    "api.linkedin.com/v2/me": {"id": "li-1", "localizedFirstName": "Ada", "localizedLastName": "Lovelace"},
    # instagram
    "api.instagram.com/oauth/access_token": {"access_token": "IGQV-instagram-access", "user_id": 17841},
    "graph.instagram.com/me": {"id": "ig-1", "username": "ada"},
}


class FakeProviderAPI:
    """httpx.MockTransport handler answering for the provider endpoints."""

    def __init__(self):
        self.routes = {key: (200, body) for key, body in PROVIDER_ROUTES.items()}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get(request.url.host + request.url.path, (404, {"error": "not_found"}))
        return httpx.Response(status, json=body)


class FakeTwitterClient:
    def __init__(self, fail_start: bool = False):
        self.fail_start = fail_start
        self.exchanges = []

    def get_authorization_url(self):
        if self.fail_start:
            raise RuntimeError("twitter unavailable")
        return "https://api.twitter.com/oauth/authorize?oauth_token=req-token", "req-token", "req-secret"

    def get_access_token(self, oauth_token, oauth_token_secret, verifier):
        self.exchanges.append((oauth_token, oauth_token_secret, verifier))
        return "tw-access-token", "tw-access-secret"

    def verify_credentials(self, access_token, access_secret):
        return {
            "id_str": "12345",
            "screen_name": "ada",
            "name": "Ada Lovelace",
            "profile_image_url_https": "https://pbs.twimg.com/ada.jpg",
        }


@pytest.fixture
def tokens_path(tmp_path):
    return tmp_path / "data" / "tokens.json"


@pytest.fixture
def store(tokens_path):
    return CredentialStore(tokens_path, TokenCipher(TEST_KEY))


@pytest.fixture
def settings(tokens_path):
    return Settings(
        ENVIRONMENT="test",
        ENCRYPTION_KEY=TEST_KEY,
        SESSION_SECRET="unit-test-session-secret",
        TOKENS_FILE=str(tokens_path),
        FACEBOOK_CLIENT_ID="fb-client",
        FACEBOOK_CLIENT_SECRET="fb-secret",
        LINKEDIN_CLIENT_ID="li-client",
        LINKEDIN_CLIENT_SECRET="li-secret",
        GOOGLE_CLIENT_ID="google-client",
        GOOGLE_CLIENT_SECRET="google-secret",
        INSTAGRAM_CLIENT_ID="ig-client",
        INSTAGRAM_CLIENT_SECRET="ig-secret",
    )


@pytest.fixture
def provider_api():
    return FakeProviderAPI()


@pytest.fixture
def twitter_client():
    return FakeTwitterClient()


@pytest.fixture
def oauth_service(settings, store, provider_api, twitter_client):
    return OAuthService(
        store=store,
        providers=build_providers(settings),
        http_client=OAuthHTTPClient(transport=httpx.MockTransport(provider_api)),
        twitter_client=twitter_client,
    )


@pytest.fixture
def app(settings, store, oauth_service):
    return create_app(settings=settings, store=store, oauth_service=oauth_service)


@pytest_asyncio.fixture
async def client(app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as c:
        yield c
