# marketing_auth/dependencies/services.py
from starlette.requests import Request

from marketing_auth.infrastructure.credential_store import CredentialStore
from marketing_auth.services.oauth_service import OAuthService


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_oauth_service(request: Request) -> OAuthService:
    return request.app.state.oauth_service
