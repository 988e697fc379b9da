# marketing_auth/services/providers.py
from dataclasses import dataclass, field
from typing import Dict

import httpx

from marketing_auth.config import Settings
from marketing_auth.services.profiles import NORMALIZERS, ProfileNormalizer

OAUTH2_PLATFORMS = ("facebook", "linkedin", "google", "instagram")


@dataclass
class OAuth2Provider:
    name: str
    client_id: str
    client_secret: str
    callback_url: str
    authorize_url: str
    token_url: str
    profile_url: str
    scope: str
    normalizer: ProfileNormalizer
    token_method: str = "POST"
    # "query" sends ?access_token=..., "bearer" sends an Authorization header
    profile_auth: str = "query"
    profile_params: Dict[str, str] = field(default_factory=dict)
    authorize_params: Dict[str, str] = field(default_factory=dict)

    def build_authorize_url(self) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "scope": self.scope,
            **self.authorize_params,
        }
        return str(httpx.URL(self.authorize_url).copy_merge_params(params))

    def token_request(self, code: str) -> dict:
        return {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.callback_url,
            "grant_type": "authorization_code",
        }


def build_providers(settings: Settings) -> Dict[str, OAuth2Provider]:
    def creds(platform):
        client_id, client_secret, callback_url = settings.client_credentials(platform)
        return {"client_id": client_id, "client_secret": client_secret, "callback_url": callback_url}

    return {
        "facebook": OAuth2Provider(
            name="facebook",
            authorize_url="https://www.facebook.com/v17.0/dialog/oauth",
            token_url="https://graph.facebook.com/v17.0/oauth/access_token",
            token_method="GET",
            profile_url="https://graph.facebook.com/me",
            profile_params={"fields": "id,name,email,picture"},
            scope="email,public_profile,pages_manage_posts,pages_read_engagement",
            normalizer=NORMALIZERS["facebook"],
            **creds("facebook"),
        ),
        "linkedin": OAuth2Provider(
            name="linkedin",
            authorize_url="https://www.linkedin.com/oauth/v2/authorization",
            authorize_params={"response_type": "code"},
            token_url="https://www.linkedin.com/oauth/v2/accessToken",
            profile_url="https://api.linkedin.com/v2/me",
            profile_auth="bearer",
            scope="r_emailaddress r_liteprofile w_member_social",
            normalizer=NORMALIZERS["linkedin"],
            **creds("linkedin"),
        ),
        "google": OAuth2Provider(
            name="google",
            authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
            authorize_params={"response_type": "code", "access_type": "offline", "prompt": "consent"},
            token_url="https://oauth2.googleapis.com/token",
            profile_url="https://www.googleapis.com/oauth2/v3/userinfo",
            scope="profile email",
            normalizer=NORMALIZERS["google"],
            **creds("google"),
        ),
        "instagram": OAuth2Provider(
            name="instagram",
            authorize_url="https://api.instagram.com/oauth/authorize",
            authorize_params={"response_type": "code"},
            token_url="https://api.instagram.com/oauth/access_token",
            profile_url="https://graph.instagram.com/me",
            profile_params={"fields": "id,username"},
            scope="user_profile,user_media",
            normalizer=NORMALIZERS["instagram"],
            **creds("instagram"),
        ),
    }
