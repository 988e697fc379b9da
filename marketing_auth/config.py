# marketing_auth/config.py
"""
Application configuration using Pydantic Settings.
"""
import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

DEFAULT_ENCRYPTION_KEY = "default-encryption-key-for-development-only"
DEFAULT_SESSION_SECRET = "your-session-secret"


class Settings(BaseSettings):
    """Settings loaded from environment variables (or a .env file)."""

    ENVIRONMENT: str = "development"
    PORT: int = 8000

    # Credential store
    ENCRYPTION_KEY: str = DEFAULT_ENCRYPTION_KEY
    TOKENS_FILE: str = "data/tokens.json"

    # Session cookie carrying the Twitter request-token secret
    SESSION_SECRET: str = DEFAULT_SESSION_SECRET
    COOKIE_SECURE: bool = False

    HTTP_TIMEOUT_SECONDS: float = 30

    # Twitter (OAuth1: client id/secret are the consumer key/secret)
    TWITTER_CLIENT_ID: str = ""
    TWITTER_CLIENT_SECRET: str = ""
    TWITTER_CALLBACK_URL: str = "http://localhost:8000/auth/twitter/callback"

    FACEBOOK_CLIENT_ID: str = ""
    FACEBOOK_CLIENT_SECRET: str = ""
    FACEBOOK_CALLBACK_URL: str = "http://localhost:8000/auth/facebook/callback"

    LINKEDIN_CLIENT_ID: str = ""
    LINKEDIN_CLIENT_SECRET: str = ""
    LINKEDIN_CALLBACK_URL: str = "http://localhost:8000/auth/linkedin/callback"

    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_CALLBACK_URL: str = "http://localhost:8000/auth/google/callback"

    INSTAGRAM_CLIENT_ID: str = ""
    INSTAGRAM_CLIENT_SECRET: str = ""
    INSTAGRAM_CALLBACK_URL: str = "http://localhost:8000/auth/instagram/callback"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def client_credentials(self, platform: str) -> tuple[str, str, str]:
        """Return (client_id, client_secret, callback_url) for a platform."""
        prefix = platform.upper()
        return (
            getattr(self, f"{prefix}_CLIENT_ID"),
            getattr(self, f"{prefix}_CLIENT_SECRET"),
            getattr(self, f"{prefix}_CALLBACK_URL"),
        )


def check_secrets(settings: Settings) -> None:
    """
    Refuse the built-in development secrets in production, warn about them otherwise.
    """
    insecure = []
    if settings.ENCRYPTION_KEY == DEFAULT_ENCRYPTION_KEY:
        insecure.append("ENCRYPTION_KEY")
    if settings.SESSION_SECRET == DEFAULT_SESSION_SECRET:
        insecure.append("SESSION_SECRET")
    if not insecure:
        return
    if settings.is_production:
        raise ValueError(f"{', '.join(insecure)} must be set in production")
    logger.warning("insecure_development_secrets", settings=insecure)

