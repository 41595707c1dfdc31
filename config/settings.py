"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Server ───────────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list = ["*"]
    base_rest_url: str = "http://localhost:8000/api/v1/"   # trailing slash required

    # ── Security Secrets ──────────────────────────────────────────────────
    auth_token_secret: str = "change-me-auth-token-secret"   # HMAC secret for bearer tokens
    auth_token_expiry_seconds: int = 604800                   # 7 days
    token_encryption_key: str = ""                            # Fernet key for credential tokens at rest

    # ── OAuth Connectors ─────────────────────────────────────────────────
    oauth_state_ttl_seconds: int = 600
    github_client_id: str = ""
    github_client_secret: str = ""
    github_scopes: Optional[str] = None   # comma separated; connector default when unset

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = "sqlite:///./platform.db"

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }

    def rest_url(self) -> str:
        """``base_rest_url`` normalised to end with exactly one slash."""
        return self.base_rest_url.rstrip("/") + "/"


config = Settings()
