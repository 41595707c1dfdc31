"""
GitHubConnector — OAuth2 for GitHub API access.

Exchanges the authorization code at GitHub's token endpoint, fetches the
user profile to identify the account, and stores the credential.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

import httpx

from config.settings import config
from connectors.base import Connector
from connectors.models import ExternalCredential
from core.environment import Environment
from core.errors import ProviderExchangeFailed

logger = logging.getLogger(__name__)

# GitHub OAuth2 endpoints
_GH_AUTH_URL = "https://github.com/login/oauth/authorize"
_GH_TOKEN_URL = "https://github.com/login/oauth/access_token"
_GH_API = "https://api.github.com"


class GitHubConnector(Connector):
    """OAuth2 connector for GitHub."""

    def __init__(
        self,
        environment: Optional[Environment] = None,
        *,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
        state_ttl_seconds: Optional[int] = None,
    ) -> None:
        super().__init__(environment, state_ttl_seconds=state_ttl_seconds)
        self._client_id = client_id if client_id is not None else config.github_client_id
        self._client_secret = (
            client_secret if client_secret is not None else config.github_client_secret
        )
        self._transport = transport
        self._timeout = timeout

    @property
    def slug(self) -> str:
        return "github"

    @property
    def display_name(self) -> str:
        return "GitHub"

    @property
    def scopes(self) -> List[str]:
        if config.github_scopes:
            return [s.strip() for s in config.github_scopes.split(",") if s.strip()]
        return ["read:user", "user:email"]

    def is_configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def get_authorization_url(self, state: str) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self.redirect_uri(),
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return f"{_GH_AUTH_URL}?{urlencode(params)}"

    def create_credential(self, code: str, info: Mapping[str, Any]) -> ExternalCredential:
        token_data = self._exchange_code(code)
        return self.store_credential(token_data, info)

    def _exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange auth code for tokens and fetch the user profile."""
        try:
            with httpx.Client(transport=self._transport, timeout=self._timeout) as client:
                # 1. Exchange code for token
                token_resp = client.post(
                    _GH_TOKEN_URL,
                    data={
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "code": code,
                        "redirect_uri": self.redirect_uri(),
                    },
                    headers={"Accept": "application/json"},
                )
                token_resp.raise_for_status()
                token_data = self._json_object(token_resp)

                if "error" in token_data or not token_data.get("access_token"):
                    raise ProviderExchangeFailed(
                        self.slug,
                        token_data.get("error_description", token_data.get("error", "no access_token")),
                    )

                # 2. Fetch user profile
                user_resp = client.get(
                    f"{_GH_API}/user",
                    headers={
                        "Authorization": f"Bearer {token_data['access_token']}",
                        "Accept": "application/vnd.github+json",
                    },
                )
                user_resp.raise_for_status()
                user = self._json_object(user_resp)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("GitHub token exchange failed: %s", exc)
            raise ProviderExchangeFailed(self.slug, str(exc)) from exc

        return {
            "access_token": token_data["access_token"],
            "refresh_token": token_data.get("refresh_token"),
            "expires_in": self._expires_in(token_data.get("expires_in")),
            "scopes": [s for s in str(token_data.get("scope") or "").split(",") if s],
            "account_id": str(user.get("id", "")),
            "account_label": user.get("login", ""),
            "provider_meta": {
                "login": user.get("login"),
                "name": user.get("name"),
                "avatar_url": user.get("avatar_url"),
                "email": user.get("email"),
            },
        }

    def _json_object(self, response: httpx.Response) -> Dict[str, Any]:
        payload = response.json()
        if not isinstance(payload, dict):
            raise ProviderExchangeFailed(
                self.slug, f"unexpected {type(payload).__name__} payload from {response.url}"
            )
        return payload

    def _expires_in(self, value: Any) -> Optional[int]:
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ProviderExchangeFailed(self.slug, f"invalid expires_in {value!r}") from exc
