"""
Connector — abstract interface for all OAuth2 provider integrations.

A round trip looks like:

1. ``get_initialization_data`` mints an unpredictable ``state`` token, stores
   the correlating info as a transient keyed by it, and returns the
   provider's authorization URL.
2. The provider redirects back to ``connect/callback/<slug>`` with ``state``
   and ``code``.
3. ``handle_callback`` looks the transient up (single use) and hands the
   code plus the recovered info to ``create_credential``.

Every provider subclasses this and implements the identity properties,
``get_authorization_url`` and ``create_credential``.
"""

from __future__ import annotations

import logging
import secrets
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from config.settings import config
from connectors.models import ExternalCredential
from core.environment import Environment, get_environment
from core.errors import CorrelationExpiredOrMissing

if TYPE_CHECKING:
    from endpoints.base import EndpointRequest

logger = logging.getLogger(__name__)


class Connector(ABC):
    """Abstract base for all OAuth2 connectors."""

    def __init__(
        self,
        environment: Optional[Environment] = None,
        *,
        state_ttl_seconds: Optional[int] = None,
    ) -> None:
        self._environment = environment
        self.state_ttl_seconds = state_ttl_seconds or config.oauth_state_ttl_seconds

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def slug(self) -> str:
        """Unique slug used in routes and storage keys: 'github', …"""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        ...

    @property
    @abstractmethod
    def scopes(self) -> List[str]:
        ...

    @property
    def environment(self) -> Environment:
        return self._environment if self._environment is not None else get_environment()

    def is_configured(self) -> bool:
        """True if all required config (client ids, secrets) is present."""
        return True

    def redirect_uri(self) -> str:
        return f"{self.environment.get_base_rest_url()}connect/callback/{self.slug}"

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    def get_authorization_url(self, state: str) -> str:
        """Build the provider's authorization URL carrying ``state``."""
        ...

    @abstractmethod
    def create_credential(self, code: str, info: Mapping[str, Any]) -> ExternalCredential:
        """
        Exchange ``code`` for tokens and persist the resulting credential.

        ``info`` is the correlating data stored when the flow started.
        Raise :class:`ProviderExchangeFailed` when the provider call fails.
        """
        ...

    def get_initialization_data(self, info: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Start a flow: store correlating info under a fresh state token."""
        state = secrets.token_urlsafe(32)
        correlating = {**dict(info or {}), "token": state, "connector": self.slug}
        self.environment.set_transient(state, correlating, self.state_ttl_seconds)
        logger.info("OAuth flow started for %s (user=%s)", self.slug, correlating.get("user_id"))
        return {
            "provider": self.slug,
            "authorizationUrl": self.get_authorization_url(state),
            "state": state,
        }

    def handle_callback(self, request: "EndpointRequest") -> ExternalCredential:
        state = request.params.get("state") or ""
        environment = self.environment
        info = environment.get_transient_value(state) if state else None
        if info is None or info.get("connector") != self.slug:
            raise CorrelationExpiredOrMissing(state)

        environment.delete_transient(state)
        credential = self.create_credential(request.params["code"], info)
        logger.info(
            "OAuth connected: provider=%s user=%s account=%s",
            self.slug,
            credential.user_id,
            credential.account_label,
        )
        return credential

    # ── Helpers ─────────────────────────────────────────────────────────

    def store_credential(
        self,
        token_data: Mapping[str, Any],
        info: Mapping[str, Any],
    ) -> ExternalCredential:
        """
        Persist a credential, reusing the id of an existing link between the
        same user and provider account.
        """
        user_id = info.get("user_id")
        helper = self.environment.get_helper_for_model(ExternalCredential)
        existing = helper.find_all(
            ExternalCredential,
            {
                "provider": self.slug,
                "account_id": str(token_data.get("account_id", "")),
                "user_id": user_id,
            },
        )
        credential = ExternalCredential.from_token_data(
            self.slug,
            token_data,
            user_id=user_id,
            model_id=existing[0].model_id if existing else None,
            environment=self.environment,
        )
        credential.save()
        return credential
