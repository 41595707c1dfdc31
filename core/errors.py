"""
Error taxonomy shared by the environment, endpoints, connectors and stores.
"""

from __future__ import annotations

from typing import Dict, Optional


class CoreError(RuntimeError):
    """Base class for every error raised by the platform core."""


# ── Environment lifecycle ─────────────────────────────────────────────


class NotBootstrapped(CoreError):
    """Raised when the environment is requested before ``bootstrap``."""


class AlreadyBootstrapped(CoreError):
    """Raised by every ``bootstrap`` call after the first successful one."""


class NotImplementedByHost(CoreError):
    """An Environment capability the hosting platform did not wire up."""

    def __init__(self, capability: str) -> None:
        super().__init__(f"{capability} was not implemented by this environment.")
        self.capability = capability


# ── Request handling ──────────────────────────────────────────────────


class ValidationFailed(CoreError):
    """
    A request was rejected before reaching endpoint logic.

    ``errors`` maps a parameter name (or ``"verb"`` / ``"security"``) to a
    human-readable reason.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 400,
        errors: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = dict(errors or {})

    def to_body(self) -> Dict[str, object]:
        body: Dict[str, object] = {"error": self.message}
        if self.errors:
            body["fields"] = self.errors
        return body


# ── OAuth ─────────────────────────────────────────────────────────────


CORRELATION_MISSING_MESSAGE = "An matching request was not found; please try again."


class CorrelationExpiredOrMissing(CoreError):
    """No transient state exists for the ``state`` a provider sent back."""

    def __init__(self, state: str) -> None:
        super().__init__(CORRELATION_MISSING_MESSAGE)
        self.state = state


class ProviderExchangeFailed(CoreError):
    """The call to a provider's token endpoint failed or returned an error."""

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(f"{provider} token exchange failed: {detail}")
        self.provider = provider
        self.detail = detail


# ── Persistence ───────────────────────────────────────────────────────


class PersistenceFailed(CoreError):
    """A ModelHelper could not read or write the backing store."""
