"""
ConnectorRegistry — process-wide slug → Connector lookup.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from connectors.base import Connector
from connectors.github import GitHubConnector
from core.environment import Environment

logger = logging.getLogger(__name__)

# ── Built-in connectors — add new ones here ─────────────────────────────

_BUILTIN_CONNECTORS: List[Callable[[Optional[Environment]], Connector]] = [
    GitHubConnector,
]


class ConnectorRegistry:
    """Singleton registry for all OAuth connectors."""

    _instance: Optional["ConnectorRegistry"] = None

    def __new__(cls) -> "ConnectorRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._connectors = {}
        return cls._instance

    def register(self, connector: Connector) -> None:
        slug = connector.slug
        if slug in self._connectors:
            raise ValueError(f"A connector is already registered for '{slug}'")
        self._connectors[slug] = connector
        logger.info("Connector registered: %s (%s)", connector.display_name, slug)

    def discover(self, environment: Optional[Environment] = None) -> None:
        """Register every configured built-in connector not yet registered."""
        for factory in _BUILTIN_CONNECTORS:
            connector = factory(environment)
            if connector.slug in self._connectors:
                continue
            if connector.is_configured():
                self.register(connector)
            else:
                logger.warning(
                    "Connector %s skipped — not configured (missing client_id/secret)",
                    connector.slug,
                )

    def has(self, slug: str) -> bool:
        return slug in self._connectors

    def get(self, slug: str) -> Optional[Connector]:
        return self._connectors.get(slug)

    def retrieve(self, slug: str) -> Connector:
        """Like :meth:`get`, but an unknown slug is an error."""
        connector = self._connectors.get(slug)
        if connector is None:
            raise KeyError(f"No connector registered for '{slug}'")
        return connector

    def list_providers(self) -> List[Dict[str, str]]:
        return [
            {"provider": c.slug, "display_name": c.display_name}
            for c in self._connectors.values()
        ]

    # ── reset (for tests) ──────────────────────────────────────────────

    @classmethod
    def reset(cls) -> None:
        """Destroy singleton — only useful in test teardown."""
        cls._instance = None
