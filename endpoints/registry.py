"""
EndpointRegistry — the routing table a host builds from registered endpoints.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from endpoints.base import Endpoint

logger = logging.getLogger(__name__)


class EndpointRegistry:
    """Maps ``route`` → :class:`Endpoint`; one endpoint per route."""

    def __init__(self) -> None:
        self._endpoints: Dict[str, Endpoint] = {}

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints.values())

    def __len__(self) -> int:
        return len(self._endpoints)

    def register(self, endpoint: Endpoint) -> None:
        if endpoint.route in self._endpoints:
            raise ValueError(f"An endpoint is already registered for '{endpoint.route}'")
        self._endpoints[endpoint.route] = endpoint
        logger.info(
            "Endpoint registered: %s %s",
            ",".join(v.value for v in endpoint.verbs),
            endpoint.route,
        )

    def get(self, route: str) -> Optional[Endpoint]:
        return self._endpoints.get(route.strip("/"))

    def resolve(self, path: str) -> Optional[Tuple[Endpoint, Dict[str, str]]]:
        """Find the endpoint whose route matches ``path`` and its segments."""
        for endpoint in self._endpoints.values():
            segments = endpoint.match(path)
            if segments is not None:
                return endpoint, segments
        return None

    def routes(self) -> List[Dict[str, object]]:
        return [
            {
                "route": e.route,
                "verbs": [v.value for v in e.verbs],
                "security": e.security.name.lower(),
                "parameters": [p.name for p in e.parameters],
            }
            for e in self._endpoints.values()
        ]
