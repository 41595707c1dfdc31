"""
Typed, validated endpoint parameters.

Each kind overrides ``_validate_value`` / ``_parse_value``; the shared
required/optional handling lives in :class:`EndpointParameter`.  A raw value
of ``None`` means the parameter was absent from the request.
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from connectors.registry import ConnectorRegistry

_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


class EndpointParameter:
    """A named request input with a validate/parse pair."""

    kind = "value"

    __slots__ = ("_name", "_is_required", "_description")

    def __init__(self, name: str, *, is_required: bool = False, description: str = "") -> None:
        if not name:
            raise ValueError("Parameter name must not be empty")
        self._name = name
        self._is_required = is_required
        self._description = description

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r}, is_required={self._is_required})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_required(self) -> bool:
        return self._is_required

    @property
    def description(self) -> str:
        return self._description

    def validate(self, value: Any = None) -> bool:
        if value is None:
            return not self._is_required
        return self._validate_value(value)

    def parse(self, value: Any = None) -> Any:
        if value is None:
            return None
        return self._parse_value(value)

    def failure_reason(self, value: Any = None) -> str:
        if value is None:
            return f"'{self._name}' is required"
        return f"'{self._name}' is not a valid {self.kind}"

    # ── extension points ────────────────────────────────────────────────

    def _validate_value(self, value: Any) -> bool:
        return True

    def _parse_value(self, value: Any) -> Any:
        return value


class StringParameter(EndpointParameter):
    kind = "string"

    __slots__ = ()

    def _validate_value(self, value: Any) -> bool:
        return isinstance(value, (str, int, float)) and not isinstance(value, bool)

    def _parse_value(self, value: Any) -> str:
        return value if isinstance(value, str) else str(value)


class IntegerParameter(EndpointParameter):
    """Accepts anything numeric (``"42"``, ``"4.7"``, ``"1e3"``) and truncates."""

    kind = "integer"

    __slots__ = ()

    def _validate_value(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return True
        if isinstance(value, float):
            return math.isfinite(value)
        if not isinstance(value, str) or _NUMERIC_RE.match(value) is None:
            return False
        return math.isfinite(float(value))

    def _parse_value(self, value: Any) -> int:
        if isinstance(value, str):
            value = value.strip()
            try:
                return int(value)
            except ValueError:
                return int(float(value))
        return int(value)


class ConnectorSlugParameter(EndpointParameter):
    """Valid only when a Connector with that slug is registered."""

    kind = "connector"

    __slots__ = ("_registry",)

    def __init__(
        self,
        name: str,
        *,
        is_required: bool = False,
        description: str = "",
        registry: Optional["ConnectorRegistry"] = None,
    ) -> None:
        super().__init__(name, is_required=is_required, description=description)
        self._registry = registry

    @property
    def registry(self) -> "ConnectorRegistry":
        if self._registry is not None:
            return self._registry
        from connectors.registry import ConnectorRegistry

        return ConnectorRegistry()

    def _validate_value(self, value: Any) -> bool:
        return isinstance(value, str) and self.registry.has(value)

    def _parse_value(self, value: Any) -> str:
        return self.registry.get(value).slug
