"""
Endpoint — a declared, routable unit of request handling.

An :class:`Endpoint` is plain metadata (route, verbs, security level,
parameters) plus the handler that holds its domain logic.  Everything else —
route matching, verb and security checks, parameter validation — is shared
and lives in :func:`validate_request` / :func:`dispatch`:

    Received → Validating → Rejected | Validated → Executing → Responded
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from core.errors import ValidationFailed
from core.request_context import RequestContext
from endpoints.parameters import EndpointParameter

logger = logging.getLogger(__name__)

_SEGMENT_RE = re.compile(r"^\[([A-Za-z_][A-Za-z0-9_]*)\]$")


class HttpVerb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class SecurityLevel(IntEnum):
    """Minimum caller tier; higher values imply every lower tier."""

    ANONYMOUS = 0
    REGISTERED = 10
    CONTRIBUTOR = 20
    ADMIN = 100


# ── Request / response ────────────────────────────────────────────────


@dataclass(frozen=True)
class IncomingRequest:
    """A raw request as handed over by the transport."""

    verb: HttpVerb
    route_params: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    context: RequestContext = field(default_factory=RequestContext)
    security: SecurityLevel = SecurityLevel.ANONYMOUS


@dataclass(frozen=True)
class EndpointRequest:
    """A request whose parameters have all been validated and parsed."""

    params: Mapping[str, Any]
    context: RequestContext = field(default_factory=RequestContext)
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EndpointResponse:
    status_code: int = 200
    body: Dict[str, Any] = field(default_factory=dict)


EndpointHandler = Callable[[EndpointRequest], EndpointResponse]


# ── Endpoint ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Endpoint:
    route: str
    handler: EndpointHandler
    verbs: Tuple[HttpVerb, ...] = (HttpVerb.GET,)
    security: SecurityLevel = SecurityLevel.ANONYMOUS
    parameters: Tuple[EndpointParameter, ...] = ()
    _pattern: "re.Pattern[str]" = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "route", self.route.strip("/"))
        object.__setattr__(self, "verbs", tuple(HttpVerb(v) for v in self.verbs))
        object.__setattr__(self, "parameters", tuple(self.parameters))
        if not self.verbs:
            raise ValueError(f"Endpoint '{self.route}' declares no verbs")

        names = [p.name for p in self.parameters]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(
                f"Endpoint '{self.route}' declares duplicate parameters: {sorted(duplicates)}"
            )
        object.__setattr__(self, "_pattern", _compile_route(self.route))

    @property
    def slug(self) -> str:
        return self.route

    @property
    def segment_names(self) -> List[str]:
        return list(self._pattern.groupindex)

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """Return the named route segments if ``path`` matches this route."""
        found = self._pattern.match(path.strip("/"))
        return found.groupdict() if found else None

    def run(self, request: EndpointRequest) -> EndpointResponse:
        return self.handler(request)


def _compile_route(route: str) -> "re.Pattern[str]":
    parts = []
    for part in route.split("/") if route else []:
        segment = _SEGMENT_RE.match(part)
        if segment:
            parts.append(f"(?P<{segment.group(1)}>[^/]+)")
        elif "[" in part or "]" in part:
            raise ValueError(f"Malformed route segment '{part}' in '{route}'")
        else:
            parts.append(re.escape(part))
    return re.compile("^" + "/".join(parts) + "$")


# ── Validation & dispatch ─────────────────────────────────────────────


def validate_request(endpoint: Endpoint, request: IncomingRequest) -> EndpointRequest:
    """
    Check verb, security and every declared parameter.

    All parameters are checked even after a failure so the rejection lists
    each bad field.  Route segments win over query/body values of the same
    name and are always present (as strings) in the result.
    """
    if request.verb not in endpoint.verbs:
        raise ValidationFailed(
            f"{request.verb.value} is not allowed on '{endpoint.route}'",
            status_code=405,
            errors={"verb": f"expected one of {[v.value for v in endpoint.verbs]}"},
        )

    if request.security < endpoint.security:
        status_code = 401 if request.security == SecurityLevel.ANONYMOUS else 403
        raise ValidationFailed(
            "You are not allowed to access this endpoint.",
            status_code=status_code,
            errors={"security": f"requires {endpoint.security.name.lower()}"},
        )

    missing_segments = [n for n in endpoint.segment_names if not request.route_params.get(n)]
    if missing_segments:
        raise ValidationFailed(
            "Request is missing route segments.",
            errors={n: f"'{n}' is required" for n in missing_segments},
        )

    raw: Dict[str, Any] = dict(request.params)
    raw.update(request.route_params)

    typed: Dict[str, Any] = {n: str(request.route_params[n]) for n in endpoint.segment_names}
    errors: Dict[str, str] = {}
    for parameter in endpoint.parameters:
        value = raw.get(parameter.name)
        if not parameter.validate(value):
            errors[parameter.name] = parameter.failure_reason(value)
            continue
        if value is None:
            continue
        typed[parameter.name] = parameter.parse(value)

    if errors:
        raise ValidationFailed("Request parameters are invalid.", errors=errors)

    return EndpointRequest(
        params=MappingProxyType(typed),
        context=request.context,
        headers=MappingProxyType(dict(request.headers)),
    )


def dispatch(endpoint: Endpoint, request: IncomingRequest) -> EndpointResponse:
    """Validate ``request`` and run ``endpoint`` once; always one response."""
    try:
        validated = validate_request(endpoint, request)
    except ValidationFailed as exc:
        logger.warning(
            "Rejected %s %s (%d): %s %s",
            request.verb.value,
            endpoint.route,
            exc.status_code,
            exc.message,
            exc.errors,
        )
        return EndpointResponse(status_code=exc.status_code, body=exc.to_body())

    response = endpoint.run(validated)
    if not isinstance(response, EndpointResponse):
        raise TypeError(
            f"Endpoint '{endpoint.route}' returned {type(response).__name__}, "
            f"expected EndpointResponse"
        )
    return response
