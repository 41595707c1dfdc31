"""
HTTP adapter — exposes registered Endpoints through FastAPI.

Route prefix: /api/v1
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.dependencies import resolve_caller
from connectors.registry import ConnectorRegistry
from core.errors import ValidationFailed
from endpoints.base import Endpoint, HttpVerb, IncomingRequest, dispatch
from endpoints.registry import EndpointRegistry

logger = logging.getLogger(__name__)


# ── Response schemas ───────────────────────────────────────────────────


class ConnectorInfo(BaseModel):
    provider: str
    display_name: str


class EndpointInfo(BaseModel):
    route: str
    verbs: List[str]
    security: str
    parameters: List[str]


def fastapi_path(route: str) -> str:
    """``connect/callback/[slug]`` → ``/connect/callback/{slug}``."""
    return "/" + route.replace("[", "{").replace("]", "}")


async def _read_params(request: Request) -> Dict[str, Any]:
    """Query string values, overlaid with a JSON object body if one was sent."""
    params: Dict[str, Any] = dict(request.query_params)
    body = await request.body()
    if not body:
        return params
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("application/json"):
        raise ValidationFailed(
            f"Unsupported request body type '{content_type}'", status_code=415
        )
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise ValidationFailed(f"Request body is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object")
    params.update(payload)
    return params


def _make_handler(endpoint: Endpoint) -> Callable[[Request], Awaitable[JSONResponse]]:
    async def handle(request: Request) -> JSONResponse:
        try:
            params = await _read_params(request)
            context, security = resolve_caller(request.headers)
        except ValidationFailed as exc:
            return JSONResponse(status_code=exc.status_code, content=exc.to_body())

        incoming = IncomingRequest(
            verb=HttpVerb(request.method),
            route_params=dict(request.path_params),
            params=params,
            headers=dict(request.headers),
            context=context,
            security=security,
        )
        response = await run_in_threadpool(dispatch, endpoint, incoming)
        return JSONResponse(status_code=response.status_code, content=response.body)

    handle.__name__ = "endpoint_" + endpoint.route.replace("/", "_").replace("[", "").replace("]", "")
    return handle


def build_router(registry: EndpointRegistry) -> APIRouter:
    """One FastAPI route per registered Endpoint, plus discovery routes."""
    router = APIRouter(tags=["endpoints"])

    for endpoint in registry:
        router.add_api_route(
            fastapi_path(endpoint.route),
            _make_handler(endpoint),
            methods=[v.value for v in endpoint.verbs],
        )

    @router.get("/connectors", response_model=List[ConnectorInfo])
    async def list_connectors() -> List[Dict[str, str]]:
        """List registered connector providers — no auth required."""
        return ConnectorRegistry().list_providers()

    @router.get("/endpoints", response_model=List[EndpointInfo])
    async def list_endpoints() -> List[Dict[str, object]]:
        return registry.routes()

    return router
