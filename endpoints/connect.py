"""
OAuth endpoints — start a Connector flow and receive the provider callback.
"""

from __future__ import annotations

import logging
from typing import Optional

from connectors.registry import ConnectorRegistry
from core.errors import (
    CORRELATION_MISSING_MESSAGE,
    CorrelationExpiredOrMissing,
    PersistenceFailed,
    ProviderExchangeFailed,
)
from endpoints.base import (
    Endpoint,
    EndpointRequest,
    EndpointResponse,
    HttpVerb,
    SecurityLevel,
)
from endpoints.parameters import ConnectorSlugParameter, StringParameter

logger = logging.getLogger(__name__)


def connect_init(connectors: Optional[ConnectorRegistry] = None) -> Endpoint:
    """``GET connect/init/[slug]`` — authorization URL and state for a user."""

    def run(request: EndpointRequest) -> EndpointResponse:
        connector = (connectors or ConnectorRegistry()).retrieve(request.params["slug"])
        info = {"user_id": request.context.user_id}
        if request.context.site_id:
            info["site_id"] = request.context.site_id
        return EndpointResponse(status_code=200, body=connector.get_initialization_data(info))

    return Endpoint(
        route="connect/init/[slug]",
        handler=run,
        verbs=(HttpVerb.GET,),
        security=SecurityLevel.REGISTERED,
        parameters=(ConnectorSlugParameter("slug", is_required=True, registry=connectors),),
    )


def connect_callback(connectors: Optional[ConnectorRegistry] = None) -> Endpoint:
    """``GET connect/callback/[slug]`` — where the provider redirects back."""

    def run(request: EndpointRequest) -> EndpointResponse:
        slug = request.params["slug"]
        connector = (connectors or ConnectorRegistry()).retrieve(slug)
        try:
            credential = connector.handle_callback(request)
        except CorrelationExpiredOrMissing:
            logger.warning("No pending OAuth request for %s callback", slug)
            return EndpointResponse(status_code=400, body={"error": CORRELATION_MISSING_MESSAGE})
        except ProviderExchangeFailed as exc:
            logger.error("%s", exc)
            return EndpointResponse(
                status_code=502, body={"error": "The provider could not complete the connection."}
            )
        except PersistenceFailed:
            logger.exception("Could not store %s credential", slug)
            return EndpointResponse(
                status_code=500, body={"error": "The connection could not be saved."}
            )

        return EndpointResponse(status_code=200, body={"credentialId": credential.model_id})

    return Endpoint(
        route="connect/callback/[slug]",
        handler=run,
        verbs=(HttpVerb.GET,),
        security=SecurityLevel.ANONYMOUS,
        parameters=(
            ConnectorSlugParameter("slug", is_required=True, registry=connectors),
            StringParameter("state", is_required=True),
            StringParameter("code", is_required=True),
        ),
    )
