"""
Caller resolution shared by the HTTP adapter.
"""

from __future__ import annotations

from typing import Mapping, Optional, Tuple

from auth.tokens import verify_token
from core.errors import ValidationFailed
from core.models import Site, User
from core.request_context import RequestContext
from endpoints.base import SecurityLevel

SITE_HEADER = "x-site-id"


def resolve_caller(headers: Mapping[str, str]) -> Tuple[RequestContext, SecurityLevel]:
    """
    Build the RequestContext and security level for a request.

    No ``Authorization`` header means an anonymous caller; a present but
    invalid Bearer token raises ``ValidationFailed(401)``.
    """
    authorization: Optional[str] = headers.get("authorization")
    site_id = headers.get(SITE_HEADER)
    site = Site(model_id=site_id) if site_id else None

    if not authorization:
        return RequestContext(site=site), SecurityLevel.ANONYMOUS

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise ValidationFailed("Missing Bearer token", status_code=401)

    claims = verify_token(token.strip())
    return RequestContext(user=User(model_id=claims.user_id), site=site), claims.level
