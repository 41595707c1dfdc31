"""
Context for the current request: authenticated user and target site.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.models import Site, User


@dataclass(frozen=True)
class RequestContext:
    user: Optional[User] = None
    site: Optional[Site] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.model_id if self.user else None

    @property
    def site_id(self) -> Optional[str]:
        return self.site.model_id if self.site else None
