"""
ExternalCredential — the account link produced by a successful OAuth exchange.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Mapping, Optional

from connectors.encryption import TokenCipher, default_cipher
from core.models import Model


class ExternalCredential(Model):
    """
    Tokens and account details for one user's link to one provider.

    Tokens are kept encrypted in ``data``; use :meth:`access_token` /
    :meth:`refresh_token` to read them.
    """

    model_type = "external_credential"

    @classmethod
    def from_token_data(
        cls,
        provider: str,
        token_data: Mapping[str, Any],
        *,
        user_id: Optional[str] = None,
        model_id: Optional[str] = None,
        cipher: Optional[TokenCipher] = None,
        environment=None,
    ) -> "ExternalCredential":
        """
        Build a credential from a provider's token payload.

        ``token_data`` keys: access_token, refresh_token, expires_in, scopes,
        account_id, account_label, provider_meta.
        """
        cipher = cipher or default_cipher()
        expires_in = token_data.get("expires_in")
        data: Dict[str, Any] = {
            "provider": provider,
            "user_id": user_id,
            "account_id": str(token_data.get("account_id", "")),
            "account_label": token_data.get("account_label", ""),
            "access_token": cipher.encrypt(token_data["access_token"]),
            "refresh_token": cipher.encrypt(token_data.get("refresh_token") or ""),
            "expires_at": int(time.time()) + int(expires_in) if expires_in else None,
            "scopes": list(token_data.get("scopes") or []),
            "provider_meta": dict(token_data.get("provider_meta") or {}),
        }
        return cls(model_id=model_id, data=data, environment=environment)

    @property
    def provider(self) -> str:
        return self.data.get("provider", "")

    @property
    def account_id(self) -> str:
        return self.data.get("account_id", "")

    @property
    def account_label(self) -> str:
        return self.data.get("account_label", "")

    @property
    def user_id(self) -> Optional[str]:
        return self.data.get("user_id")

    @property
    def scopes(self) -> List[str]:
        return list(self.data.get("scopes") or [])

    def is_expired(self, now: Optional[float] = None) -> bool:
        expires_at = self.data.get("expires_at")
        if not expires_at:
            return False
        return (now if now is not None else time.time()) >= expires_at

    def access_token(self, cipher: Optional[TokenCipher] = None) -> str:
        return (cipher or default_cipher()).decrypt(self.data.get("access_token", ""))

    def refresh_token(self, cipher: Optional[TokenCipher] = None) -> str:
        return (cipher or default_cipher()).decrypt(self.data.get("refresh_token", ""))
