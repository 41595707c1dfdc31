"""
Token encryption — encrypt / decrypt credential tokens at rest.

Uses Fernet (AES-128-CBC + HMAC-SHA256) from the ``cryptography`` library.
The key comes from ``config.token_encryption_key`` (env var:
``TOKEN_ENCRYPTION_KEY``).

If no key is configured, encryption is **disabled** and tokens are stored
as plaintext (with a warning).  Generate a key with::

    python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
"""

from __future__ import annotations

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from config.settings import config
from core.errors import PersistenceFailed

logger = logging.getLogger(__name__)


class TokenCipher:
    """Fernet wrapper that degrades to plaintext when no key is set."""

    def __init__(self, key: Optional[str] = None) -> None:
        self._fernet: Optional[Fernet] = None
        if not key:
            logger.warning(
                "TOKEN_ENCRYPTION_KEY not set — credential tokens will be stored as plaintext."
            )
            return
        self._fernet = Fernet(key.encode() if isinstance(key, str) else key)
        logger.info("Token encryption enabled (Fernet/AES-128-CBC)")

    @property
    def enabled(self) -> bool:
        return self._fernet is not None

    def encrypt(self, plaintext: str) -> str:
        if self._fernet is None:
            return plaintext
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        if self._fernet is None:
            return ciphertext
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken as exc:
            raise PersistenceFailed("Stored token could not be decrypted with the configured key") from exc


_default: Optional[TokenCipher] = None


def default_cipher() -> TokenCipher:
    """Lazy-initialise the process-wide cipher once."""
    global _default
    if _default is None:
        _default = TokenCipher(config.token_encryption_key)
    return _default
