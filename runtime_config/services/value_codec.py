"""
Value Codec

Encrypts sensitive setting values before they are stored and decrypts them on
the way out. Encrypted values are stored as ``{"encrypted": true, "data": <token>}``
so plain and encrypted rows can live in the same JSON column.
"""

import base64
import hashlib
import json
from typing import Any, Mapping, Optional, Protocol

from cryptography.fernet import Fernet, InvalidToken

from runtime_config.core.config import settings
from runtime_config.core.error_codes import (
    ConfigurationErrorCode,
    EncryptionErrorCode,
)
from runtime_config.core.exceptions import (
    ConfigurationException,
    DecryptionFailedException,
    EncryptionException,
)
from runtime_config.core.logger import get_logger

logger = get_logger(__name__)


class Cipher(Protocol):
    """String-to-string reversible encryption."""

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, token: str) -> str: ...


class FernetCipher:
    """Fernet (AES-128-CBC + HMAC) keyed by the SHA-256 digest of a secret."""

    def __init__(self, secret: str):
        key = base64.urlsafe_b64encode(hashlib.sha256(secret.encode("utf-8")).digest())
        self._fernet = Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")


def create_cipher_from_settings() -> Optional[Cipher]:
    """
    Build the configured cipher, or None when encryption is disabled.

    Raises:
        ConfigurationException: encryption is enabled but no key is set
    """
    if not settings.runtime_settings__encryption_enabled:
        return None

    secret = settings.runtime_settings__encryption_key
    if secret is None:
        raise ConfigurationException(
            "Runtime setting encryption is enabled but no encryption key is configured",
            ConfigurationErrorCode.MISSING_CONFIG,
            details={"setting": "runtime_settings__encryption_key"},
        )
    return FernetCipher(secret.get_secret_value())


def canonical_json(value: Any) -> str:
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )


def is_encrypted_envelope(stored: Any) -> bool:
    return isinstance(stored, Mapping) and bool(stored.get("encrypted"))


class ValueCodec:
    """Encode values for storage and decode them for clients."""

    def __init__(self, cipher: Optional[Cipher] = None):
        self.cipher = cipher

    @property
    def encryption_enabled(self) -> bool:
        return self.cipher is not None

    def encode(self, value: Any, encrypt: bool = False) -> Any:
        """
        Return the representation to persist.

        When encryption is requested but no cipher is configured the value is
        stored as-is and a warning is logged.
        """
        if not encrypt:
            return value

        if self.cipher is None:
            logger.warning(
                "Encryption requested for a runtime setting but no cipher is configured; storing plain value"
            )
            return value

        try:
            token = self.cipher.encrypt(canonical_json(value))
        except (TypeError, ValueError) as exc:
            raise EncryptionException(
                "Failed to encrypt runtime setting value",
                EncryptionErrorCode.ENCRYPT_FAILED,
            ) from exc
        return {"encrypted": True, "data": token}

    def _decrypt(self, stored: Mapping[str, Any]) -> Any:
        if self.cipher is None:
            raise DecryptionFailedException(
                "Encrypted value found but no cipher is configured",
                EncryptionErrorCode.KEY_MISSING,
            )
        data = stored.get("data")
        if not isinstance(data, str):
            raise DecryptionFailedException(
                "Encrypted value has no token", EncryptionErrorCode.DECRYPT_FAILED
            )
        try:
            return json.loads(self.cipher.decrypt(data))
        except (InvalidToken, ValueError, UnicodeError) as exc:
            raise DecryptionFailedException(
                "Encrypted value could not be decrypted",
                EncryptionErrorCode.DECRYPT_FAILED,
            ) from exc

    def decode(self, stored: Any) -> Any:
        """
        Return the client-facing value.

        Plain values pass through. Encrypted envelopes are decrypted; if that
        fails for any reason the failure is logged and None is returned, so
        one bad row never breaks a whole lookup.
        """
        if not is_encrypted_envelope(stored):
            return stored
        try:
            return self._decrypt(stored)
        except DecryptionFailedException as exc:
            logger.error("Failed to decrypt runtime setting value: %s", exc.message)
            return None

    @staticmethod
    def checksum(value: Any) -> str:
        """SHA-1 hex digest of the canonical JSON of the plaintext value."""
        payload = canonical_json({} if value is None else value)
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()


__all__ = [
    "Cipher",
    "FernetCipher",
    "ValueCodec",
    "canonical_json",
    "create_cipher_from_settings",
    "is_encrypted_envelope",
]
