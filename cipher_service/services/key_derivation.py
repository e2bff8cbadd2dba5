from __future__ import annotations

import hashlib
from dataclasses import dataclass

from cipher_service.errors import ConfigurationError

KEY_HEX_CHARS = 32
IV_HEX_CHARS = 16


@dataclass(frozen=True, slots=True)
class DerivedKeyMaterial:
    key: bytes
    iv: bytes


def _hex_prefix(secret: str, length: int) -> bytes:
    # The hex characters themselves are the key bytes, not the raw digest.
    return hashlib.sha512(secret.encode("utf-8")).hexdigest()[:length].encode("ascii")


def derive_key_material(secret_key: str | None, secret_iv: str | None) -> DerivedKeyMaterial:
    """
    Derive the process-wide key and IV from the configured secrets.

    key = first 32 hex chars of sha512(secret_key), iv = first 16 hex chars of
    sha512(secret_iv). Deterministic: ciphertexts stored under one deployment
    stay readable by any other configured with the same secrets.
    """
    if not secret_key:
        raise ConfigurationError("SECRET_KEY is required")
    if not secret_iv:
        raise ConfigurationError("SECRET_IV is required")
    return DerivedKeyMaterial(
        key=_hex_prefix(secret_key, KEY_HEX_CHARS),
        iv=_hex_prefix(secret_iv, IV_HEX_CHARS),
    )
