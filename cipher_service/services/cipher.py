from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from cryptography.hazmat.decrepit.ciphers import modes as decrepit_modes
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from cipher_service.errors import ConfigurationError, DecryptionError, EncryptionError
from cipher_service.services.key_derivation import DerivedKeyMaterial, derive_key_material
from cipher_service.settings import Settings

AES_BLOCK_BITS = 128

_METHOD_PATTERN = re.compile(r"aes-(128|192|256)-(cbc|cfb8|cfb|ofb|ctr)")
# OpenSSL short alias: "aes256" means "aes-256-cbc".
_SHORT_METHOD_PATTERN = re.compile(r"aes(128|192|256)")
_HEX_PATTERN = re.compile(rb"(?:[0-9a-fA-F]{2})*")
_MODES = {
    "cbc": modes.CBC,
    "cfb": decrepit_modes.CFB,
    "cfb8": decrepit_modes.CFB8,
    "ofb": decrepit_modes.OFB,
    "ctr": modes.CTR,
}


@dataclass(frozen=True, slots=True)
class CipherMethod:
    name: str
    key_size: int
    mode: str

    @property
    def padded(self) -> bool:
        return self.mode == "cbc"


def resolve_cipher_method(name: str | None) -> CipherMethod:
    if not name:
        raise ConfigurationError("ENCRYPTION_METHOD is required")
    normalized = name.strip().lower()
    short = _SHORT_METHOD_PATTERN.fullmatch(normalized)
    if short is not None:
        normalized = f"aes-{short.group(1)}-cbc"
    match = _METHOD_PATTERN.fullmatch(normalized)
    if match is None:
        raise ConfigurationError(f"Unsupported encryption method: {name}")
    bits, mode = match.groups()
    return CipherMethod(name=normalized, key_size=int(bits) // 8, mode=mode)


class CipherCore:
    """
    Encrypts and decrypts text with a fixed key/IV pair.

    Envelope format: base64(hex(ciphertext)), i.e. Base64 applied to the ASCII
    text of the lowercase hex rendering, never to the raw ciphertext bytes.
    The IV never changes, so equal plaintexts produce equal envelopes.

    Instances are immutable; each call builds its own cipher context, so one
    instance can be shared by any number of threads.
    """

    def __init__(self, material: DerivedKeyMaterial, method: CipherMethod) -> None:
        self._material = material
        self._method = method

    @classmethod
    def from_settings(cls, settings: Settings) -> "CipherCore":
        method = resolve_cipher_method(settings.encryption_method)
        material = derive_key_material(settings.secret_key, settings.secret_iv)
        return cls(material, method)

    @property
    def method(self) -> CipherMethod:
        return self._method

    def _build_cipher(self, error_cls: type[EncryptionError] | type[DecryptionError]) -> Cipher:
        if len(self._material.key) != self._method.key_size:
            raise error_cls(
                code="invalid_key_length",
                message=f"Key length {len(self._material.key)} is invalid for {self._method.name}",
            )
        try:
            return Cipher(algorithms.AES(self._material.key), _MODES[self._method.mode](self._material.iv))
        except ValueError as exc:
            raise error_cls(code="invalid_iv_length", message=str(exc)) from exc

    def encrypt(self, plaintext: str | None) -> str:
        if plaintext is None:
            raise EncryptionError(code="missing_data", message="No data to encrypt")
        if not isinstance(plaintext, str):
            raise EncryptionError(code="invalid_plaintext", message="Data must be a string")
        try:
            raw = plaintext.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncryptionError(code="invalid_plaintext", message="Data is not valid text") from exc

        cipher = self._build_cipher(EncryptionError)
        if self._method.padded:
            padder = padding.PKCS7(AES_BLOCK_BITS).padder()
            raw = padder.update(raw) + padder.finalize()
        encryptor = cipher.encryptor()
        ciphertext = encryptor.update(raw) + encryptor.finalize()
        return base64.b64encode(ciphertext.hex().encode("ascii")).decode("ascii")

    def decrypt(self, envelope: str | None) -> str:
        if envelope is None:
            raise DecryptionError(code="missing_envelope", message="No encrypted data to decrypt")
        if not isinstance(envelope, str):
            raise DecryptionError(code="invalid_base64", message="Encrypted data must be a Base64 string")
        try:
            hex_text = base64.b64decode(envelope, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecryptionError(code="invalid_base64", message="Encrypted data is not valid Base64") from exc
        if _HEX_PATTERN.fullmatch(hex_text) is None:
            raise DecryptionError(code="invalid_hex", message="Encrypted data does not contain valid hex")
        ciphertext = bytes.fromhex(hex_text.decode("ascii"))

        cipher = self._build_cipher(DecryptionError)
        block_bytes = AES_BLOCK_BITS // 8
        if self._method.padded and len(ciphertext) % block_bytes:
            raise DecryptionError(
                code="invalid_block_length",
                message="Encrypted data is not a multiple of the cipher block size",
            )
        decryptor = cipher.decryptor()
        raw = decryptor.update(ciphertext) + decryptor.finalize()
        if self._method.padded:
            unpadder = padding.PKCS7(AES_BLOCK_BITS).unpadder()
            try:
                raw = unpadder.update(raw) + unpadder.finalize()
            except ValueError as exc:
                raise DecryptionError(code="invalid_padding", message="Decryption failed: bad padding") from exc
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionError(code="invalid_plaintext", message="Decrypted data is not valid UTF-8") from exc
