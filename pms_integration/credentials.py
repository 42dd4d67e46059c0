"""
Encryption of vendor credentials at rest

AES-256-GCM with a random 96-bit nonce per value. Stored form is
"<nonce hex>:<ciphertext+tag hex>".
"""

import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .config import PMSIntegrationSettings
from .errors import CredentialError

NONCE_SIZE = 12
KEY_SIZE = 32


class CredentialCipher:
    """Encrypts and decrypts API keys with a process-wide key"""

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise CredentialError(
                f"Encryption key must be {KEY_SIZE} bytes",
                error_code="INVALID_ENCRYPTION_KEY",
            )
        self._aesgcm = AESGCM(key)

    @classmethod
    def from_hex(cls, hex_key: Optional[str]) -> "CredentialCipher":
        if not hex_key:
            raise CredentialError(
                "PMS_ENCRYPTION_KEY is not configured",
                error_code="MISSING_ENCRYPTION_KEY",
            )
        try:
            key = bytes.fromhex(hex_key)
        except ValueError as e:
            raise CredentialError(
                "PMS_ENCRYPTION_KEY must be hex encoded",
                error_code="INVALID_ENCRYPTION_KEY",
            ) from e
        return cls(key)

    @classmethod
    def from_settings(cls, settings: PMSIntegrationSettings) -> "CredentialCipher":
        return cls.from_hex(settings.secret_value(settings.pms_encryption_key))

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return f"{nonce.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        try:
            nonce_hex, ciphertext_hex = token.split(":", 1)
            nonce = bytes.fromhex(nonce_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError as e:
            raise CredentialError(
                "Malformed encrypted credential",
                error_code="MALFORMED_CREDENTIAL",
            ) from e

        try:
            return self._aesgcm.decrypt(nonce, ciphertext, None).decode("utf-8")
        except InvalidTag as e:
            raise CredentialError(
                "Credential could not be decrypted",
                error_code="CREDENTIAL_DECRYPT_FAILED",
            ) from e


def generate_encryption_key() -> str:
    """Generate a new hex encoded key for PMS_ENCRYPTION_KEY"""
    return AESGCM.generate_key(bit_length=256).hex()
