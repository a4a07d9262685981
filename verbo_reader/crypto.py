"""Symmetric cipher boundary for data encrypted at rest."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Cipher(Protocol):
    """Opaque symmetric cipher over UTF-8 strings."""

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...


def encrypt_field(cipher: Cipher, text: str) -> str:
    """Encrypt a single field. Empty text stays empty."""
    if not text:
        return ""
    return cipher.encrypt(text)


def decrypt_field(cipher: Cipher, ciphertext: str | None) -> str:
    """Decrypt a single field, returning "" for empty or unreadable input.

    Args:
        cipher: The cipher to use.
        ciphertext: The stored value.

    Returns:
        The plaintext, or an empty string if decryption fails.
    """
    if not ciphertext:
        return ""
    try:
        return cipher.decrypt(ciphertext) or ""
    except Exception:
        logger.warning("Failed to decrypt field; returning empty value", exc_info=True)
        return ""
