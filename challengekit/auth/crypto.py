"""
ChallengeKit - Symmetric encryption for challenge payloads.

AES-256-GCM provides both confidentiality and integrity: a flipped or
truncated byte fails authentication instead of decrypting to other data.

Keys are derived from the configured secret with HKDF, so any string can be
used as CHALLENGEKIT_SECRET_KEY. Retired secrets can be listed in
CHALLENGEKIT_PREVIOUS_SECRET_KEYS; they are tried on decrypt only.
"""
import logging
import os
from typing import Iterable, List, Optional, Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .exceptions import CipherError

logger = logging.getLogger("challengekit.crypto")

NONCE_SIZE = 12
TAG_SIZE = 16
KEY_INFO = b"challengekit-nonce-key-v1"


class Cipher(Protocol):
    def encrypt(self, plaintext: bytes) -> bytes: ...

    def decrypt(self, ciphertext: bytes) -> bytes: ...


def derive_key(secret: str) -> bytes:
    """Derive a 256-bit AES key from an arbitrary secret string."""
    if not secret:
        raise ValueError("secret key must not be empty")
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=KEY_INFO,
    )
    return hkdf.derive(secret.encode("utf-8"))


class AesGcmCipher:
    """
    Authenticated encryption with key rotation support.

    Output layout: nonce (12 bytes) || ciphertext || tag (16 bytes).

    Usage:
        cipher = AesGcmCipher("current-secret", previous_keys=["old-secret"])
        blob = cipher.encrypt(b"payload")
        cipher.decrypt(blob)
    """

    def __init__(self, secret_key: str, previous_keys: Optional[Iterable[str]] = None):
        self._current = AESGCM(derive_key(secret_key))
        self._previous: List[AESGCM] = [
            AESGCM(derive_key(k)) for k in (previous_keys or [])
        ]

    def encrypt(self, plaintext: bytes) -> bytes:
        nonce = os.urandom(NONCE_SIZE)
        return nonce + self._current.encrypt(nonce, plaintext, None)

    def decrypt(self, ciphertext: bytes) -> bytes:
        """
        Decrypt with the current key, then each previous key.

        Raises:
            CipherError: if the input is too short or no key authenticates it
        """
        if len(ciphertext) < NONCE_SIZE + TAG_SIZE:
            raise CipherError("ciphertext too short")

        nonce, body = ciphertext[:NONCE_SIZE], ciphertext[NONCE_SIZE:]
        for index, key in enumerate([self._current] + self._previous):
            try:
                plaintext = key.decrypt(nonce, body, None)
            except InvalidTag:
                continue
            if index:
                logger.debug("Decrypted payload with previous key #%d", index)
            return plaintext

        raise CipherError("ciphertext failed authentication")


def cipher_from_settings(challenge_settings=None) -> AesGcmCipher:
    """Build the cipher from CHALLENGEKIT_* settings."""
    if challenge_settings is None:
        from ..config import settings
        challenge_settings = settings.challenge
    return AesGcmCipher(
        challenge_settings.secret_key,
        previous_keys=challenge_settings.previous_keys,
    )
