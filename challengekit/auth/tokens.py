"""
ChallengeKit - Nonce codec for email verification and password reset.

A nonce carries the account's username, an absolute UTC expiry and, when
minted for a particular flow, that flow's purpose label. The payload is
serialized to JSON, encrypted with an authenticated cipher, and encoded
with URL-safe base64. No database storage needed: everything required to
validate the token travels inside it.

Redeeming never raises for bad input. Every decode, decrypt, or parse
failure becomes a MALFORMED result; the cause is only logged.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from itsdangerous import BadData
from itsdangerous.encoding import base64_decode, base64_encode
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from .clock import Clock, SystemClock
from .crypto import Cipher
from .exceptions import CipherError

logger = logging.getLogger("challengekit.tokens")

# Fixed, locale-independent expiry format. Microseconds are kept so that a
# decoded expiry equals the minted one exactly.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return _as_utc(value).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


class NoncePayload(BaseModel):
    """Plaintext carried inside the encrypted nonce."""
    model_config = ConfigDict(extra="forbid")

    un: str = Field(min_length=1)
    utc: datetime
    p: Optional[str] = None

    @field_validator("utc", mode="before")
    @classmethod
    def _parse_utc(cls, value):
        if isinstance(value, datetime):
            return _as_utc(value)
        if not isinstance(value, str):
            raise ValueError("expiry must be a timestamp string")
        return parse_timestamp(value)

    @field_serializer("utc")
    def _format_utc(self, value: datetime) -> str:
        return format_timestamp(value)


class NonceStatus(str, enum.Enum):
    VALID = "valid"
    EXPIRED = "expired"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class RedeemResult:
    """
    Outcome of redeeming a nonce.

    ``identity`` and ``expires_at`` are set for VALID and EXPIRED results and
    are None for MALFORMED ones. Truthy only when VALID.
    """
    status: NonceStatus
    identity: Optional[str] = None
    expires_at: Optional[datetime] = None

    @property
    def is_valid(self) -> bool:
        return self.status is NonceStatus.VALID

    def __bool__(self) -> bool:
        return self.is_valid


MALFORMED = RedeemResult(NonceStatus.MALFORMED)


class NonceCodec:
    """
    Mints and redeems challenge nonces.

    Usage:
        codec = NonceCodec(AesGcmCipher(secret))
        token = codec.mint("alice", timedelta(days=7))
        result = codec.redeem(token)
        if result:
            username = result.identity
    """

    def __init__(self, cipher: Cipher, clock: Optional[Clock] = None):
        self.cipher = cipher
        self.clock = clock or SystemClock()

    def mint(
        self,
        identity: str,
        delay: timedelta,
        now: Optional[datetime] = None,
        purpose: Optional[str] = None,
    ) -> str:
        """
        Create a nonce for ``identity`` that expires ``delay`` after ``now``.

        Args:
            identity: Username the nonce is issued to
            delay: Lifetime of the nonce, must be positive
            now: Mint time (defaults to the codec's clock)
            purpose: Label the nonce is bound to; redeem must present the same one

        Returns:
            URL-safe token string

        Raises:
            ValueError: on an empty identity or a non-positive delay
        """
        if not identity:
            raise ValueError("identity must not be empty")
        if delay <= timedelta(0):
            raise ValueError("delay must be positive")

        now = _as_utc(now if now is not None else self.clock.now())
        payload = NoncePayload(un=identity, utc=now + delay, p=purpose)
        ciphertext = self.cipher.encrypt(payload.model_dump_json(exclude_none=True).encode("utf-8"))
        return base64_encode(ciphertext).decode("ascii")

    def redeem(
        self,
        token: str,
        now: Optional[datetime] = None,
        purpose: Optional[str] = None,
    ) -> RedeemResult:
        """
        Decode and validate a nonce.

        The expiry is inclusive: a nonce redeemed exactly at its expiry is
        still valid. A nonce minted for another purpose is MALFORMED.

        Returns:
            RedeemResult with status VALID, EXPIRED, or MALFORMED
        """
        payload = self._decode(token)
        if payload is None:
            return MALFORMED
        if payload.p != purpose:
            logger.debug("Rejected nonce: minted for %r, presented for %r", payload.p, purpose)
            return MALFORMED

        now = _as_utc(now if now is not None else self.clock.now())
        if now > payload.utc:
            logger.debug("Nonce for %s expired at %s", payload.un, payload.utc.isoformat())
            return RedeemResult(NonceStatus.EXPIRED, payload.un, payload.utc)

        return RedeemResult(NonceStatus.VALID, payload.un, payload.utc)

    def _decode(self, token) -> Optional[NoncePayload]:
        if not isinstance(token, str) or not token:
            logger.debug("Rejected nonce: empty or not a string")
            return None

        try:
            ciphertext = base64_decode(token)
        except BadData:
            logger.debug("Rejected nonce: invalid base64")
            return None

        # Only the canonical encoding is accepted; decoders silently drop
        # stray characters and ignore trailing bits.
        if base64_encode(ciphertext).decode("ascii") != token:
            logger.debug("Rejected nonce: non-canonical encoding")
            return None

        try:
            plaintext = self.cipher.decrypt(ciphertext)
        except CipherError as e:
            logger.debug("Rejected nonce: %s", e)
            return None

        try:
            return NoncePayload.model_validate_json(plaintext)
        except ValidationError as e:
            logger.debug("Rejected nonce: bad payload (%d errors)", e.error_count())
            return None
