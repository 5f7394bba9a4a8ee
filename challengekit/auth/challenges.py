"""
ChallengeKit - Email verification and password reset challenges.

Both flows follow the same shape:

    request -> mint nonce -> email a link carrying it
    link presented -> redeem nonce -> look up account -> accept or reject

Requesting is async because it sends email. Resolving is synchronous.
A malformed token, an expired token, and an account that no longer exists
all resolve to None; callers must show the same message for each.

Tokens are not single-use: a link keeps working until it expires. Each flow
binds its tokens to its own purpose label, so a reset link cannot verify an
email and a verification link cannot authorize a reset.
"""
import logging
from datetime import timedelta
from typing import Callable, Optional

from .clock import Clock, SystemClock
from .directory import AccountDirectory
from .models import User, UserStatus
from .tokens import NonceCodec
from ..services.email_service import EMAIL_CHANNEL, Notifier
from ..services.templates import LOST_PASSWORD_TEMPLATE, VERIFICATION_TEMPLATE, Renderer

logger = logging.getLogger("challengekit.challenges")

UrlBuilder = Callable[[str], str]

DELAY_TO_VALIDATE = timedelta(days=7)
DELAY_TO_RESET_PASSWORD = timedelta(days=1)


def describe_delay(delay: timedelta) -> str:
    """Human-readable lifetime for email footers, e.g. "7 days" or "1 hour"."""
    if delay.days and not delay.seconds:
        return f"{delay.days} day{'s' if delay.days != 1 else ''}"
    hours = int(delay.total_seconds() // 3600)
    if hours and not delay.total_seconds() % 3600:
        return f"{hours} hour{'s' if hours != 1 else ''}"
    if delay.total_seconds() < 60:
        seconds = max(int(delay.total_seconds()), 1)
        return f"{seconds} second{'s' if seconds != 1 else ''}"
    minutes = int(delay.total_seconds() // 60)
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


class ChallengeFlow:
    """
    Shared mint/resolve logic for one kind of challenge.

    Subclasses pick the delay, the email template, and what happens to an
    account once its challenge is accepted.
    """

    name = "challenge"
    purpose = "challenge"
    default_delay = DELAY_TO_VALIDATE

    def __init__(
        self,
        codec: NonceCodec,
        directory: AccountDirectory,
        notifier: Notifier,
        renderer: Renderer,
        clock: Optional[Clock] = None,
        delay: Optional[timedelta] = None,
    ):
        self.codec = codec
        self.directory = directory
        self.notifier = notifier
        self.renderer = renderer
        self.clock = clock or SystemClock()
        self.delay = delay or self.default_delay

    def mint(self, account: User) -> str:
        return self.codec.mint(account.username, self.delay, self.clock.now(), purpose=self.purpose)

    async def _dispatch(self, account: User, template: str, context: dict) -> bool:
        subject, body = self.renderer.render(template, context)
        sent = await self.notifier.send(EMAIL_CHANNEL, subject, body, account.email)
        if sent:
            logger.info("Sent %s email to user %s", self.name, account.id)
        else:
            logger.warning("Could not send %s email to user %s", self.name, account.id)
        return sent

    def resolve_challenge(self, token: str) -> Optional[User]:
        """
        Turn a presented token into the account it was issued to.

        Returns:
            The account, or None if the token is malformed or expired or
            its account no longer exists

        Raises:
            TransientDependencyFailure: if the account lookup could not run
        """
        result = self.codec.redeem(token, self.clock.now(), purpose=self.purpose)
        if not result:
            logger.info("Rejected %s token: %s", self.name, result.status.value)
            return None

        account = self.directory.find_by_identity(result.identity)
        if account is None:
            logger.info("Rejected %s token: account %r not found", self.name, result.identity)
            return None

        self._on_resolved(account)
        return account

    def _on_resolved(self, account: User) -> None:
        pass


class EmailVerificationFlow(ChallengeFlow):
    """Confirms that an account owns its email address."""

    name = "verification"
    purpose = "email-verify"
    default_delay = DELAY_TO_VALIDATE

    def __init__(self, *args, registered_website: str = "", contact_email: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.registered_website = registered_website
        self.contact_email = contact_email

    async def send_challenge_email(self, account: Optional[User], url_builder: UrlBuilder) -> bool:
        """
        Email a verification link to an already-loaded account.

        Args:
            account: Account to verify; None is a no-op
            url_builder: Builds the link from the token

        Returns:
            True if the email was handed off for delivery
        """
        if account is None:
            return False

        url = url_builder(self.mint(account))
        return await self._dispatch(account, VERIFICATION_TEMPLATE, {
            "registered_website": self.registered_website,
            "contact_email": self.contact_email,
            "challenge_url": url,
            "user_name": account.name or account.username,
            "expires_in": describe_delay(self.delay),
        })

    def validate_challenge(self, token: str) -> Optional[User]:
        """Resolve a verification token and mark the account's email approved."""
        return self.resolve_challenge(token)

    def _on_resolved(self, account: User) -> None:
        # Idempotent: approving twice leaves the account approved
        self.directory.set_verification_status(account, UserStatus.APPROVED)


class PasswordResetFlow(ChallengeFlow):
    """Authorizes a password change for whoever holds the emailed link."""

    name = "lost-password"
    purpose = "password-reset"
    default_delay = DELAY_TO_RESET_PASSWORD

    async def send_lost_password_email(self, username_or_email: str, url_builder: UrlBuilder) -> bool:
        """
        Email a reset link to the account matching a username or email.

        An unknown username or email is an expected outcome: nothing is
        sent and False is returned.
        """
        account = self.directory.find_by_email_or_username(username_or_email)
        if account is None:
            logger.info("Lost password requested for unknown account")
            return False

        url = url_builder(self.mint(account))
        return await self._dispatch(account, LOST_PASSWORD_TEMPLATE, {
            "username": account.username,
            "user_name": account.name or account.username,
            "lost_password_url": url,
            "expires_in": describe_delay(self.delay),
        })

    def validate_lost_password(self, token: str) -> Optional[User]:
        """Resolve a reset token. The account is not modified."""
        return self.resolve_challenge(token)
