"""
ChallengeKit - Challenge service wiring.

Builds the nonce codec and both challenge flows from settings. Routers and
scripts use ``get_challenge_service()``; tests construct ChallengeService
directly with their own collaborators.
"""
import logging
from functools import lru_cache
from typing import Optional

from ..config import Settings, settings as default_settings
from ..services.email_service import EmailService
from ..services.templates import TemplateRenderer
from .challenges import EmailVerificationFlow, PasswordResetFlow
from .clock import Clock, SystemClock
from .crypto import cipher_from_settings
from .directory import SqlAccountDirectory
from .tokens import NonceCodec

logger = logging.getLogger("challengekit.auth")


class ChallengeService:
    """
    Holds the verification and lost-password flows sharing one codec.

    Provides:
    - verification: EmailVerificationFlow
    - lost_password: PasswordResetFlow
    - directory: the account directory both flows use
    """

    def __init__(
        self,
        codec: NonceCodec,
        directory,
        notifier,
        renderer,
        clock: Optional[Clock] = None,
        app_settings: Optional[Settings] = None,
    ):
        app_settings = app_settings or default_settings
        clock = clock or SystemClock()

        self.codec = codec
        self.directory = directory
        self.notifier = notifier
        self.base_url = app_settings.base_url.rstrip("/")

        self.verification = EmailVerificationFlow(
            codec, directory, notifier, renderer, clock,
            delay=app_settings.challenge.verification_delay,
            registered_website=app_settings.challenge.registered_website,
            contact_email=app_settings.challenge.contact_email,
        )
        self.lost_password = PasswordResetFlow(
            codec, directory, notifier, renderer, clock,
            delay=app_settings.challenge.reset_delay,
        )

    def verification_url(self, token: str) -> str:
        return f"{self.base_url}/auth/verify-email?token={token}"

    def lost_password_url(self, token: str) -> str:
        return f"{self.base_url}/reset-password?token={token}"


def build_challenge_service(app_settings: Optional[Settings] = None, session_factory=None) -> ChallengeService:
    """Create a ChallengeService backed by the database and email settings."""
    app_settings = app_settings or default_settings
    clock = SystemClock()
    service = ChallengeService(
        codec=NonceCodec(cipher_from_settings(app_settings.challenge), clock),
        directory=SqlAccountDirectory(session_factory),
        notifier=EmailService(app_settings.email),
        renderer=TemplateRenderer(app_settings.email.templates_path),
        clock=clock,
        app_settings=app_settings,
    )
    if app_settings.challenge.secret_key == "development-secret-key-change-in-production":
        logger.warning("Using the development secret key; set CHALLENGEKIT_SECRET_KEY in production")
    return service


@lru_cache
def get_challenge_service() -> ChallengeService:
    """Process-wide ChallengeService (FastAPI dependency)."""
    return build_challenge_service()
