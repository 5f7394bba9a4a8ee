"""
ChallengeKit - Challenge Module

Stateless email verification and password reset challenges.

Usage:
    from challengekit.auth import get_challenge_service

    service = get_challenge_service()
    await service.lost_password.send_lost_password_email(
        "alice", service.lost_password_url
    )
    account = service.lost_password.validate_lost_password(token)

Configuration (environment variables):
    CHALLENGEKIT_SECRET_KEY=<key>            - Token encryption key (required in production)
    CHALLENGEKIT_VERIFICATION_DELAY_DAYS=7
    CHALLENGEKIT_RESET_DELAY_DAYS=1
"""

# Models
from .models import User, UserStatus

# Codec
from .tokens import NonceCodec, NonceStatus, RedeemResult
from .crypto import AesGcmCipher
from .exceptions import ChallengeError, CipherError, TransientDependencyFailure

# Flows
from .challenges import EmailVerificationFlow, PasswordResetFlow
from .directory import SqlAccountDirectory
from .service import ChallengeService, build_challenge_service, get_challenge_service

# Router (for mounting in main.py)
from .router import router

__all__ = [
    # Models
    "User",
    "UserStatus",
    # Codec
    "NonceCodec",
    "NonceStatus",
    "RedeemResult",
    "AesGcmCipher",
    "ChallengeError",
    "CipherError",
    "TransientDependencyFailure",
    # Flows
    "EmailVerificationFlow",
    "PasswordResetFlow",
    "SqlAccountDirectory",
    "ChallengeService",
    "build_challenge_service",
    "get_challenge_service",
    # Router
    "router",
]
