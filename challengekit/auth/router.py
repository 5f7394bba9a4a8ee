"""
ChallengeKit - Challenge Router

API endpoints for email verification and password reset links.

Endpoints:
    POST /auth/send-verification          - Send a verification email
    GET  /auth/verify-email               - Verify email from link
    POST /auth/forgot-password            - Request password reset email
    POST /auth/reset-password/validate    - Check a reset link before showing the form

Every rejected link gets the same response, whether the token was
malformed, expired, or issued to an account that no longer exists.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse

from .exceptions import TransientDependencyFailure
from .schemas import (
    LostPasswordRequest, MessageResponse, ResetAuthorization,
    TokenValidation, VerificationRequest,
)
from .service import ChallengeService, get_challenge_service

logger = logging.getLogger("challengekit.auth")
router = APIRouter()

INVALID_LINK_MESSAGE = "This link is invalid or has expired."
VERIFICATION_SENT_MESSAGE = "If that account is awaiting verification, a verification email has been sent."
RESET_SENT_MESSAGE = "If an account exists with that name or email, a reset link has been sent."

# Only mail transport outages are hidden; a database outage still answers 503.
EMAIL_DEPENDENCY = "email"


# -----------------------------------------------------------------------------
# Email Verification
# -----------------------------------------------------------------------------

@router.post("/send-verification", response_model=MessageResponse)
async def send_verification(
    data: VerificationRequest,
    service: ChallengeService = Depends(get_challenge_service),
):
    """
    Send the verification email for an account that is still pending.

    Always returns the same message, so the response does not reveal
    whether the username exists or is already verified.
    """
    account = service.directory.find_by_identity(data.username)

    if account is not None and not account.is_verified:
        try:
            await service.verification.send_challenge_email(account, service.verification_url)
        except TransientDependencyFailure as e:
            if e.dependency != EMAIL_DEPENDENCY:
                raise
            logger.warning("Failed to send verification email: %s", e)

    return MessageResponse(message=VERIFICATION_SENT_MESSAGE)


@router.get("/verify-email")
async def verify_email(
    token: str,
    service: ChallengeService = Depends(get_challenge_service),
):
    """
    Verify a user's email from the link in the verification email.

    Returns an HTML page that redirects to login on success.
    """
    account = service.verification.validate_challenge(token)
    if account is None:
        return HTMLResponse(
            content=f"""<!DOCTYPE html>
<html><head><title>Verification Failed</title></head>
<body style="font-family: sans-serif; text-align: center; padding: 60px;">
<h2 style="color: #dc2626;">Invalid or Expired Link</h2>
<p>{INVALID_LINK_MESSAGE}</p>
<p><a href="/login" style="color: #2563eb;">Go to login</a> and request a new one from your account settings.</p>
</body></html>""",
            status_code=400,
        )

    return HTMLResponse(
        content="""<!DOCTYPE html>
<html><head><title>Email Verified</title>
<meta http-equiv="refresh" content="3;url=/login"></head>
<body style="font-family: sans-serif; text-align: center; padding: 60px;">
<h2 style="color: #16a34a;">Email Verified!</h2>
<p>Your email has been verified successfully. Redirecting to login...</p>
<p><a href="/login" style="color: #2563eb;">Click here if not redirected</a></p>
</body></html>"""
    )


# -----------------------------------------------------------------------------
# Password Reset
# -----------------------------------------------------------------------------

@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: LostPasswordRequest,
    service: ChallengeService = Depends(get_challenge_service),
):
    """
    Request a password reset email.

    Always returns success to prevent account enumeration, including when
    the email transport is down: only existing accounts reach it.
    """
    try:
        await service.lost_password.send_lost_password_email(
            data.username_or_email, service.lost_password_url
        )
    except TransientDependencyFailure as e:
        if e.dependency != EMAIL_DEPENDENCY:
            raise
        logger.warning("Failed to send password reset email: %s", e)

    return MessageResponse(message=RESET_SENT_MESSAGE)


@router.post("/reset-password/validate", response_model=ResetAuthorization)
async def validate_reset_link(
    data: TokenValidation,
    service: ChallengeService = Depends(get_challenge_service),
):
    """
    Check a reset token before the password form is shown.

    The token is not consumed; the password change endpoint must check it again.
    """
    account = service.lost_password.validate_lost_password(data.token)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=INVALID_LINK_MESSAGE,
        )

    return ResetAuthorization(username=account.username)
