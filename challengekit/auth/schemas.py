"""
ChallengeKit - Challenge Schemas

Pydantic models for challenge request/response validation.
"""
from pydantic import BaseModel, Field


class VerificationRequest(BaseModel):
    """Request body for (re)sending a verification email."""
    username: str = Field(..., min_length=1, max_length=64)


class LostPasswordRequest(BaseModel):
    """Request body for a password reset email."""
    username_or_email: str = Field(..., min_length=1, max_length=254)


class TokenValidation(BaseModel):
    """Request body carrying a token from an emailed link."""
    token: str = Field(..., min_length=1, max_length=2048)


class ResetAuthorization(BaseModel):
    """A reset token that was accepted."""
    username: str


class MessageResponse(BaseModel):
    message: str
