"""
ChallengeKit - Challenge exceptions.

Malformed, expired, and unknown-account tokens are ordinary outcomes, not
exceptions. Only dependency failures propagate to callers.
"""


class ChallengeError(Exception):
    """Base exception for challenge errors."""
    pass


class CipherError(ChallengeError):
    """Ciphertext could not be decrypted or authenticated."""
    pass


class TransientDependencyFailure(ChallengeError):
    """
    A collaborator (database, email transport) was unavailable or timed out.

    Safe to retry. Never raised for bad or expired tokens.
    """

    def __init__(self, dependency: str, message: str = ""):
        self.dependency = dependency
        super().__init__(message or f"{dependency} unavailable")
