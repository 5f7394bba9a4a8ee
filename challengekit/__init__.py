# ChallengeKit - Account challenge tokens
"""
ChallengeKit - Stateless challenge tokens for account workflows.

Mints and redeems encrypted, time-limited nonces used to confirm email
addresses and authorize password resets without server-side session state.
"""

__version__ = "1.0.0"
__author__ = "ChallengeKit"
__description__ = "Stateless email verification and password reset challenges"
