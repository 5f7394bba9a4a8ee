#!/usr/bin/env python3
"""
ChallengeKit - Challenge Link CLI

Print a verification or password reset link for an account.
Useful when there's no email service configured.

Usage:
    python scripts/issue_link.py verify alice
    python scripts/issue_link.py reset alice@example.com
"""
import sys
import os

# Add project root to path so we can import challengekit modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from challengekit.database import init_db
from challengekit.auth.service import build_challenge_service


def issue_link(kind: str, username_or_email: str) -> str:
    init_db()
    service = build_challenge_service()

    account = service.directory.find_by_email_or_username(username_or_email)
    if not account:
        print(f"Error: No user found matching '{username_or_email}'")
        sys.exit(1)

    if kind == "verify":
        return service.verification_url(service.verification.mint(account))
    return service.lost_password_url(service.lost_password.mint(account))


if __name__ == "__main__":
    if len(sys.argv) != 3 or sys.argv[1] not in ("verify", "reset"):
        print("Usage: python scripts/issue_link.py <verify|reset> <username_or_email>")
        print("Example: python scripts/issue_link.py reset user@example.com")
        sys.exit(1)

    print(issue_link(sys.argv[1], sys.argv[2]))
