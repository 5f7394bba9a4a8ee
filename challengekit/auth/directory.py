"""
ChallengeKit - Account directory.

Account lookups and verification-status updates used by the challenge flows.
Transient database errors are retried with backoff, then surfaced as
TransientDependencyFailure so callers can tell "try again" from "not found".
"""
import logging
from datetime import datetime
from functools import wraps
from typing import Optional, Protocol

from sqlalchemy import case, or_

from ..database import SessionLocal, is_transient_error, session_scope, with_retry
from .exceptions import TransientDependencyFailure
from .models import User, UserStatus

logger = logging.getLogger("challengekit.directory")


class AccountDirectory(Protocol):
    def find_by_identity(self, identity: str) -> Optional[User]: ...

    def find_by_email_or_username(self, username_or_email: str) -> Optional[User]: ...

    def set_verification_status(self, account: User, status: UserStatus) -> None: ...


def normalize_username(username: str) -> str:
    return username.lower()


def _database_call(func):
    """Retry transient errors, then report them as a dependency failure."""
    retrying = with_retry(func)

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return retrying(*args, **kwargs)
        except Exception as exc:
            if is_transient_error(exc):
                logger.error("Database unavailable in %s: %s", func.__name__, exc)
                raise TransientDependencyFailure("database", str(exc)) from exc
            raise

    return wrapper


class SqlAccountDirectory:
    """
    AccountDirectory backed by the users table.

    Each call runs in its own short session. Returned accounts are detached
    but fully loaded.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or SessionLocal

    @_database_call
    def find_by_identity(self, identity: str) -> Optional[User]:
        """Get an account by its exact username."""
        with session_scope(self._session_factory) as db:
            return db.query(User).filter(User.username == identity).first()

    @_database_call
    def find_by_email_or_username(self, username_or_email: str) -> Optional[User]:
        """
        Get an account by case-insensitive username or by email.

        The email must match exactly, either as given or lower-cased. When one
        account's username equals another account's email, the username match
        wins.
        """
        lowered = username_or_email.lower()
        with session_scope(self._session_factory) as db:
            return db.query(User).filter(
                or_(
                    User.normalized_username == lowered,
                    User.email.in_({username_or_email, lowered}),
                )
            ).order_by(
                case((User.normalized_username == lowered, 0), else_=1),
                User.id,
            ).first()

    @_database_call
    def set_verification_status(self, account: User, status: UserStatus) -> None:
        """Persist a new email status. Setting the current status again is a no-op."""
        with session_scope(self._session_factory) as db:
            updated = db.query(User).filter(
                User.id == account.id,
                User.email_status != status,
            ).update(
                {"email_status": status, "updated_at": datetime.utcnow()},
                synchronize_session=False,
            )
        account.email_status = status
        if updated:
            logger.info("Set email status of user %s to %s", account.id, status.value)

    @_database_call
    def verify_user_unicity(
        self,
        username: str,
        email: str,
        exclude_id: Optional[int] = None
    ) -> bool:
        """
        Check that no other account uses this username or email.

        Args:
            username: Candidate username (compared case-insensitively)
            email: Candidate email
            exclude_id: Account being edited, allowed to match itself

        Returns:
            True if both are free, False otherwise
        """
        with session_scope(self._session_factory) as db:
            query = db.query(User.id).filter(
                or_(
                    User.normalized_username == normalize_username(username),
                    User.email == email,
                )
            )
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            return query.first() is None

    @_database_call
    def create_user(self, username: str, email: str, name: Optional[str] = None) -> User:
        """Create a pending account."""
        with session_scope(self._session_factory) as db:
            user = User(
                username=username,
                normalized_username=normalize_username(username),
                email=email,
                name=name,
                email_status=UserStatus.PENDING,
            )
            db.add(user)
            db.flush()
            db.refresh(user)
        logger.info("Created user %s (%s)", user.id, username)
        return user
