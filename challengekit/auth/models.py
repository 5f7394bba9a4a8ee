"""
ChallengeKit - Account Models

SQLAlchemy model for accounts that receive challenge emails.
"""
import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, Integer, String

from ..database import Base


class UserStatus(str, enum.Enum):
    """Email verification status of an account."""
    PENDING = "pending"
    APPROVED = "approved"


class User(Base):
    """Account model. Challenge tokens identify accounts by username."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False)
    # Lower-cased username, used for case-insensitive lookups and uniqueness
    normalized_username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    email_status = Column(Enum(UserStatus), default=UserStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_verified(self) -> bool:
        return self.email_status == UserStatus.APPROVED

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"
