"""Authentication/session models."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from dreamer_api.database import Base


class TokenPurpose:
    """What a single-use verification token may be redeemed for."""

    EMAIL_VERIFY = "email_verify"
    PASSWORD_RESET = "password_reset"


class UserSession(Base):
    """Refresh-token session; one row per logged-in device."""

    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_user_token", "user_id", "token_hash"),
        Index("ix_sessions_expires_at", "expires_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False)
    ip_address = Column(String(45))
    user_agent = Column(String(255))
    expires_at = Column(String(26), nullable=False)
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())

    user = relationship("User", back_populates="sessions")


class VerificationToken(Base):
    """Single-use token for email verification or password reset."""

    __tablename__ = "verification_tokens"
    __table_args__ = (
        Index("ix_verification_tokens_user_purpose", "user_id", "purpose"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    purpose = Column(String(20), nullable=False)
    expires_at = Column(String(26), nullable=False)
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())

    user = relationship("User", back_populates="verification_tokens")
