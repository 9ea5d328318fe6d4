"""User model."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import relationship

from dreamer_api.database import Base


class UserRole:
    """Account roles, lowest privilege first."""

    VISITOR = "visitor"
    CLIENT = "client"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    ALL = (VISITOR, CLIENT, ADMIN, SUPER_ADMIN)
    STAFF = (ADMIN, SUPER_ADMIN)


class UserStatus:
    """Account lifecycle states."""

    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"
    DELETED = "deleted"

    ALL = (ACTIVE, PENDING, SUSPENDED, DELETED)


class User(Base):
    """User account."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    company = Column(String(255))
    role = Column(String(20), nullable=False, default=UserRole.CLIENT)
    status = Column(String(20), nullable=False, default=UserStatus.PENDING, index=True)

    # MFA
    mfa_secret = Column(Text)
    mfa_enabled = Column(Boolean, nullable=False, default=False)
    # jti of the outstanding MFA challenge; cleared once it is redeemed
    mfa_challenge_jti = Column(String(36))

    # Failed login tracking
    failed_login_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(String(26))

    # Timestamps
    email_verified_at = Column(String(26))
    last_login_at = Column(String(26))
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())

    # Relationships
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    verification_tokens = relationship("VerificationToken", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def is_locked(self, now: datetime | None = None) -> bool:
        if not self.locked_until:
            return False
        return datetime.fromisoformat(self.locked_until) > (now or datetime.utcnow())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
