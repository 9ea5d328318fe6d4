"""SQLAlchemy models package."""
from dreamer_api.models.user import User, UserRole, UserStatus
from dreamer_api.models.auth import TokenPurpose, UserSession, VerificationToken

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "UserSession",
    "VerificationToken",
    "TokenPurpose",
]
