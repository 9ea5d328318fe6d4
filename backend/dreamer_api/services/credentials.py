"""Persistence of users, refresh sessions and single-use verification tokens."""
from datetime import datetime, timedelta
import hashlib
import logging
import secrets

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dreamer_api.models.auth import UserSession, VerificationToken
from dreamer_api.models.user import User
from dreamer_api.services.errors import DuplicateEmailError, InvalidOrExpiredTokenError

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    """Hash a token before persisting or looking it up."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialStore:
    """Row-level access to the auth tables through one SQLAlchemy session.

    Nothing here commits; callers own the transaction.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    # Users

    def find_user_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def find_user_by_id(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def list_users(self, limit: int = 50, offset: int = 0) -> list[User]:
        return (
            self.db.query(User)
            .order_by(User.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def create_user(self, **fields) -> User:
        """Insert a user row, raising DuplicateEmailError on a taken email."""
        fields["email"] = normalize_email(fields["email"])
        user = User(**fields)
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateEmailError() from exc
        return user

    # Sessions

    def create_session(
        self,
        user_id: str,
        refresh_token: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
        expires_at: datetime | None = None,
    ) -> UserSession:
        """Persist a refresh session; only the token hash is stored."""
        session = UserSession(
            user_id=user_id,
            token_hash=hash_token(refresh_token),
            ip_address=ip_address,
            user_agent=user_agent[:255] if user_agent else None,
            expires_at=(expires_at or datetime.utcnow() + timedelta(days=30)).isoformat(),
        )
        self.db.add(session)
        self.db.flush()
        return session

    def find_session(self, user_id: str, refresh_token: str) -> UserSession | None:
        """Find a live session; expired rows are removed and reported as absent."""
        session = self.db.query(UserSession).filter(
            UserSession.user_id == user_id,
            UserSession.token_hash == hash_token(refresh_token),
        ).first()
        if session is None:
            return None

        if datetime.fromisoformat(session.expires_at) <= datetime.utcnow():
            logger.info(f"Removing expired session {session.id} for user {user_id}")
            self.db.delete(session)
            self.db.flush()
            return None
        return session

    def list_sessions(self, user_id: str) -> list[UserSession]:
        now = datetime.utcnow().isoformat()
        return (
            self.db.query(UserSession)
            .filter(UserSession.user_id == user_id, UserSession.expires_at > now)
            .order_by(UserSession.created_at.desc())
            .all()
        )

    def delete_session(self, user_id: str, refresh_token: str) -> int:
        return self.db.query(UserSession).filter(
            UserSession.user_id == user_id,
            UserSession.token_hash == hash_token(refresh_token),
        ).delete(synchronize_session=False)

    def delete_all_sessions(self, user_id: str) -> int:
        return self.db.query(UserSession).filter(
            UserSession.user_id == user_id,
        ).delete(synchronize_session=False)

    # Verification tokens

    def create_verification_token(
        self,
        user_id: str,
        purpose: str,
        ttl: timedelta,
    ) -> str:
        """Issue a single-use token and return its raw value."""
        token = secrets.token_urlsafe(32)
        self.db.add(VerificationToken(
            user_id=user_id,
            token_hash=hash_token(token),
            purpose=purpose,
            expires_at=(datetime.utcnow() + ttl).isoformat(),
        ))
        self.db.flush()
        return token

    def delete_verification_tokens(self, user_id: str, purpose: str) -> int:
        return self.db.query(VerificationToken).filter(
            VerificationToken.user_id == user_id,
            VerificationToken.purpose == purpose,
        ).delete(synchronize_session=False)

    def consume_verification_token(self, token: str, purpose: str) -> str:
        """Redeem a token exactly once and return the owning user id.

        The row is claimed with a conditional DELETE; when two requests race
        for the same token only one of them sees a row count of 1.
        """
        now = datetime.utcnow().isoformat()
        row = self.db.query(VerificationToken).filter(
            VerificationToken.token_hash == hash_token(token),
            VerificationToken.purpose == purpose,
            VerificationToken.expires_at > now,
        ).first()
        if row is None:
            raise InvalidOrExpiredTokenError()

        user_id = row.user_id
        claimed = self.db.query(VerificationToken).filter(
            VerificationToken.id == row.id,
        ).delete(synchronize_session=False)
        if claimed != 1:
            raise InvalidOrExpiredTokenError()

        self.db.expunge(row)
        return user_id
