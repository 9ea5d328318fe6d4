"""Authentication service: registration, login, sessions, verification and resets."""
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import uuid

from sqlalchemy.orm import Session

from dreamer_api.config import Settings
from dreamer_api.models.auth import TokenPurpose, UserSession
from dreamer_api.models.user import User, UserRole, UserStatus
from dreamer_api.services import mfa
from dreamer_api.services.credentials import CredentialStore
from dreamer_api.services.email import EmailSender
from dreamer_api.services.errors import (
    AccountInactiveError,
    AccountLockedError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidMfaCodeError,
    InvalidTokenError,
    UserNotFoundError,
    ValidationError,
)
from dreamer_api.services.passwords import PasswordHasher
from dreamer_api.services.tokens import TokenCodec

logger = logging.getLogger(__name__)

REGISTRATION_MESSAGE = "Registration successful. Please check your email to verify your account."
PASSWORD_RESET_REQUEST_MESSAGE = (
    "If an account exists with this email, you will receive password reset instructions."
)


@dataclass
class RegistrationResult:
    user_id: str
    message: str = REGISTRATION_MESSAGE


@dataclass
class LoginResult:
    access_token: str
    refresh_token: str
    user: User


@dataclass
class MfaChallenge:
    mfa_token: str
    requires_mfa: bool = True


@dataclass
class MfaSetup:
    secret: str
    provisioning_uri: str


class AuthService:
    """Orchestrates a user's session lifecycle.

    One instance serves one request: it wraps that request's database session
    and the process-wide token codec, password hasher and email sender.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        token_codec: TokenCodec,
        password_hasher: PasswordHasher,
        email_sender: EmailSender,
    ) -> None:
        self.db = db
        self.settings = settings
        self.store = CredentialStore(db)
        self.tokens = token_codec
        self.passwords = password_hasher
        self.email = email_sender

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        company: str | None = None,
    ) -> RegistrationResult:
        """Create a pending account and send the verification email."""
        if self.store.find_user_by_email(email):
            raise DuplicateEmailError()

        user = self.store.create_user(
            email=email,
            password_hash=self.passwords.hash(password),
            first_name=first_name,
            last_name=last_name,
            company=company,
            role=UserRole.CLIENT,
            status=UserStatus.PENDING,
        )
        token = self.store.create_verification_token(
            user.id,
            TokenPurpose.EMAIL_VERIFY,
            timedelta(hours=self.settings.email_verification_expire_hours),
        )
        self.db.commit()
        logger.info(f"Registered user {user.id}")

        self.email.send(user.email, "verify-email", {
            "name": user.first_name,
            "verification_link": f"{self.settings.frontend_url}/verify-email?token={token}",
        })
        return RegistrationResult(user_id=user.id)

    def login(
        self,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginResult | MfaChallenge:
        """Check credentials and either open a session or issue an MFA challenge.

        Repeated failures lock the account for ``lockout_minutes``. A locked
        account answers exactly like a wrong password, even when the password
        is right, so the lockout says nothing about whether the email exists.
        """
        user = self.store.find_user_by_email(email)
        password_hash = user.password_hash if user else None
        password_ok = self.passwords.verify(password, password_hash)

        if user is not None and user.is_locked():
            logger.warning(f"Login refused for locked user {user.id}")
            raise AccountLockedError()

        if not password_ok:
            logger.warning("Failed login attempt")
            if user is not None:
                self._record_failed_login(user)
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning(f"Login refused for {user.status} user {user.id}")
            raise AccountInactiveError()

        user.failed_login_attempts = 0
        user.locked_until = None

        if user.mfa_enabled:
            jti = str(uuid.uuid4())
            user.mfa_challenge_jti = jti
            self.db.commit()
            return MfaChallenge(mfa_token=self.tokens.issue_mfa_token(user, jti=jti))

        return self._open_session(user, ip_address, user_agent)

    def _record_failed_login(self, user: User) -> None:
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        if user.failed_login_attempts >= self.settings.max_failed_logins:
            locked_until = datetime.utcnow() + timedelta(minutes=self.settings.lockout_minutes)
            user.locked_until = locked_until.isoformat()
            user.failed_login_attempts = 0
            logger.warning(f"User {user.id} locked until {user.locked_until}")
        self.db.commit()

    def verify_mfa(
        self,
        mfa_token: str,
        code: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginResult:
        """Finish a login that stopped at the MFA gate.

        Each challenge can be redeemed once; a wrong code counts as a failed
        login but leaves the challenge open.
        """
        payload = self.tokens.verify_mfa_token(mfa_token)
        user = self.store.find_user_by_id(payload["sub"])
        if user is None or not user.mfa_challenge_jti or payload.get("jti") != user.mfa_challenge_jti:
            raise InvalidTokenError()
        if not user.is_active:
            raise AccountInactiveError()
        if user.is_locked():
            raise AccountLockedError()
        if not user.mfa_enabled or not mfa.verify_code(user.mfa_secret, code):
            logger.warning(f"Invalid MFA code for user {user.id}")
            self._record_failed_login(user)
            raise InvalidMfaCodeError()

        user.mfa_challenge_jti = None
        return self._open_session(user, ip_address, user_agent)

    def _open_session(
        self,
        user: User,
        ip_address: str | None,
        user_agent: str | None,
    ) -> LoginResult:
        access_token = self.tokens.issue_access_token(user)
        refresh_token = self.tokens.issue_refresh_token(user)
        self.store.create_session(
            user.id,
            refresh_token,
            ip_address=ip_address,
            user_agent=user_agent,
            expires_at=datetime.utcnow() + self.tokens.refresh_ttl,
        )
        user.last_login_at = datetime.utcnow().isoformat()
        self.db.commit()
        logger.info(f"User {user.id} logged in")
        return LoginResult(access_token=access_token, refresh_token=refresh_token, user=user)

    def refresh(self, refresh_token: str) -> str:
        """Exchange a refresh token for a new access token.

        The refresh token is not rotated; it stays valid until its session
        expires or is logged out.
        """
        payload = self.tokens.verify_refresh_token(refresh_token)
        user_id = payload["sub"]

        session = self.store.find_session(user_id, refresh_token)
        if session is None:
            # find_session may have dropped an expired row
            self.db.commit()
            logger.warning(f"Refresh with unknown or expired session for user {user_id}")
            raise InvalidTokenError()

        user = self.store.find_user_by_id(user_id)
        if user is None:
            raise InvalidTokenError()
        if not user.is_active:
            raise AccountInactiveError("Account is not active")

        return self.tokens.issue_access_token(user)

    def list_sessions(self, user_id: str) -> list[UserSession]:
        return self.store.list_sessions(user_id)

    def logout(self, user_id: str, refresh_token: str | None = None) -> int:
        """End one session, or every session when no refresh token is given."""
        if refresh_token:
            removed = self.store.delete_session(user_id, refresh_token)
        else:
            removed = self.store.delete_all_sessions(user_id)
        self.db.commit()
        logger.info(f"User {user_id} logged out ({removed} sessions removed)")
        return removed

    def verify_email(self, token: str) -> str:
        """Activate a pending account; returns the verified email."""
        user_id = self.store.consume_verification_token(token, TokenPurpose.EMAIL_VERIFY)
        user = self.store.find_user_by_id(user_id)
        if user is None:
            self.db.rollback()
            raise UserNotFoundError()

        if user.status == UserStatus.PENDING:
            user.status = UserStatus.ACTIVE
        user.email_verified_at = datetime.utcnow().isoformat()
        self.db.commit()
        logger.info(f"Verified email for user {user.id}")
        return user.email

    def request_password_reset(self, email: str) -> str:
        """Send reset instructions if the account exists; the reply never says."""
        user = self.store.find_user_by_email(email)
        if user is None or user.status == UserStatus.DELETED:
            return PASSWORD_RESET_REQUEST_MESSAGE

        self.store.delete_verification_tokens(user.id, TokenPurpose.PASSWORD_RESET)
        token = self.store.create_verification_token(
            user.id,
            TokenPurpose.PASSWORD_RESET,
            timedelta(hours=self.settings.password_reset_expire_hours),
        )
        self.db.commit()
        logger.info(f"Password reset requested for user {user.id}")

        self.email.send(user.email, "reset-password", {
            "name": user.first_name,
            "reset_link": f"{self.settings.frontend_url}/reset-password?token={token}",
        })
        return PASSWORD_RESET_REQUEST_MESSAGE

    def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password and sign the user out everywhere."""
        user_id = self.store.consume_verification_token(token, TokenPurpose.PASSWORD_RESET)
        user = self.store.find_user_by_id(user_id)
        if user is None:
            self.db.rollback()
            raise UserNotFoundError()

        user.password_hash = self.passwords.hash(new_password)
        user.failed_login_attempts = 0
        user.locked_until = None
        self.store.delete_all_sessions(user.id)
        self.db.commit()
        logger.info(f"Password reset for user {user.id}")

    def authenticate(self, access_token: str) -> User:
        """Resolve a bearer access token to an active user."""
        payload = self.tokens.verify_access_token(access_token)
        user = self.store.find_user_by_id(payload["sub"])
        if user is None:
            raise InvalidTokenError()
        if not user.is_active:
            raise AccountInactiveError("Account is not active")
        return user

    # MFA enrolment

    def setup_mfa(self, user: User) -> MfaSetup:
        """Store a fresh TOTP secret; MFA stays off until enable_mfa."""
        if user.mfa_enabled:
            raise ValidationError("MFA is already enabled")
        secret = mfa.generate_secret()
        user.mfa_secret = secret
        self.db.commit()
        return MfaSetup(
            secret=secret,
            provisioning_uri=mfa.provisioning_uri(secret, user.email, self.settings.app_name),
        )

    def enable_mfa(self, user: User, code: str) -> None:
        if not user.mfa_secret:
            raise ValidationError("MFA setup has not been started")
        if not mfa.verify_code(user.mfa_secret, code):
            raise InvalidMfaCodeError()
        user.mfa_enabled = True
        self.db.commit()
        logger.info(f"MFA enabled for user {user.id}")

    def disable_mfa(self, user: User, code: str) -> None:
        if not user.mfa_enabled:
            raise ValidationError("MFA is not enabled")
        if not mfa.verify_code(user.mfa_secret, code):
            raise InvalidMfaCodeError()
        user.mfa_enabled = False
        user.mfa_secret = None
        self.db.commit()
        logger.info(f"MFA disabled for user {user.id}")

    # Administration

    def list_users(self, limit: int = 50, offset: int = 0) -> list[User]:
        return self.store.list_users(limit=limit, offset=offset)

    def get_user(self, user_id: str) -> User:
        user = self.store.find_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    def set_user_status(self, user_id: str, status: str) -> User:
        """Change account status; leaving active revokes every session."""
        if status not in UserStatus.ALL:
            raise ValidationError(f"Unknown status: {status}")
        user = self.get_user(user_id)
        user.status = status
        if status != UserStatus.ACTIVE:
            self.store.delete_all_sessions(user.id)
        self.db.commit()
        logger.info(f"User {user.id} status set to {status}")
        return user

    def delete_user(self, user_id: str) -> None:
        """Soft-delete: accounts are never removed, only marked deleted."""
        self.set_user_status(user_id, UserStatus.DELETED)
