"""Typed errors raised by the auth services and mapped to HTTP responses."""


class AuthError(Exception):
    """Base class for auth errors; each subclass has a fixed status and code."""

    status_code: int = 400
    code: str = "BAD_REQUEST"
    message: str = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AuthError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Validation failed"


class DuplicateEmailError(AuthError):
    status_code = 409
    code = "USER_EXISTS"
    message = "User already exists"


class InvalidCredentialsError(AuthError):
    """Raised for both unknown emails and wrong passwords."""

    status_code = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class AccountInactiveError(AuthError):
    status_code = 403
    code = "ACCOUNT_INACTIVE"
    message = "Account is not active. Please verify your email."


class InvalidTokenError(AuthError):
    """Malformed, expired, revoked and forged tokens all look the same."""

    status_code = 401
    code = "INVALID_TOKEN"
    message = "Invalid or expired token"


class InvalidOrExpiredTokenError(AuthError):
    """A verification or password-reset token could not be redeemed."""

    status_code = 400
    code = "INVALID_TOKEN"
    message = "Invalid or expired verification token"


class InvalidMfaCodeError(AuthError):
    status_code = 401
    code = "INVALID_MFA_CODE"
    message = "Invalid MFA code"


class AuthenticationRequiredError(AuthError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"
    message = "No valid authentication token provided"


class PermissionDeniedError(AuthError):
    status_code = 403
    code = "INSUFFICIENT_PERMISSIONS"
    message = "Insufficient permissions"


class UserNotFoundError(AuthError):
    status_code = 404
    code = "USER_NOT_FOUND"
    message = "User not found"


class AccountLockedError(InvalidCredentialsError):
    """Raised while an account is locked out.

    Shares the wire status, code and message of InvalidCredentialsError so a
    lockout does not reveal that the email belongs to an account.
    """
