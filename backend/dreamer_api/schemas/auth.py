"""Authentication schemas."""
import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from dreamer_api.schemas.user import UserDetail, UserPublic

PASSWORD_MIN_LENGTH = 8
# bcrypt only accepts 72 bytes of input
PASSWORD_MAX_BYTES = 72
SPECIAL_CHARACTERS = "!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~"


def validate_password_strength(password: str) -> str:
    """Enforce the password policy shared by registration and resets."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain a lowercase letter")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain an uppercase letter")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain a number")
    if not any(char in SPECIAL_CHARACTERS for char in password):
        raise ValueError("Password must contain a special character")
    return password


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmailModel(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserRegister(EmailModel):
    """User registration request."""

    password: str
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    company: str | None = Field(None, max_length=255)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_password_strength(value)

    @field_validator("first_name", "last_name", "company", mode="before")
    @classmethod
    def strip_names(cls, value):
        if isinstance(value, str):
            value = value.strip()
        return value


class UserLogin(EmailModel):
    """User login request."""

    password: str = Field(..., min_length=1)


class MfaVerifyRequest(CamelModel):
    mfa_token: str = Field(..., min_length=1)
    code: str = Field(..., min_length=6, max_length=8)


class MfaCodeRequest(CamelModel):
    code: str = Field(..., min_length=6, max_length=8)


class TokenRefresh(CamelModel):
    """Token refresh request."""

    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(CamelModel):
    refresh_token: str | None = None


class VerifyEmailRequest(CamelModel):
    token: str = Field(..., min_length=1)


class PasswordResetRequest(EmailModel):
    pass


class PasswordReset(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_password_strength(value)


class RegisterResponse(CamelModel):
    message: str
    user_id: str


class LoginResponse(CamelModel):
    """Token pair response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserPublic


class MfaRequiredResponse(CamelModel):
    requires_mfa: Literal[True] = True
    mfa_token: str


class AccessTokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"


class VerifyEmailResponse(CamelModel):
    message: str
    email: str


class MfaSetupResponse(CamelModel):
    secret: str
    provisioning_uri: str


class SessionResponse(CamelModel):
    id: str
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: str | None = None
    expires_at: str

    model_config = ConfigDict(from_attributes=True)


class MeResponse(CamelModel):
    user: UserDetail


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
