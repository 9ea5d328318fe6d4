"""User schemas."""
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UserPublic(BaseModel):
    """Public projection of a user; never includes the password hash."""

    id: str
    email: str
    first_name: str
    last_name: str
    role: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserDetail(UserPublic):
    """User info as shown to the user themself and to admins."""

    company: str | None = None
    status: str
    mfa_enabled: bool = False
    email_verified_at: str | None = None
    last_login_at: str | None = None
    created_at: str | None = None


class UserStatusUpdate(BaseModel):
    status: Literal["active", "pending", "suspended", "deleted"]
