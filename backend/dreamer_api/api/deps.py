"""Shared API dependencies."""
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from dreamer_api.database import get_db
from dreamer_api.models.user import User
from dreamer_api.services.auth import AuthService
from dreamer_api.services.errors import AuthenticationRequiredError, PermissionDeniedError

bearer_scheme = HTTPBearer(auto_error=False)

__all__ = [
    "get_db",
    "get_auth_service",
    "get_current_user",
    "require_roles",
    "get_request_ip",
]


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthService:
    """Build a per-request AuthService from the collaborators on app.state."""
    state = request.app.state
    return AuthService(
        db=db,
        settings=state.settings,
        token_codec=state.token_codec,
        password_hasher=state.password_hasher,
        email_sender=state.email_sender,
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the bearer access token to the current active user."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthenticationRequiredError()
    return auth_service.authenticate(credentials.credentials)


def require_roles(*allowed_roles: str):
    """Dependency factory restricting a route to the given roles."""

    def check_role(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise PermissionDeniedError(
                f"This action requires one of the following roles: {', '.join(allowed_roles)}"
            )
        return current_user

    return check_role


def get_request_ip(request: Request) -> str | None:
    """Extract best-effort client IP for session metadata."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None
