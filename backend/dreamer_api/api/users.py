"""User administration endpoints."""
from fastapi import APIRouter, Depends, Query

from dreamer_api.api.deps import get_auth_service, get_current_user, require_roles
from dreamer_api.models.user import User, UserRole
from dreamer_api.schemas.auth import MessageResponse
from dreamer_api.schemas.user import UserDetail, UserStatusUpdate
from dreamer_api.services.auth import AuthService
from dreamer_api.services.errors import PermissionDeniedError

router = APIRouter(prefix="/users", tags=["users"])

require_staff = require_roles(*UserRole.STAFF)


@router.get("", response_model=list[UserDetail])
def list_users(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth_service: AuthService = Depends(get_auth_service),
    current_user: User = Depends(require_staff),
):
    """List users (admins only)."""
    return [UserDetail.model_validate(u) for u in auth_service.list_users(limit=limit, offset=offset)]


@router.get("/{user_id}", response_model=UserDetail)
def get_user(
    user_id: str,
    auth_service: AuthService = Depends(get_auth_service),
    current_user: User = Depends(get_current_user),
):
    """Get a user; users may only read themselves unless they are staff."""
    if current_user.id != user_id and current_user.role not in UserRole.STAFF:
        raise PermissionDeniedError("You can only view your own account")
    return UserDetail.model_validate(auth_service.get_user(user_id))


@router.patch("/{user_id}/status", response_model=UserDetail)
def update_user_status(
    user_id: str,
    status_data: UserStatusUpdate,
    auth_service: AuthService = Depends(get_auth_service),
    current_user: User = Depends(require_staff),
):
    """Activate, suspend or otherwise change a user's status."""
    if user_id == current_user.id:
        raise PermissionDeniedError("You cannot change your own status")
    return UserDetail.model_validate(auth_service.set_user_status(user_id, status_data.status))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    auth_service: AuthService = Depends(get_auth_service),
    current_user: User = Depends(require_staff),
):
    """Erase a user account; the row is kept with status 'deleted'."""
    if user_id == current_user.id:
        raise PermissionDeniedError("You cannot delete your own account")
    auth_service.delete_user(user_id)
    return MessageResponse(message="User deleted")
