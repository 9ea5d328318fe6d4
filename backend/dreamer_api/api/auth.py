"""Authentication API endpoints."""
from fastapi import APIRouter, Depends, Request, status

from dreamer_api.api.deps import get_auth_service, get_current_user, get_request_ip
from dreamer_api.models.user import User
from dreamer_api.schemas.auth import (
    AccessTokenResponse,
    LoginResponse,
    LogoutRequest,
    MeResponse,
    MessageResponse,
    MfaCodeRequest,
    MfaRequiredResponse,
    MfaSetupResponse,
    MfaVerifyRequest,
    PasswordReset,
    PasswordResetRequest,
    RegisterResponse,
    SessionResponse,
    TokenRefresh,
    UserLogin,
    UserRegister,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from dreamer_api.schemas.user import UserDetail, UserPublic
from dreamer_api.services.auth import AuthService, LoginResult, MfaChallenge

router = APIRouter(prefix="/auth", tags=["auth"])


def _login_response(result: LoginResult | MfaChallenge) -> LoginResponse | MfaRequiredResponse:
    if isinstance(result, MfaChallenge):
        return MfaRequiredResponse(mfa_token=result.mfa_token)
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=UserPublic.model_validate(result.user),
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, auth_service: AuthService = Depends(get_auth_service)):
    """Register a new user; the account stays pending until the email is verified."""
    result = auth_service.register(
        email=user_data.email,
        password=user_data.password,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        company=user_data.company,
    )
    return RegisterResponse(message=result.message, user_id=result.user_id)


@router.post("/login", response_model=LoginResponse | MfaRequiredResponse)
def login(
    user_data: UserLogin,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Login and get tokens, or an MFA challenge when MFA is enabled."""
    result = auth_service.login(
        user_data.email,
        user_data.password,
        ip_address=get_request_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _login_response(result)


@router.post("/mfa/verify", response_model=LoginResponse)
def verify_mfa(
    mfa_data: MfaVerifyRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Complete an MFA-gated login."""
    result = auth_service.verify_mfa(
        mfa_data.mfa_token,
        mfa_data.code,
        ip_address=get_request_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _login_response(result)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh_token(token_data: TokenRefresh, auth_service: AuthService = Depends(get_auth_service)):
    """Exchange a refresh token for a new access token."""
    return AccessTokenResponse(access_token=auth_service.refresh(token_data.refresh_token))


@router.post("/logout", response_model=MessageResponse)
def logout(
    logout_data: LogoutRequest | None = None,
    auth_service: AuthService = Depends(get_auth_service),
    current_user: User = Depends(get_current_user),
):
    """Logout this device, or every device when no refresh token is sent."""
    refresh = logout_data.refresh_token if logout_data else None
    auth_service.logout(current_user.id, refresh)
    return MessageResponse(message="Logout successful")


@router.post("/verify-email", response_model=VerifyEmailResponse)
def verify_email(verify_data: VerifyEmailRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Verify an email address with the token from the verification email."""
    email = auth_service.verify_email(verify_data.token)
    return VerifyEmailResponse(message="Email verified successfully", email=email)


@router.post("/request-password-reset", response_model=MessageResponse)
@router.post("/forgot-password", response_model=MessageResponse, include_in_schema=False)
def request_password_reset(
    reset_data: PasswordResetRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Request password reset instructions."""
    return MessageResponse(message=auth_service.request_password_reset(reset_data.email))


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(reset_data: PasswordReset, auth_service: AuthService = Depends(get_auth_service)):
    """Reset a password with the token from the reset email."""
    auth_service.reset_password(reset_data.token, reset_data.new_password)
    return MessageResponse(message="Password reset successful. Please login with your new password.")


@router.get("/me", response_model=MeResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get the current user."""
    return MeResponse(user=UserDetail.model_validate(current_user))


@router.get("/sessions", response_model=list[SessionResponse])
def list_sessions(
    auth_service: AuthService = Depends(get_auth_service),
    current_user: User = Depends(get_current_user),
):
    """List the current user's active sessions."""
    sessions = auth_service.list_sessions(current_user.id)
    return [SessionResponse.model_validate(s) for s in sessions]


@router.post("/mfa/setup", response_model=MfaSetupResponse)
def setup_mfa(
    auth_service: AuthService = Depends(get_auth_service),
    current_user: User = Depends(get_current_user),
):
    """Start MFA enrolment and return the TOTP secret."""
    setup = auth_service.setup_mfa(current_user)
    return MfaSetupResponse(secret=setup.secret, provisioning_uri=setup.provisioning_uri)


@router.post("/mfa/enable", response_model=MessageResponse)
def enable_mfa(
    code_data: MfaCodeRequest,
    auth_service: AuthService = Depends(get_auth_service),
    current_user: User = Depends(get_current_user),
):
    """Turn on MFA after confirming a code from the authenticator app."""
    auth_service.enable_mfa(current_user, code_data.code)
    return MessageResponse(message="MFA enabled")


@router.post("/mfa/disable", response_model=MessageResponse)
def disable_mfa(
    code_data: MfaCodeRequest,
    auth_service: AuthService = Depends(get_auth_service),
    current_user: User = Depends(get_current_user),
):
    """Turn off MFA."""
    auth_service.disable_mfa(current_user, code_data.code)
    return MessageResponse(message="MFA disabled")
