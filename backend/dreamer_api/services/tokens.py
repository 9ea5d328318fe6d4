"""JWT issuing and verification."""
from datetime import datetime, timedelta
import uuid

from jose import JWTError, jwt

from dreamer_api.config import Settings
from dreamer_api.models.user import User
from dreamer_api.services.errors import InvalidTokenError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
MFA_TOKEN_TYPE = "mfa"


class TokenCodec:
    """Signs and verifies access, refresh and MFA-challenge tokens.

    Access and MFA tokens are signed with ``jwt_secret``; refresh tokens with
    ``jwt_refresh_secret``, or ``jwt_secret`` when no refresh secret is set.
    """

    def __init__(self, settings: Settings) -> None:
        self.access_secret = settings.jwt_secret
        self.refresh_secret = settings.refresh_secret
        self.algorithm = settings.jwt_algorithm
        self.issuer = settings.jwt_issuer
        self.audience = settings.jwt_audience
        self.access_ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self.refresh_ttl = timedelta(days=settings.refresh_token_expire_days)
        self.mfa_ttl = timedelta(minutes=settings.mfa_token_expire_minutes)

    def _encode(self, claims: dict, secret: str, ttl: timedelta, jti: str | None = None) -> str:
        now = datetime.utcnow()
        to_encode = claims.copy()
        to_encode.update({
            "jti": jti or str(uuid.uuid4()),
            "iat": now,
            "exp": now + ttl,
            "iss": self.issuer,
            "aud": self.audience,
        })
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    def issue_access_token(self, user: User) -> str:
        """Create a short-lived access token carrying the user's identity."""
        claims = {
            "sub": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "role": user.role,
            "type": ACCESS_TOKEN_TYPE,
        }
        return self._encode(claims, self.access_secret, self.access_ttl)

    def issue_refresh_token(self, user: User) -> str:
        """Create a long-lived refresh token."""
        claims = {"sub": user.id, "type": REFRESH_TOKEN_TYPE}
        return self._encode(claims, self.refresh_secret, self.refresh_ttl)

    def issue_mfa_token(self, user: User, jti: str | None = None) -> str:
        """Create the restricted token handed out while MFA is pending."""
        claims = {"sub": user.id, "type": MFA_TOKEN_TYPE}
        return self._encode(claims, self.access_secret, self.mfa_ttl, jti=jti)

    def verify(self, token: str, secret: str, expected_type: str | None = None) -> dict:
        """Decode a token, raising InvalidTokenError on any failure."""
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError as exc:
            raise InvalidTokenError() from exc

        if expected_type is not None and payload.get("type") != expected_type:
            raise InvalidTokenError()
        if not payload.get("sub"):
            raise InvalidTokenError()
        return payload

    def verify_access_token(self, token: str) -> dict:
        return self.verify(token, self.access_secret, ACCESS_TOKEN_TYPE)

    def verify_refresh_token(self, token: str) -> dict:
        return self.verify(token, self.refresh_secret, REFRESH_TOKEN_TYPE)

    def verify_mfa_token(self, token: str) -> dict:
        return self.verify(token, self.access_secret, MFA_TOKEN_TYPE)
