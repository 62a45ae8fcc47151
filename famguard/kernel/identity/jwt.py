"""
Session token handling.

Tokens are minted by the external credential service; this module verifies
them and, for that service and for tests, can also mint them. Two token
types exist:

- ``access``: an authenticated adult account, ``sub`` is the account id.
- ``child_session``: an anonymous child device session, ``sub`` is the child
  profile id. There is no backing account.
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from famguard.config import get_settings


class SessionType(str, Enum):
    ACCESS = "access"
    CHILD_SESSION = "child_session"


class SessionClaims(BaseModel):
    """Decoded session token payload."""

    sub: uuid.UUID  # account id or child profile id
    type: SessionType
    exp: datetime
    iat: datetime
    jti: str

    class Config:
        from_attributes = True


class JWTManager:
    """
    JWT session token creation and verification.

    Verification never raises: an invalid, expired or mistyped token yields
    ``None`` and the caller treats it as unauthenticated.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
        child_session_expire_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )
        self.child_session_expire_minutes = (
            child_session_expire_minutes or settings.child_session_expire_minutes
        )

    def _encode(
        self,
        subject: uuid.UUID,
        session_type: SessionType,
        lifetime: timedelta,
    ) -> tuple[str, datetime, str]:
        now = datetime.now(timezone.utc)
        expire = now + lifetime
        jti = str(uuid.uuid4())

        payload = {
            "sub": str(subject),
            "type": session_type.value,
            "exp": expire,
            "iat": now,
            "jti": jti,
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return token, expire, jti

    def create_access_token(
        self,
        user_id: uuid.UUID,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, datetime, str]:
        """
        Create an adult access token.

        Returns:
            Tuple of (token, expiration_datetime, token_id)
        """
        return self._encode(
            user_id,
            SessionType.ACCESS,
            expires_delta or timedelta(minutes=self.access_token_expire_minutes),
        )

    def create_child_session_token(
        self,
        child_profile_id: uuid.UUID,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, datetime, str]:
        """
        Create an anonymous child session token.

        Returns:
            Tuple of (token, expiration_datetime, token_id)
        """
        return self._encode(
            child_profile_id,
            SessionType.CHILD_SESSION,
            expires_delta or timedelta(minutes=self.child_session_expire_minutes),
        )

    def verify_token(self, token: str) -> Optional[SessionClaims]:
        """
        Verify and decode a session token of either type.

        Args:
            token: Encoded JWT

        Returns:
            SessionClaims if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
            return SessionClaims(
                sub=payload["sub"],
                type=payload["type"],
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                jti=payload["jti"],
            )
        except (JWTError, KeyError, ValueError, ValidationError):
            return None


# Default manager instance
_jwt_manager: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Get or create the default JWT manager."""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager


# Convenience functions
def create_access_token(
    user_id: uuid.UUID,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, datetime, str]:
    """Create an adult access token."""
    return get_jwt_manager().create_access_token(user_id, expires_delta)


def create_child_session_token(
    child_profile_id: uuid.UUID,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, datetime, str]:
    """Create a child session token."""
    return get_jwt_manager().create_child_session_token(child_profile_id, expires_delta)


def verify_token(token: str) -> Optional[SessionClaims]:
    """Verify a session token."""
    return get_jwt_manager().verify_token(token)
