"""Unit tests for session token handling."""

import uuid
from datetime import timedelta

from famguard.kernel.identity.jwt import JWTManager, SessionType


class TestJWTManager:
    """Tests for JWTManager."""

    def test_access_token_round_trip(self, jwt_manager: JWTManager):
        """An access token verifies to its account id."""
        user_id = uuid.uuid4()
        token, expires, jti = jwt_manager.create_access_token(user_id)

        claims = jwt_manager.verify_token(token)
        assert claims is not None
        assert claims.sub == user_id
        assert claims.type is SessionType.ACCESS
        assert claims.jti == jti
        assert claims.exp == expires.replace(microsecond=0)

    def test_child_session_token(self, jwt_manager: JWTManager):
        child_id = uuid.uuid4()
        token, _, _ = jwt_manager.create_child_session_token(child_id)

        claims = jwt_manager.verify_token(token)
        assert claims.sub == child_id
        assert claims.type is SessionType.CHILD_SESSION

    def test_expired_token(self, jwt_manager: JWTManager):
        token, _, _ = jwt_manager.create_access_token(uuid.uuid4(), expires_delta=timedelta(seconds=-10))
        assert jwt_manager.verify_token(token) is None

    def test_wrong_secret(self, jwt_manager: JWTManager):
        other = JWTManager(secret_key="a-completely-different-secret-key-value", algorithm="HS256")
        token, _, _ = other.create_access_token(uuid.uuid4())
        assert jwt_manager.verify_token(token) is None

    def test_garbage_token(self, jwt_manager: JWTManager):
        assert jwt_manager.verify_token("not-a-token") is None

    def test_non_uuid_subject(self, jwt_manager: JWTManager):
        """A token whose subject is not a profile or account id is rejected."""
        from jose import jwt

        token, _, _ = jwt_manager.create_access_token(uuid.uuid4())
        payload = jwt.get_unverified_claims(token)
        payload["sub"] = "admin"
        forged = jwt.encode(payload, jwt_manager.secret_key, algorithm=jwt_manager.algorithm)
        assert jwt_manager.verify_token(forged) is None

    def test_unknown_session_type(self, jwt_manager: JWTManager):
        from jose import jwt

        token, _, _ = jwt_manager.create_access_token(uuid.uuid4())
        payload = jwt.get_unverified_claims(token)
        payload["type"] = "refresh"
        forged = jwt.encode(payload, jwt_manager.secret_key, algorithm=jwt_manager.algorithm)
        assert jwt_manager.verify_token(forged) is None

    def test_unique_token_ids(self, jwt_manager: JWTManager):
        user_id = uuid.uuid4()
        _, _, first = jwt_manager.create_access_token(user_id)
        _, _, second = jwt_manager.create_access_token(user_id)
        assert first != second
