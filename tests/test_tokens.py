"""Tests for access token issuing and decoding."""

from datetime import timedelta

from jose import jwt

from salestrack.core.config import settings
from salestrack.core.jwt import create_access_token, create_user_token, decode_access_token


class TestTokens:
    def test_user_token_round_trip(self, julie):
        payload = decode_access_token(create_user_token(julie))
        assert payload["sub"] == str(julie.id)
        assert payload["username"] == "julie"
        assert payload["role"] == "employee"
        assert payload["type"] == "access"

    def test_expired_token(self):
        token = create_access_token({"sub": "1"}, expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None

    def test_wrong_type_or_subject(self):
        refresh = jwt.encode({"sub": "1", "type": "refresh"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        assert decode_access_token(refresh) is None
        assert decode_access_token(create_access_token({"sub": "julie"})) is None

    def test_forged_signature(self):
        forged = jwt.encode({"sub": "1", "type": "access"}, "another-key", algorithm=settings.ALGORITHM)
        assert decode_access_token(forged) is None
