"""Tests for access token handling."""

from datetime import timedelta
from uuid import uuid4

from jose import jwt

from mandates.core.config import get_settings
from mandates.core.security import create_access_token, decode_token


class TestAccessTokens:
    
    def test_round_trip(self):
        user_id = uuid4()
        assert decode_token(create_access_token(user_id)) == user_id
    
    def test_expired_token(self):
        token = create_access_token(uuid4(), expires_delta=timedelta(minutes=-1))
        assert decode_token(token) is None
    
    def test_garbage_token(self):
        assert decode_token("not-a-token") is None
    
    def test_wrong_token_type(self):
        settings = get_settings()
        token = jwt.encode({"sub": str(uuid4()), "type": "refresh"}, settings.secret_key, algorithm=settings.algorithm)
        assert decode_token(token) is None
