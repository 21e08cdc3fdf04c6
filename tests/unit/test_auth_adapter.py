from datetime import UTC, datetime, timedelta
from uuid import uuid4

from src.adapters.auth.crypto import JWTAuthAdapter


def test_hash_verify_success():
    auth = JWTAuthAdapter("test-key")
    pwd = "my-secret-password"
    hashed = auth.hash_password(pwd)

    assert hashed != pwd
    assert auth.verify_password(pwd, hashed) is True
    assert auth.verify_password("wrong", hashed) is False


def test_unknown_hash_format_never_verifies():
    assert JWTAuthAdapter("test-key").verify_password("pw", "not-a-hash") is False


def test_token_roundtrip():
    auth = JWTAuthAdapter("test-key")
    uid = uuid4()
    assert auth.validate_token(auth.create_token(uid, 60)) == uid


def test_expired_token_rejected():
    auth = JWTAuthAdapter("test-key")
    issued = datetime.now(UTC) - timedelta(hours=2)
    token = auth.create_token(uuid4(), 60, now_utc=issued)
    assert auth.validate_token(token) is None


def test_token_signed_with_other_key_rejected():
    token = JWTAuthAdapter("key-a").create_token(uuid4(), 60)
    assert JWTAuthAdapter("key-b").validate_token(token) is None
    assert JWTAuthAdapter("key-a").validate_token("garbage") is None
