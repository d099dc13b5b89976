from datetime import timedelta

import pytest
from jose import jwt

from auth import AuthGate
from errors import InvalidToken, Unauthenticated

IDENTITY = {"id": "abc123", "username": "nova", "email": "nova@x.com"}


def test_hash_is_salted_and_verifies(auth):
    first = auth.hash_password("secret1")
    second = auth.hash_password("secret1")
    assert first != second
    assert "secret1" not in first
    assert auth.verify_password("secret1", first)
    assert auth.verify_password("secret1", second)


def test_wrong_password_does_not_verify(auth):
    hashed = auth.hash_password("secret1")
    assert not auth.verify_password("secret2", hashed)
    assert not auth.verify_password("", hashed)


def test_token_round_trip(auth):
    token = auth.issue_token({**IDENTITY, "password_hash": "ignored"})
    assert auth.verify_token(token) == IDENTITY


def test_token_expires_after_seven_days(auth):
    claims = jwt.get_unverified_claims(auth.issue_token(IDENTITY))
    assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60


def test_expired_token_is_invalid(auth):
    token = auth.issue_token(IDENTITY, expires_delta=timedelta(seconds=-1))
    with pytest.raises(InvalidToken):
        auth.verify_token(token)


def test_missing_token(auth):
    with pytest.raises(Unauthenticated):
        auth.verify_token(None)
    with pytest.raises(Unauthenticated):
        auth.verify_token("")


def test_tampered_token_is_invalid(auth):
    token = auth.issue_token(IDENTITY)
    header, payload, signature = token.split(".")
    forged = jwt.encode({**IDENTITY, "username": "admin"}, "other-key", algorithm="HS256")
    with pytest.raises(InvalidToken):
        auth.verify_token(".".join([header, forged.split(".")[1], signature]))
    with pytest.raises(InvalidToken):
        auth.verify_token("not-a-token")


def test_token_from_another_key_is_invalid(auth):
    other = AuthGate("another-secret", hash_rounds=1000)
    with pytest.raises(InvalidToken):
        auth.verify_token(other.issue_token(IDENTITY))
