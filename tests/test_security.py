import pytest
from jose import jwt

from authcore.core.security import TokenIssuer, get_password_hash, verify_password
from authcore.errors import AuthenticationError
from authcore.utils import generate_otp

from conftest import SECRET


def test_hash_is_salted_and_verifies():
    first = get_password_hash("secret123")
    second = get_password_hash("secret123")
    assert first != second
    assert "secret123" not in first
    assert verify_password("secret123", first)
    assert not verify_password("secret124", first)


def test_unknown_digest_does_not_verify():
    assert not verify_password("secret123", "plaintext-not-a-hash")
    assert not verify_password("secret123", None)


def test_token_round_trips_user_id():
    tokens = TokenIssuer(SECRET)
    token = tokens.issue(42)
    assert tokens.resolve(token) == 42


def test_tokens_are_unique_per_issue():
    tokens = TokenIssuer(SECRET)
    assert tokens.issue(1) != tokens.issue(1)


def test_no_expiry_by_default():
    claims = jwt.get_unverified_claims(TokenIssuer(SECRET).issue(1))
    assert "exp" not in claims
    assert claims["sub"] == "1"


def test_configured_lifetime_adds_expiry():
    claims = jwt.get_unverified_claims(TokenIssuer(SECRET, expire_minutes=5).issue(1))
    assert claims["exp"] > claims["iat"]


def test_expired_token_is_rejected():
    tokens = TokenIssuer(SECRET, expire_minutes=-1)
    with pytest.raises(AuthenticationError):
        tokens.resolve(tokens.issue(1))


def test_foreign_signature_is_rejected():
    token = TokenIssuer("some-other-secret").issue(1)
    with pytest.raises(AuthenticationError):
        TokenIssuer(SECRET).resolve(token)


@pytest.mark.parametrize("token", ["", "BOGUS", "a.b.c"])
def test_garbage_token_is_rejected(token):
    with pytest.raises(AuthenticationError):
        TokenIssuer(SECRET).resolve(token)


def test_non_numeric_subject_is_rejected():
    token = jwt.encode({"sub": "alice"}, SECRET, algorithm="HS256")
    with pytest.raises(AuthenticationError):
        TokenIssuer(SECRET).resolve(token)


def test_otp_is_four_digits():
    codes = [generate_otp() for _ in range(2000)]
    assert all(1000 <= code <= 9999 for code in codes)
    assert all(isinstance(code, int) for code in codes)
    # 2000 draws from 9000 values should not collapse onto a handful
    assert len(set(codes)) > 1500
