from __future__ import annotations

import time

import jwt
import pytest

from account_service.domain.errors import (
    AuthError,
    AuthFailure,
    ConfigurationError,
    ServerError,
    ValidationError,
    ValidationFailure,
)
from account_service.security.auth_gate import extract_token
from account_service.security.passwords import PasswordHasher
from account_service.security.tokens import TokenIssuer


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(secret="unit-secret", issuer="unit-tests", ttl_seconds=60)


def test_issued_token_validates_to_its_account(issuer):
    token_a = issuer.issue("account-a")
    token_b = issuer.issue("account-b")

    assert issuer.validate(token_a) == "account-a"
    assert issuer.validate(token_b) == "account-b"
    assert issuer.validate(token_a) != "account-b"


def test_tampered_token_is_rejected(issuer):
    token = issuer.issue("account-a")
    header, payload, signature = token.split(".")
    forged_payload = jwt.utils.base64url_encode(b'{"sub":"account-b","iss":"unit-tests","exp":9999999999}')
    forged = ".".join([header, forged_payload.decode("ascii"), signature])

    with pytest.raises(AuthError) as excinfo:
        issuer.validate(forged)
    assert excinfo.value.reason is AuthFailure.invalid_or_expired


def test_expired_token_is_rejected():
    issuer = TokenIssuer(secret="unit-secret", issuer="unit-tests", ttl_seconds=-10)
    with pytest.raises(AuthError):
        issuer.validate(issuer.issue("account-a"))


def test_token_from_other_issuer_is_rejected(issuer):
    now = int(time.time())
    token = jwt.encode(
        {"sub": "account-a", "iss": "someone-else", "exp": now + 60},
        "unit-secret",
        algorithm="HS256",
    )
    with pytest.raises(AuthError):
        issuer.validate(token)


def test_issuer_requires_secret():
    with pytest.raises(ConfigurationError):
        TokenIssuer(secret="", issuer="unit-tests", ttl_seconds=60)


def test_password_hash_is_salted_and_verifiable():
    hasher = PasswordHasher(rounds=4)
    first = hasher.hash("pw123456")
    second = hasher.hash("pw123456")

    assert first != second
    assert "pw123456" not in first
    assert hasher.verify("pw123456", first)
    assert hasher.verify("pw123456", second)
    assert not hasher.verify("wrong", first)


def test_malformed_digest_is_a_server_error():
    with pytest.raises(ServerError):
        PasswordHasher(rounds=4).verify("pw", "not-a-bcrypt-digest")


def test_password_longer_than_72_bytes_is_rejected_on_hash():
    hasher = PasswordHasher(rounds=4)

    assert hasher.verify("x" * 72, hasher.hash("x" * 72))
    with pytest.raises(ValidationError) as excinfo:
        hasher.hash("ü" * 37)
    assert excinfo.value.reason is ValidationFailure.password_too_long


def test_password_longer_than_72_bytes_never_verifies():
    hasher = PasswordHasher(rounds=4)
    digest = hasher.hash("x" * 72)

    assert hasher.verify("x" * 80, digest) is False


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, None),
        ("", None),
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer  abc", "abc"),
        ("abc.def.ghi", "abc.def.ghi"),
        ("Bearer ", None),
    ],
)
def test_extract_token(header, expected):
    assert extract_token(header) == expected
