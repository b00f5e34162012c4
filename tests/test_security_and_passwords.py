from datetime import datetime
from types import SimpleNamespace

import pytest
from jose import jwt

from salessync.core import config
from salessync.services.passwords import BCRYPT_MAX_BYTES, hash_password, verify_password
from salessync.services.security import (
    REFRESH_TOKEN_TYPE,
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
    extract_user_id,
    normalize_bearer_token,
)
from salessync.services.sales import generate_invoice_number
from salessync.utils.slug import SLUG_PATTERN, normalize_slug


def _user():
    return SimpleNamespace(id=21, company_id=4, role="AGENT")


def test_hash_password_roundtrip_and_rejects_wrong_password():
    hashed = hash_password("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed) is True
    assert verify_password("other-pass", hashed) is False


def test_verify_password_handles_missing_or_malformed_hash():
    assert verify_password("whatever", "") is False
    assert verify_password("whatever", "not-a-bcrypt-hash") is False


def test_passwords_longer_than_bcrypt_limit_are_accepted():
    long_password = "x" * (BCRYPT_MAX_BYTES + 20)
    hashed = hash_password(long_password)

    assert verify_password(long_password, hashed) is True


def test_access_token_claims():
    token = create_access_token(_user())
    claims = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])

    assert claims["sub"] == "21"
    assert claims["company_id"] == 4
    assert claims["role"] == "AGENT"
    assert claims["type"] == "access"
    assert claims["exp"] > claims["iat"]


def test_refresh_token_carries_token_id():
    token, token_id = create_refresh_token(_user())
    claims = decode_token(token, expected_type=REFRESH_TOKEN_TYPE)

    assert claims["jti"] == token_id
    assert extract_user_id(claims) == 21


def test_decode_token_rejects_expired_and_tampered_tokens():
    expired = create_access_token(_user(), expires_minutes=-1)
    with pytest.raises(TokenError):
        decode_token(expired)

    forged = jwt.encode({"sub": "21", "type": "access"}, "another-secret", algorithm="HS256")
    with pytest.raises(TokenError):
        decode_token(forged)


def test_decode_token_rejects_wrong_type():
    with pytest.raises(TokenError):
        decode_token(create_access_token(_user()), expected_type=REFRESH_TOKEN_TYPE)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, None),
        ("", None),
        ("abc", "abc"),
        ("Bearer abc", "abc"),
        ("bearer Bearer abc", "abc"),
        ('"abc"', "abc"),
        ("Bearer 'abc'", "abc"),
    ],
)
def test_normalize_bearer_token(raw, expected):
    assert normalize_bearer_token(raw) == expected


def test_extract_user_id_rejects_non_numeric_subject():
    assert extract_user_id({"sub": "abc"}) is None
    assert extract_user_id({}) is None
    assert extract_user_id({"sub": 9}) == 9


def test_normalize_slug():
    assert normalize_slug("  Açaí Distribuidora  ") == "acai-distribuidora"
    assert normalize_slug("Acme -- Beverages!!") == "acme-beverages"
    assert SLUG_PATTERN.match(normalize_slug("Acme Beverages 2"))
    assert normalize_slug("!!!") == ""


def test_generate_invoice_number_format():
    number = generate_invoice_number(datetime(2026, 3, 9, 10, 0))

    assert number.startswith("INV-20260309-")
    suffix = number.rsplit("-", 1)[1]
    assert len(suffix) == 6
    assert suffix == suffix.upper()
