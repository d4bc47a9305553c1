from __future__ import annotations

import jwt
import pytest

from bemyguide.auth.config import SEVEN_DAYS, TokenConfig
from bemyguide.auth.tokens import issue_token, verify_token
from bemyguide.errors import AuthError, ValidationError

CONFIG = TokenConfig(secret="test-secret-for-bemyguide-unit-tests")
NOW = 1_700_000_000


def test_issue_sets_seven_day_expiry():
    issued = issue_token("abc", CONFIG, now=NOW)
    assert issued.subject == "abc"
    assert issued.issued_at == NOW
    assert issued.expires_at == NOW + SEVEN_DAYS


def test_issue_rejects_empty_device_id():
    with pytest.raises(ValidationError) as exc:
        issue_token("", CONFIG, now=NOW)
    assert exc.value.message == "deviceId is required"


def test_issue_rejects_non_string_device_id():
    with pytest.raises(ValidationError):
        issue_token(12345, CONFIG, now=NOW)


def test_verify_immediately_after_issue():
    issued = issue_token("abc", CONFIG, now=NOW)
    assert verify_token(issued.token, CONFIG, now=NOW) == "abc"


def test_verify_just_before_expiry():
    issued = issue_token("abc", CONFIG, now=NOW)
    assert verify_token(issued.token, CONFIG, now=issued.expires_at - 1) == "abc"


def test_verify_fails_at_expiry():
    issued = issue_token("abc", CONFIG, now=NOW)
    with pytest.raises(AuthError):
        verify_token(issued.token, CONFIG, now=issued.expires_at)


def test_verify_fails_with_wrong_secret():
    issued = issue_token("abc", CONFIG, now=NOW)
    with pytest.raises(AuthError):
        verify_token(issued.token, TokenConfig(secret="another-secret-for-bemyguide-unit-tests"), now=NOW)


def test_verify_fails_on_garbage():
    with pytest.raises(AuthError):
        verify_token("not-a-token", CONFIG, now=NOW)


def test_verify_fails_without_exp_claim():
    token = jwt.encode({"sub": "abc", "iat": NOW}, CONFIG.secret, algorithm="HS256")
    with pytest.raises(AuthError):
        verify_token(token, CONFIG, now=NOW)


def test_verify_fails_with_empty_subject():
    token = jwt.encode({"sub": "", "iat": NOW, "exp": NOW + 60}, CONFIG.secret, algorithm="HS256")
    with pytest.raises(AuthError):
        verify_token(token, CONFIG, now=NOW)
