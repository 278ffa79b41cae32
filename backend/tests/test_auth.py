"""
Unit tests for HTTP Basic webhook authentication.
Tests header parsing, credential comparison and the FastAPI dependency.
"""

import base64
import os
import pytest
from fastapi import HTTPException
from unittest.mock import patch

from app.auth import credentials_match, parse_basic_auth, verify_basic_auth

BASIC_AUTH = "user:mypass"


def _basic(user_pass: str) -> str:
    return "Basic " + base64.b64encode(user_pass.encode()).decode()


class TestParseBasicAuth:
    """Extracting the credential token from the Authorization header."""

    def test_missing_header_returns_none(self):
        assert parse_basic_auth(None) is None
        assert parse_basic_auth("") is None

    def test_returns_token(self):
        assert parse_basic_auth("Basic dXNlcjpteXBhc3M=") == "dXNlcjpteXBhc3M="

    def test_scheme_is_case_insensitive(self):
        assert parse_basic_auth("basic   dXNlcjpteXBhc3M=  ") == "dXNlcjpteXBhc3M="

    def test_other_scheme_returns_none(self):
        assert parse_basic_auth("Bearer some.jwt.token") is None

    def test_scheme_without_token_returns_none(self):
        assert parse_basic_auth("Basic ") is None


class TestCredentialsMatch:

    def test_matching_credentials(self):
        assert credentials_match(_basic(BASIC_AUTH), BASIC_AUTH)

    def test_wrong_password(self):
        assert not credentials_match(_basic("user:wrong"), BASIC_AUTH)

    def test_garbage_token(self):
        assert not credentials_match("Basic deadbeef", BASIC_AUTH)

    def test_non_ascii_token_does_not_raise(self):
        assert not credentials_match("Basic héllo", BASIC_AUTH)

    def test_unconfigured_expectation_never_matches(self):
        assert not credentials_match(_basic(":"), "")


class TestVerifyBasicAuth:
    """The dependency guarding POST /webhooks/{relay}."""

    def test_valid_credentials_pass(self):
        with patch.dict(os.environ, {"CLOUDMAILIN_BASIC_AUTH": BASIC_AUTH}):
            assert verify_basic_auth(_basic(BASIC_AUTH)) is None

    def test_missing_header_raises_401(self):
        with patch.dict(os.environ, {"CLOUDMAILIN_BASIC_AUTH": BASIC_AUTH}):
            with pytest.raises(HTTPException) as exc_info:
                verify_basic_auth(None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid authorization"

    def test_wrong_credentials_raise_401(self):
        with patch.dict(os.environ, {"CLOUDMAILIN_BASIC_AUTH": BASIC_AUTH}):
            with pytest.raises(HTTPException) as exc_info:
                verify_basic_auth(_basic("user:nope"))

        assert exc_info.value.status_code == 401

    def test_unconfigured_secret_rejects_everything(self):
        env = {k: v for k, v in os.environ.items() if k != "CLOUDMAILIN_BASIC_AUTH"}
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(HTTPException) as exc_info:
                verify_basic_auth(_basic(BASIC_AUTH))

        assert exc_info.value.status_code == 401
