"""
Tests for request signature verification.
"""

import pytest
from slack_dispatch.core.common.exceptions import AuthenticationError
from slack_dispatch.core.security.signature import SignatureAuthenticator, sign

NOW = 1_700_000_000
BODY = "token=abc&team_id=T123&command=%2Fdeploy&text=app+staging"


@pytest.fixture
def authenticator() -> SignatureAuthenticator:
    return SignatureAuthenticator(max_clock_skew=300, clock=lambda: NOW)


class TestSign:
    def test_signature_has_version_prefix_and_hex_digest(self, signing_key: str) -> None:
        signature = sign(NOW, BODY, signing_key)

        assert signature.startswith("v0=")
        assert len(signature) == 3 + 64
        int(signature[3:], 16)

    def test_str_and_bytes_bodies_sign_the_same(self, signing_key: str) -> None:
        assert sign(NOW, BODY, signing_key) == sign(str(NOW), BODY.encode(), signing_key)

    def test_different_keys_give_different_signatures(self) -> None:
        assert sign(NOW, BODY, "key-one") != sign(NOW, BODY, "key-two")


class TestVerify:
    def test_valid_signature_passes(self, authenticator, signing_key) -> None:
        authenticator.verify(sign(NOW, BODY, signing_key), NOW, BODY, signing_key)

    def test_flipping_one_body_byte_fails(self, authenticator, signing_key) -> None:
        signature = sign(NOW, BODY, signing_key)
        tampered = bytearray(BODY.encode())
        tampered[10] ^= 0x01

        with pytest.raises(AuthenticationError) as exc_info:
            authenticator.verify(signature, NOW, bytes(tampered), signing_key)

        assert exc_info.value.message == "Auth Failed: Signature (v0) failed validation"
        assert exc_info.value.status_code == 401

    def test_flipping_one_signature_digit_fails(self, authenticator, signing_key) -> None:
        signature = sign(NOW, BODY, signing_key)
        last = "0" if signature[-1] != "0" else "1"

        with pytest.raises(AuthenticationError):
            authenticator.verify(signature[:-1] + last, NOW, BODY, signing_key)

    def test_wrong_key_fails(self, authenticator, signing_key) -> None:
        with pytest.raises(AuthenticationError):
            authenticator.verify(sign(NOW, BODY, "other"), NOW, BODY, signing_key)

    @pytest.mark.parametrize("offset", [300, -300, 0])
    def test_timestamp_within_skew_passes(self, authenticator, signing_key, offset) -> None:
        ts = NOW + offset
        authenticator.verify(sign(ts, BODY, signing_key), ts, BODY, signing_key)

    @pytest.mark.parametrize("offset", [301, -301, 3600])
    def test_timestamp_outside_skew_fails(self, authenticator, signing_key, offset) -> None:
        ts = NOW + offset

        with pytest.raises(AuthenticationError, match="Timestamp is too old or too new."):
            authenticator.verify(sign(ts, BODY, signing_key), ts, BODY, signing_key)

    def test_skew_override_per_call(self, authenticator, signing_key) -> None:
        ts = NOW - 100

        with pytest.raises(AuthenticationError):
            authenticator.verify(
                sign(ts, BODY, signing_key), ts, BODY, signing_key, max_clock_skew=60
            )

    def test_invalid_timestamp_fails(self, authenticator, signing_key) -> None:
        with pytest.raises(AuthenticationError, match="Invalid request timestamp"):
            authenticator.verify(sign(NOW, BODY, signing_key), "yesterday", BODY, signing_key)

    def test_unsupported_version_fails(self, authenticator, signing_key) -> None:
        signature = "v1=" + sign(NOW, BODY, signing_key)[3:]

        with pytest.raises(AuthenticationError, match="unsupported signature version"):
            authenticator.verify(signature, NOW, BODY, signing_key)


class TestVerifyHeaders:
    def test_header_lookup_is_case_insensitive(self, authenticator, signing_key) -> None:
        headers = {
            "x-slack-request-timestamp": str(NOW),
            "X-SLACK-SIGNATURE": sign(NOW, BODY, signing_key),
        }

        authenticator.verify_headers(headers, BODY, signing_key)

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"X-Slack-Request-Timestamp": str(NOW)},
            {"X-Slack-Signature": "v0=abc"},
        ],
    )
    def test_missing_headers_fail(self, authenticator, signing_key, headers) -> None:
        with pytest.raises(AuthenticationError, match="Missing required headers"):
            authenticator.verify_headers(headers, BODY, signing_key)
