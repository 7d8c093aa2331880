"""
Request signature verification.

Slack signs every request with HMAC-SHA256 over ``v0:<timestamp>:<body>`` using
the app's signing key and sends the result as ``v0=<hex digest>``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from collections.abc import Callable, Mapping

from slack_dispatch.core.common.exceptions import AuthenticationError
from slack_dispatch.core.constants import (
    DEFAULT_MAX_CLOCK_SKEW_SECONDS,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    SIGNATURE_PREFIX,
    SIGNATURE_VERSION,
)

logger = logging.getLogger(__name__)


def _to_bytes(body: str | bytes) -> bytes:
    return body if isinstance(body, bytes) else body.encode("utf-8")


def sign(timestamp: int | str, body: str | bytes, signing_key: str) -> str:
    """Compute the ``v0=`` signature Slack would send for *body* at *timestamp*."""
    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode() + _to_bytes(body)
    digest = hmac.new(signing_key.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


class SignatureAuthenticator:
    """Validates that a request was sent by Slack.

    Args:
        max_clock_skew: Allowed difference in seconds between the request
            timestamp and the local clock.
        clock: Returns the current Unix time; injectable for tests.
    """

    def __init__(
        self,
        max_clock_skew: int = DEFAULT_MAX_CLOCK_SKEW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_clock_skew = max_clock_skew
        self._clock = clock

    def verify(
        self,
        signature: str,
        timestamp: int | str,
        raw_body: str | bytes,
        signing_key: str,
        max_clock_skew: int | None = None,
    ) -> None:
        """Raise :class:`AuthenticationError` unless the signature is valid."""
        skew = self.max_clock_skew if max_clock_skew is None else max_clock_skew
        try:
            ts = int(timestamp)
        except (TypeError, ValueError):
            raise AuthenticationError(
                "Invalid request timestamp", details={"reason": "timestamp"}
            ) from None

        if abs(int(self._clock()) - ts) > skew:
            raise AuthenticationError(
                "Timestamp is too old or too new.",
                details={"reason": "clock_skew", "max_clock_skew": skew},
            )

        if not signature or not signature.startswith(SIGNATURE_PREFIX):
            raise AuthenticationError(
                "Missing or unsupported signature version",
                details={"reason": "signature_version"},
            )

        expected = sign(ts, raw_body, signing_key)
        if not hmac.compare_digest(expected.encode(), signature.encode()):
            raise AuthenticationError(
                "Signature (v0) failed validation",
                details={"reason": "signature_mismatch"},
            )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Verified request signature (timestamp=%s)", ts)

    def verify_headers(
        self,
        headers: Mapping[str, str],
        raw_body: str | bytes,
        signing_key: str,
    ) -> None:
        """Verify using the ``X-Slack-*`` headers of a request.

        Header lookup is case-insensitive.
        """
        lowered = {k.lower(): v for k, v in headers.items()}
        signature = lowered.get(HEADER_SIGNATURE.lower())
        timestamp = lowered.get(HEADER_TIMESTAMP.lower())
        if not signature or not timestamp:
            raise AuthenticationError(
                "Missing required headers for authentication",
                details={"reason": "missing_headers"},
            )
        self.verify(signature, timestamp, raw_body, signing_key)
