import logging
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

import pytest
import structlog
from slack_dispatch.core.domain.context import Context
from slack_dispatch.core.domain.payload import Payload
from slack_dispatch.core.security.signature import sign

from tests.doubles import RecordingApiClient, RecordingRespondClient

TEST_SIGNING_KEY = "8f742231b10e8888abcd99yyyzzz85a5"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Undo global logging changes made by configure_logging()."""
    root = logging.getLogger()
    handlers, filters, level = root.handlers[:], root.filters[:], root.level
    yield
    root.handlers[:] = handlers
    root.filters[:] = filters
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def signing_key() -> str:
    return TEST_SIGNING_KEY


@pytest.fixture
def signed_headers(signing_key: str) -> Callable[..., dict[str, str]]:
    """Build Slack signature headers for a body."""

    def _signed_headers(
        body: str | bytes,
        content_type: str = FORM_CONTENT_TYPE,
        key: str | None = None,
        timestamp: int | None = None,
    ) -> dict[str, str]:
        ts = int(time.time()) if timestamp is None else timestamp
        return {
            "Content-Type": content_type,
            "X-Slack-Request-Timestamp": str(ts),
            "X-Slack-Signature": sign(ts, body, key or signing_key),
        }

    return _signed_headers


@pytest.fixture
def command_body() -> Callable[..., str]:
    """Form-encoded slash command body."""

    def _command_body(command: str, text: str = "", **extra: str) -> str:
        fields = {
            "command": command,
            "text": text,
            "team_id": "T123",
            "channel_id": "C123",
            "user_id": "U123",
            "response_url": "https://hooks.slack.com/commands/T123/1/abc",
        }
        fields.update(extra)
        return urlencode(fields)

    return _command_body


@pytest.fixture
def make_context() -> Callable[..., Context]:
    """Build a Context with recording clients attached."""

    def _make_context(data: dict[str, Any] | None = None, **fields: Any) -> Context:
        payload = Payload({**(data or {}), **fields})
        return (
            Context(payload)
            .with_api_client(RecordingApiClient())
            .with_respond_client(RecordingRespondClient())
        )

    return _make_context


@pytest.fixture
def command_context(make_context) -> Callable[..., Context]:
    def _command_context(command: str, text: str = "", **fields: Any) -> Context:
        return make_context(
            command=command,
            text=text,
            response_url="https://hooks.slack.com/commands/T123/1/abc",
            channel_id="C123",
            **fields,
        )

    return _command_context
