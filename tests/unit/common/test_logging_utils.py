"""
Tests for logging helpers.
"""

import logging

import pytest
import structlog
from slack_dispatch.core.common.logging_utils import (
    EnvironmentTaggingFormatter,
    SecretRedactionFilter,
    configure_logging,
    get_logger,
    install_secret_redaction_filter,
    redact,
)


def _record(msg, args=()) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("", ""), ("abc", "***"), ("abcdef", "***"), ("supersecret", "su***et")],
)
def test_redact(value, expected) -> None:
    assert redact(value) == expected


class TestSecretRedactionFilter:
    def test_masks_known_secrets_in_message(self) -> None:
        record = _record("signing key is s3cr3t-key")

        SecretRedactionFilter(["s3cr3t-key"]).filter(record)

        assert record.msg == "signing key is ***"

    def test_masks_args(self) -> None:
        record = _record("key=%s data=%s", ("s3cr3t-key", {"nested": ["s3cr3t-key"]}))

        SecretRedactionFilter(["s3cr3t-key"]).filter(record)

        assert record.getMessage() == "key=*** data={'nested': ['***']}"

    def test_masks_slack_tokens_without_configured_secrets(self) -> None:
        record = _record("token xoxb-1234-abcd used")

        SecretRedactionFilter().filter(record)

        assert record.msg == "token *** used"

    def test_install_adds_filter_to_root(self) -> None:
        instance = install_secret_redaction_filter(["s3cr3t-key"])

        assert instance in logging.getLogger().filters

    def test_repeated_installs_share_one_filter(self) -> None:
        first = install_secret_redaction_filter(["first-secret"])
        second = install_secret_redaction_filter(["second-secret"])
        record = _record("first-secret then second-secret")

        second.filter(record)

        root_filters = [f for f in logging.getLogger().filters if isinstance(f, SecretRedactionFilter)]
        assert first is second
        assert root_filters == [first]
        assert record.msg == "*** then ***"

    def test_filter_survives_logging_reconfiguration(self) -> None:
        instance = install_secret_redaction_filter(["s3cr3t-key"])

        configure_logging(level="INFO")

        root = logging.getLogger()
        assert root.handlers
        assert all(instance in handler.filters for handler in root.handlers)
        for handler in root.handlers:
            handler.close()


def test_get_logger_binds_context() -> None:
    logger = get_logger("slack_dispatch.test", app_id="A1")

    bound = logger.bind(team_id="T1")

    assert structlog.get_context(bound) == {"app_id": "A1", "team_id": "T1"}


def test_configure_logging(tmp_path) -> None:
    log_file = tmp_path / "app.log"

    configure_logging(level="DEBUG", log_file=str(log_file), secrets=["s3cr3t-key"])
    logging.getLogger("slack_dispatch.test").debug("key is s3cr3t-key")
    for handler in logging.getLogger().handlers:
        handler.flush()

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(f, SecretRedactionFilter) for f in root.filters)
    assert "[test]" in log_file.read_text()
    assert "s3cr3t-key" not in log_file.read_text()
    for handler in root.handlers:
        handler.close()


def test_environment_formatter_tags_records() -> None:
    formatted = EnvironmentTaggingFormatter().format(_record("hello"))

    assert "[test]" in formatted
    assert formatted.endswith("hello")
