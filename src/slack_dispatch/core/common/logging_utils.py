"""
Logging utilities for the application.

This module provides utilities for logging, including:
- Structured, context-bound loggers for per-request logging
- Redaction of signing keys and tokens
- Test/production environment tagging
"""

from __future__ import annotations

import logging
import os
import re
import sys
from collections.abc import Iterable
from typing import Any, Literal

import structlog

# Bot, user, app and config tokens issued by Slack.
SLACK_TOKEN_PATTERN = re.compile(r"xox[abposer]-[A-Za-z0-9-]+|xapp-[A-Za-z0-9-]+")


def _is_running_under_pytest() -> bool:
    """Detect if we're running under pytest."""
    return "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST") is not None


def _get_environment_tag() -> str:
    return "test" if _is_running_under_pytest() else "prod"


class EnvironmentTaggingFilter(logging.Filter):
    """Logging filter that adds environment tags to log records."""

    def __init__(self) -> None:
        super().__init__()
        self._env_tag = _get_environment_tag()

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.env_tag = self._env_tag
        return True


class EnvironmentTaggingFormatter(logging.Formatter):
    """Logging formatter that includes environment tags."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: Literal["%", "{", "$"] = "%",
    ) -> None:
        if fmt is None:
            fmt = "%(asctime)s [%(levelname)-8s] [%(env_tag)s] %(name)s:%(lineno)d %(message)s"
        super().__init__(fmt, datefmt, style=style)

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "env_tag"):
            record.env_tag = _get_environment_tag()
        return super().format(record)


def get_logger(name: str | None = None, **context: Any) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, optionally bound with initial context.

    Args:
        name: Optional logger name
        **context: Key/value pairs bound to every event from this logger

    Returns:
        A structured logger
    """
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger  # type: ignore[no-any-return]


def redact(value: str, mask: str = "***") -> str:
    """Redact a sensitive value, keeping a short prefix and suffix."""
    if not value:
        return value

    if len(value) > 6:
        return f"{value[0:2]}{mask}{value[-2:]}"
    else:
        return mask


class SecretRedactionFilter(logging.Filter):
    """Logging filter that masks known secrets and Slack tokens in log records.

    The filter sanitizes ``record.msg`` and ``record.args`` (strings or
    containers of strings) replacing signing keys and tokens with a mask.
    """

    def __init__(self, secrets: Iterable[str] | None = None, mask: str = "***") -> None:
        super().__init__()
        self.mask = mask
        self._secrets: set[str] = set()
        self.patterns: list[re.Pattern] = [SLACK_TOKEN_PATTERN]
        self.add_secrets(secrets or [])

    def add_secrets(self, secrets: Iterable[str]) -> None:
        """Mask *secrets* as well as the values already known."""
        new = {s for s in secrets if s} - self._secrets
        if not new:
            return
        self._secrets |= new
        escaped = sorted((re.escape(k) for k in self._secrets), key=len, reverse=True)
        self.patterns = [re.compile("|".join(escaped)), SLACK_TOKEN_PATTERN]

    def _sanitize(self, obj: object) -> object:
        if isinstance(obj, str):
            s = obj
            for pat in self.patterns:
                s = pat.sub(self.mask, s)
            return s
        if isinstance(obj, dict):
            return {k: self._sanitize(v) for k, v in obj.items()}
        if isinstance(obj, list | tuple):
            return type(obj)(self._sanitize(v) for v in obj)
        return obj

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = self._sanitize(record.msg)  # type: ignore[assignment]

        if record.args:
            if isinstance(record.args, dict):
                record.args = self._sanitize(record.args)  # type: ignore[assignment]
            elif isinstance(record.args, tuple):
                record.args = tuple(self._sanitize(a) for a in record.args)

        for attr in ("message", "exc_text"):
            val = getattr(record, attr, None)
            if isinstance(val, str):
                setattr(record, attr, self._sanitize(val))
        return True


def _installed_redaction_filter() -> SecretRedactionFilter | None:
    for existing in logging.getLogger().filters:
        if isinstance(existing, SecretRedactionFilter):
            return existing
    return None


def install_secret_redaction_filter(secrets: Iterable[str]) -> SecretRedactionFilter:
    """Install the redaction filter on the root logger and its handlers.

    Only one filter is ever installed; later calls add their secrets to it.
    Records from child loggers skip root logger filters, so the filter is
    attached to every root handler too.
    """
    root = logging.getLogger()
    filter_instance = _installed_redaction_filter()
    if filter_instance is None:
        filter_instance = SecretRedactionFilter(secrets)
        root.addFilter(filter_instance)
    else:
        filter_instance.add_secrets(secrets)

    for handler in list(root.handlers):
        if filter_instance not in handler.filters:
            handler.addFilter(filter_instance)
    return filter_instance


def configure_logging(
    level: int | str = logging.INFO,
    log_format: str | None = None,
    log_file: str | None = None,
    secrets: Iterable[str] | None = None,
) -> None:
    """Configure stdlib logging with environment tagging and route structlog through it.

    Args:
        level: Logging level
        log_format: Optional log format string
        log_file: Optional log file path
        secrets: Values to mask in every record (signing keys, tokens)
    """
    formatter = EnvironmentTaggingFormatter(fmt=log_format)

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    env_filter = EnvironmentTaggingFilter()
    for handler in handlers:
        handler.addFilter(env_filter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(
                key_order=["event"], drop_missing=True
            ),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # force=True replaced the handlers; carry an installed filter over to the new ones.
    if secrets or _installed_redaction_filter() is not None:
        install_secret_redaction_filter(secrets or [])
