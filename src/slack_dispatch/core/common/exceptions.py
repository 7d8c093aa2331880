"""
Common exception classes for slack-dispatch.

This module defines custom exception classes used throughout the application
for better error handling and categorization. Every exception carries a
``details`` mapping of structured context that callers may enrich with
:meth:`SlackDispatchError.add_context` as the error propagates outward.
"""

from __future__ import annotations

from typing import Any


class SlackDispatchError(Exception):
    """Base exception class for all slack-dispatch errors."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        *,
        status_code: int | None = None,
        **kwargs,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
            status_code: Optional HTTP status code hint for transport adapters
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code or 500
        for key, value in (kwargs or {}).items():
            setattr(self, key, value)

    def add_context(self, **context: Any) -> SlackDispatchError:
        """Attach structured context; values already present are kept."""
        for key, value in context.items():
            self.details.setdefault(key, value)
        return self

    def to_dict(self) -> dict:
        error_dict = {
            "message": self.message,
            "type": self.__class__.__name__,
            "details": self.details,
        }

        for attr_name in dir(self):
            if (
                not attr_name.startswith("_")
                and attr_name not in ["message", "details", "status_code", "args"]
                and not callable(getattr(self, attr_name))
            ):
                error_dict[attr_name] = getattr(self, attr_name)

        return {"error": error_dict}


class AuthenticationError(SlackDispatchError):
    """Raised when a request signature cannot be verified."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(f"Auth Failed: {message}", details, status_code=401, **kwargs)


class ConfigurationError(SlackDispatchError):
    """Raised when there's a configuration issue."""

    def __init__(
        self,
        message: str = "Configuration error",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, status_code=500, **kwargs)


class InvalidRequestError(SlackDispatchError):
    """Raised when a request is invalid."""

    def __init__(
        self, message: str = "Invalid request", details: dict | None = None, **kwargs
    ):
        status_code = kwargs.pop("status_code", 400)
        super().__init__(message, details, status_code=status_code, **kwargs)


class MethodNotAllowedError(InvalidRequestError):
    def __init__(
        self,
        message: str = "Request method not allowed",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, status_code=405, **kwargs)


class ParsingError(SlackDispatchError):
    """Raised when slash command text does not match its definition."""

    def __init__(
        self, message: str = "Parsing failed", details: dict | None = None, **kwargs
    ):
        super().__init__(message, details, status_code=422, **kwargs)


class DispatchError(SlackDispatchError):
    """Raised when a listener fails before the request was acknowledged."""

    def __init__(
        self,
        message: str = "Dispatch failed",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, status_code=500, **kwargs)


class ContextError(SlackDispatchError):
    """Raised on misuse of a Context (double ack, reserved keys, id mismatch)."""

    def __init__(
        self,
        message: str = "Invalid context operation",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, status_code=500, **kwargs)


class ListenerResolutionError(SlackDispatchError):
    def __init__(
        self,
        message: str = "Could not resolve listener",
        listener_name: str | None = None,
        details: dict | None = None,
    ):
        det = details.copy() if details else {}
        if listener_name:
            det.setdefault("listener_name", listener_name)
        super().__init__(message, det, status_code=500)


class ApiCallError(SlackDispatchError):
    """Raised when a Slack Web API or response_url call is unsuccessful."""

    def __init__(
        self,
        message: str = "Slack API request failed",
        details: dict | None = None,
        **kwargs,
    ):
        status_code = kwargs.pop("status_code", 502)
        super().__init__(message, details, status_code=status_code, **kwargs)
