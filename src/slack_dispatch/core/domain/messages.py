"""Coercion of message-like values into Slack message dicts."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Union

from slack_dispatch.core.common.exceptions import InvalidRequestError

MessageLike = Union[str, Mapping[str, Any], list, Callable[[], Any]]


def coerce_message(message: MessageLike) -> dict[str, Any]:
    """Turn a string, dict, list of blocks or zero-arg callable into a message dict."""
    if callable(message) and not isinstance(message, str | Mapping | list):
        message = message()

    if isinstance(message, str):
        return {"text": message}
    if isinstance(message, Mapping):
        return dict(message)
    if isinstance(message, list):
        return {"blocks": list(message)}

    raise InvalidRequestError(
        "Invalid message content", details={"type": type(message).__name__}
    )
