"""
Inbound Slack payloads.

A :class:`Payload` is the decoded body of a webhook request. Values are looked
up with dot-separated paths (``"actions.0.action_id"``) that walk dicts by key
and lists by integer index.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any
from urllib.parse import parse_qs

from slack_dispatch.core.common.exceptions import InvalidRequestError

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


class PayloadType(str, Enum):
    """Kinds of Slack payloads, each with the field path used for routing."""

    APP_RATE_LIMITED = "app_rate_limited"
    BLOCK_ACTIONS = "block_actions"
    BLOCK_SUGGESTION = "block_suggestion"
    COMMAND = "command"
    EVENT_CALLBACK = "event_callback"
    INTERACTIVE_MESSAGE = "interactive_message"
    MESSAGE_ACTION = "message_action"
    SHORTCUT = "shortcut"
    UNKNOWN = "unknown"
    URL_VERIFICATION = "url_verification"
    VIEW_CLOSED = "view_closed"
    VIEW_SUBMISSION = "view_submission"
    WORKFLOW_STEP_EDIT = "workflow_step_edit"

    @classmethod
    def with_value(cls, value: str) -> PayloadType:
        """Return the member for *value*, or ``UNKNOWN`` for unrecognised values."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def id_field(self) -> str | None:
        return _ID_FIELDS.get(self)


_ID_FIELDS: dict[PayloadType, str] = {
    PayloadType.BLOCK_ACTIONS: "actions.0.action_id",
    PayloadType.BLOCK_SUGGESTION: "action_id",
    PayloadType.COMMAND: "command",
    PayloadType.EVENT_CALLBACK: "event.type",
    PayloadType.MESSAGE_ACTION: "callback_id",
    PayloadType.SHORTCUT: "callback_id",
    PayloadType.VIEW_CLOSED: "view.callback_id",
    PayloadType.VIEW_SUBMISSION: "view.callback_id",
    PayloadType.WORKFLOW_STEP_EDIT: "callback_id",
}


def _get_deep(data: Any, segments: list[str]) -> Any:
    value = data
    for segment in segments:
        if isinstance(value, Mapping):
            value = value.get(segment)
        elif isinstance(value, list):
            try:
                value = value[int(segment)]
            except (ValueError, IndexError):
                return None
        else:
            return None
        if value is None:
            return None
    return value


class Payload:
    """Immutable, dot-addressable view over a decoded Slack request body."""

    __slots__ = ("_data", "_type")

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        cleaned = {k: v for k, v in (data or {}).items() if v is not None}
        self._data: dict[str, Any] = copy.deepcopy(cleaned)

        if isinstance(self._data.get("type"), str):
            self._type = PayloadType.with_value(self._data["type"])
        elif "command" in self._data:
            self._type = PayloadType.COMMAND
        else:
            self._type = PayloadType.UNKNOWN

    @classmethod
    def from_http_request(cls, body: str | bytes, content_type: str) -> Payload:
        """Decode a raw request body into a Payload.

        Form bodies may carry the real payload as a JSON string in a
        ``payload`` field (interactivity requests); it is unwrapped.

        Raises:
            InvalidRequestError: For unsupported content types or undecodable bodies.
        """
        if isinstance(body, bytes):
            try:
                body = body.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidRequestError(
                    "Request body is not valid UTF-8",
                    details={"content_type": content_type, "position": e.start},
                ) from e
        media_type = (content_type or "").split(";", 1)[0].strip().lower()

        try:
            if media_type == FORM_CONTENT_TYPE:
                data: Any = {
                    key: values[-1]
                    for key, values in parse_qs(body, keep_blank_values=True).items()
                }
            elif media_type == JSON_CONTENT_TYPE:
                data = json.loads(body)
            else:
                raise InvalidRequestError(
                    "Unsupported request body format",
                    details={"content_type": content_type},
                )

            if isinstance(data, dict) and isinstance(data.get("payload"), str):
                data["payload"] = json.loads(data["payload"])
        except json.JSONDecodeError as e:
            raise InvalidRequestError(
                "Request body is not valid JSON",
                details={"content_type": content_type, "position": e.pos},
            ) from e

        if not isinstance(data, dict):
            raise InvalidRequestError(
                "Request body must decode to an object",
                details={"content_type": content_type},
            )

        inner = data.get("payload")
        return cls(inner if isinstance(inner, dict) else data)

    @property
    def type(self) -> PayloadType:
        return self._type

    def is_type(self, payload_type: PayloadType | str) -> bool:
        if not isinstance(payload_type, PayloadType):
            payload_type = PayloadType.with_value(payload_type)
        return self._type is payload_type

    def get_type_id(self) -> str | None:
        """Return the routing identifier, e.g. the command name without its slash."""
        field = self._type.id_field
        if field is None:
            return None
        value = self.get(field)
        if value is None:
            return None
        return str(value).lstrip("/")

    def get(self, path: str, required: bool = False) -> Any:
        """Return the value at a dot-separated *path*.

        Raises:
            InvalidRequestError: If *required* and nothing is found.
        """
        value = _get_deep(self._data, path.split("."))
        if required and value is None:
            raise InvalidRequestError(
                f'Missing required value from Payload: "{path}".',
                details={"path": path},
            )
        return copy.deepcopy(value) if isinstance(value, dict | list) else value

    def get_one_of(self, paths: Iterable[str], required: bool = False) -> Any:
        paths = list(paths)
        for path in paths:
            value = self.get(path)
            if value is not None:
                return value

        if required:
            listed = ", ".join(f'"{p}"' for p in paths)
            raise InvalidRequestError(
                f"Missing required value from Payload: one of {listed}.",
                details={"paths": paths},
            )
        return None

    def get_all_of(self, paths: Iterable[str], required: bool = False) -> dict[str, Any]:
        values: dict[str, Any] = {}
        missing: list[str] = []
        for path in paths:
            value = self.get(path)
            if value is None:
                missing.append(path)
            else:
                values[path] = value

        if required and missing:
            listed = ", ".join(f'"{p}"' for p in missing)
            raise InvalidRequestError(
                f"Missing required values from Payload: all of {listed}.",
                details={"missing": missing},
            )
        return values

    # Accessors for identifiers that live in different places per payload type.

    @property
    def app_id(self) -> str | None:
        return self.get("api_app_id")

    @property
    def enterprise_id(self) -> str | None:
        return self.get_one_of(
            [
                "authorizations.0.enterprise_id",
                "enterprise.id",
                "enterprise_id",
                "team.enterprise_id",
                "event.enterprise",
                "event.enterprise_id",
            ]
        )

    @property
    def team_id(self) -> str | None:
        return self.get_one_of(
            ["authorizations.0.team_id", "team.id", "team_id", "event.team", "user.team_id"]
        )

    @property
    def channel_id(self) -> str | None:
        return self.get_one_of(
            ["channel.id", "channel_id", "event.channel", "event.item.channel"]
        )

    @property
    def user_id(self) -> str | None:
        return self.get_one_of(["user.id", "user_id", "event.user"])

    @property
    def response_url(self) -> str | None:
        url = self.get_one_of(["response_url", "response_urls.0.response_url"])
        return None if url is None else str(url)

    @property
    def is_enterprise_install(self) -> bool:
        value = self.get_one_of(
            ["authorizations.0.is_enterprise_install", "is_enterprise_install"]
        )
        return value is True or value == "true"

    def summary(self) -> dict[str, Any]:
        """Identifying fields, suitable for binding to a logger."""
        return {
            "payload_type": self._type.value,
            "payload_id_field": self._type.id_field,
            "payload_id_value": self.get_type_id(),
        }

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def __getitem__(self, path: str) -> Any:
        return self.get(path)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.get(path) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Payload):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(json.dumps(self._data, sort_keys=True, default=str))

    def __repr__(self) -> str:
        return f"<Payload type={self._type.value} id={self.get_type_id()!r}>"
