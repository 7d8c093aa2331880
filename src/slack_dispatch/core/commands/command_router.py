"""
Sub-command routing for a single slash command.

``/deploy app staging`` with sub-commands ``"app"`` and ``"app rollback"``
routes to ``"app"`` and leaves ``"staging"`` in the context under
``remaining_text``. The deepest (most words) sub-command wins.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from slack_dispatch.core.interfaces.listener_interface import IListener
from slack_dispatch.core.listeners.basic import Callback, ListenerLike, coerce_listener

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context
    from slack_dispatch.core.interfaces.listener_resolver_interface import (
        IListenerResolver,
    )

logger = logging.getLogger(__name__)

HELP_SUB_COMMAND = "help"
DEFAULT_SUB_COMMAND = "*"
REMAINING_TEXT_KEY = "remaining_text"


def natural_sort_key(value: str) -> list[Any]:
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", value)]


class CommandRouter(IListener):
    def __init__(
        self,
        routes: Mapping[str, ListenerLike] | None = None,
        default: ListenerLike | None = None,
        description: str = "",
        resolver: IListenerResolver | None = None,
    ) -> None:
        self._resolver = resolver
        self._routes: dict[str, IListener] = {}
        self._default: IListener | None = None
        self._description = description
        self.max_levels = 1

        self.add(HELP_SUB_COMMAND, Callback(self.list_sub_commands))
        for sub_command, listener in (routes or {}).items():
            if sub_command == DEFAULT_SUB_COMMAND:
                default = default or listener
            else:
                self.add(sub_command, listener)
        if default is not None:
            self.with_default(default)

    def add(self, sub_command: str, listener: ListenerLike) -> CommandRouter:
        sub_command = " ".join(sub_command.split())
        self._routes[sub_command] = coerce_listener(listener, self._resolver)
        self.max_levels = max(self.max_levels, len(sub_command.split(" ")))
        return self

    def with_default(self, listener: ListenerLike) -> CommandRouter:
        self._default = coerce_listener(listener, self._resolver)
        return self

    def description(self, description: str) -> CommandRouter:
        self._description = description
        return self

    @property
    def sub_commands(self) -> list[str]:
        return sorted(self._routes, key=natural_sort_key)

    def match(self, text: str) -> tuple[str, str] | None:
        """Return ``(sub_command, remaining_text)`` for the deepest match, if any."""
        words = text.split()[: self.max_levels]
        while words:
            sub_command = " ".join(words)
            if sub_command in self._routes:
                prefix = re.match(r"\s*" + r"\s+".join(map(re.escape, words)), text)
                remaining = text[prefix.end():].strip() if prefix else ""
                return sub_command, remaining
            words.pop()
        return None

    def handle(self, context: Context) -> None:
        command = context.payload.get("command")
        text = (context.payload.get("text") or "").strip()

        matched = self.match(text)
        if matched is not None:
            sub_command, remaining = matched
            context.logger.debug(
                f'CommandRouter routing to sub-command: "{command} {sub_command}"'
            )
            context.set(REMAINING_TEXT_KEY, remaining)
            self._routes[sub_command].handle(context)
            return

        if self._default is not None:
            context.logger.debug("CommandRouter could not find sub-command; using default")
            context.set(REMAINING_TEXT_KEY, text)
            self._default.handle(context)
            return

        context.logger.debug(
            f'CommandRouter could not find sub-command; routing to "{HELP_SUB_COMMAND}" instead'
        )
        self.list_sub_commands(context)

    def get_help_message(self, command: str) -> dict[str, Any]:
        lines = [f"*The {command} Command*"]
        if self._description:
            lines.append(self._description)
        lines.append("*Available commands*:")
        lines.extend(f"• `{command} {sub}`" for sub in self.sub_commands)
        return {"response_type": "ephemeral", "text": "\n".join(lines)}

    def list_sub_commands(self, context: Context) -> None:
        message = self.get_help_message(str(context.payload.get("command") or ""))
        if context.is_acknowledged:
            context.respond(message)
        else:
            context.ack(message)
