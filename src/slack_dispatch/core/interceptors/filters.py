"""
Filter interceptors.

A filter forwards to the wrapped listener only when the context matches, and
otherwise hands the context to a default listener (``Undefined`` unless given).
"""

from __future__ import annotations

import logging
import re
from abc import abstractmethod
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from slack_dispatch.core.interfaces.listener_interface import IInterceptor, IListener
from slack_dispatch.core.listeners.basic import ListenerLike, Undefined, coerce_listener

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context

logger = logging.getLogger(__name__)

REGEX_PREFIX = "regex:"
NOT_PREFIX = "not:"
REGEX_CONTEXT_KEY = "regex"


class Filter(IInterceptor):
    def __init__(self, default_listener: ListenerLike | None = None) -> None:
        self.default_listener = (
            coerce_listener(default_listener) if default_listener is not None else Undefined()
        )

    def intercept(self, context: Context, listener: IListener) -> None:
        matched = self.matches(context)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "filter:%s %s",
                type(self).__name__,
                "match" if matched else "not-match",
            )
        if not matched:
            listener = self.default_listener
        listener.handle(context)

    @abstractmethod
    def matches(self, context: Context) -> bool:
        """Return True if the wrapped listener should run."""


class CallbackFilter(Filter):
    def __init__(
        self,
        predicate: Callable[[Context], bool],
        default_listener: ListenerLike | None = None,
    ) -> None:
        super().__init__(default_listener)
        self.predicate = predicate

    def matches(self, context: Context) -> bool:
        return bool(self.predicate(context))


class FieldFilter(Filter):
    """Matches payload fields against expected values.

    Values are compared exactly, negated with a ``not:`` prefix, or matched as
    a regular expression with a ``regex:`` prefix. Regex matches are stored in
    the context under ``"regex"`` as ``{field: [full_match, *groups]}``. All
    fields must match.
    """

    def __init__(
        self,
        fields: Mapping[str, str],
        default_listener: ListenerLike | None = None,
    ) -> None:
        super().__init__(default_listener)
        self.fields = dict(fields)

    def matches(self, context: Context) -> bool:
        for field, expected in self.fields.items():
            if expected.startswith(REGEX_PREFIX):
                matched = self._match_regex(context, field, expected[len(REGEX_PREFIX):])
            else:
                matched = self._match_value(context, field, expected)
            if not matched:
                return False
        return True

    def _match_value(self, context: Context, field: str, expected: str) -> bool:
        want = True
        if expected.startswith(NOT_PREFIX):
            want = False
            expected = expected[len(NOT_PREFIX):]
        return (context.payload.get(field) == expected) is want

    def _match_regex(self, context: Context, field: str, pattern: str) -> bool:
        value = context.payload.get(field)
        if not isinstance(value, str):
            return False
        match = re.search(pattern, value)
        if match is None:
            return False

        all_matches = dict(context.get(REGEX_CONTEXT_KEY) or {})
        all_matches[field] = [match.group(0), *match.groups()]
        context.set(REGEX_CONTEXT_KEY, all_matches)
        return True
