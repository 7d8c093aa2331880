"""
Slash command text parser.

Parsing happens in two passes over the command text:

1. Tokenization splits the text into positional values and ``--name[=value]``
   or ``-x[value]`` opts, honouring single and double quotes, backslash
   escapes and "smart" quotes.
2. Binding assigns positional values to the declared args in order, looks up
   opts by long or short name, and coerces every value to its declared type.

Parsing never raises for bad user input; :meth:`CommandParser.parse` returns
a :class:`ParseResult` carrying either the bound values or a message suitable
for showing to the user.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from slack_dispatch.core.commands.definition import (
    ArgDefinition,
    ArgType,
    CommandDefinition,
    OptDefinition,
    OptType,
)
from slack_dispatch.core.common.exceptions import ParsingError
from slack_dispatch.core.interfaces.model_bases import InternalDTO

logger = logging.getLogger(__name__)

_SMART_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})

_QUOTED = r"""(?:"([^"\\]*(?:\\.[^"\\]*)*)"|'([^'\\]*(?:\\.[^'\\]*)*)')"""
_WHITESPACE_RE = re.compile(r"\s+")
# A key glued to one or more quoted strings, e.g. --name="a b" or foo'bar'.
_KEYED_QUOTED_RE = re.compile(r"""([^="'\s]+?)(=?)((?:""" + _QUOTED + r")+)")
_QUOTED_RE = re.compile(_QUOTED)
_NORMAL_RE = re.compile(r"""(\S+?)(?:\s|(?<!\\)"|(?<!\\)'|$)""")

_NEGATIVE_NUMBER_RE = re.compile(r"-(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
FALSE_VALUES = frozenset({"false", "0", "no", "off"})

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\"}


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), value)


class _ParseFailure(Exception):
    """Internal signal carrying a user-facing parse error message."""


@dataclass
class Token(InternalDTO):
    """A positional value, or an opt key with its (possibly pending) value."""

    is_opt: bool
    key: str | None = None
    value: str | None = None

    @classmethod
    def from_text(cls, text: str) -> Token:
        if text.startswith("--"):
            key, sep, value = text[2:].partition("=")
            return cls(is_opt=True, key=key, value=value if sep else None)

        if len(text) > 1 and text[0] == "-" and not _NEGATIVE_NUMBER_RE.fullmatch(text):
            value = text[2:] or None
            if value is not None and value.startswith("="):
                value = value[1:]
            return cls(is_opt=True, key=text[1], value=value)

        return cls(is_opt=False, value=text)


def tokenize(text: str) -> Iterator[Token]:
    """Split command text into tokens."""
    text = text.translate(_SMART_QUOTES)
    cursor = 0
    length = len(text)
    while cursor < length:
        match = _WHITESPACE_RE.match(text, cursor)
        if match:
            cursor = match.end()
            continue

        match = _KEYED_QUOTED_RE.match(text, cursor)
        if match:
            quoted = match.group(3)[1:-1]
            for joint in ('"\'', "'\"", "''", '""'):
                quoted = quoted.replace(joint, "")
            yield Token.from_text(match.group(1) + match.group(2) + _unescape(quoted))
        else:
            match = _QUOTED_RE.match(text, cursor)
            if match:
                yield Token(is_opt=False, value=_unescape(match.group(0)[1:-1]))
            else:
                match = _NORMAL_RE.match(text, cursor)
                if not match:
                    raise _ParseFailure(
                        f"Unable to parse input near `... {text[cursor:cursor + 10]} ...`"
                    )
                yield Token.from_text(_unescape(match.group(1)))
        cursor = match.end()


def coerce_value(value: str, type_: ArgType) -> Any:
    """Convert *value* to *type_*; returns None if it is not a valid value of that type."""
    if type_ is ArgType.STRING:
        return value
    if type_ is ArgType.INT:
        return int(value) if _INT_RE.fullmatch(value) else None
    if type_ is ArgType.FLOAT:
        return float(value) if _FLOAT_RE.fullmatch(value) else None

    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return None


@dataclass(frozen=True)
class ParseResult(InternalDTO):
    """Outcome of parsing: bound values, or an error message for the user."""

    values: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CommandParser:
    def __init__(self, definition: CommandDefinition) -> None:
        self.definition = definition
        self._opts: dict[str, OptDefinition] = {}
        for opt in definition.opts:
            self._opts[opt.name] = opt
            if opt.short_name:
                self._opts[opt.short_name] = opt

    def parse(self, text: str | None) -> ParseResult:
        try:
            values = self._parse(text or "")
        except _ParseFailure as e:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Could not parse /%s input: %s", self.definition.name, e)
            return ParseResult(error=str(e))
        return ParseResult(values=values)

    def parse_or_raise(self, text: str | None) -> dict[str, Any]:
        """Like :meth:`parse`, but raises :class:`ParsingError` on failure."""
        result = self.parse(text)
        if not result.ok:
            raise ParsingError(
                result.error or "Parsing failed",
                details={"command": self.definition.name, "text": text},
            )
        return result.values

    def _parse(self, text: str) -> dict[str, Any]:
        sub_command = self.definition.sub_command
        text = text.strip()
        if sub_command is not None:
            if not text.startswith(sub_command):
                raise _ParseFailure(
                    f"Input does not match the defined sub-command: `{sub_command}`"
                )
            text = text[len(sub_command):].lstrip()

        remaining_args = list(self.definition.args)
        data: dict[str, Any] = {}
        for key, value in self._bind(text, remaining_args):
            if isinstance(value, list) and key in data:
                data[key] = data[key] + value
            else:
                data[key] = value

        for arg in remaining_args:
            if arg.required:
                raise _ParseFailure(f"Missing required arg: `{arg.name}`")

        for opt in self.definition.opts:
            if opt.name not in data and opt.type is OptType.BOOL:
                data[opt.name] = False
        return data

    def _bind(self, text: str, remaining_args: list[ArgDefinition]) -> Iterator[tuple[str, Any]]:
        pending: Token | None = None
        for token in tokenize(text):
            if pending is not None:
                if token.is_opt:
                    raise _ParseFailure(
                        f"Expected value for `{pending.key}`, but received new opt: `{token.key}`"
                    )
                pending.value = token.value
                token, pending = pending, None

            if token.is_opt:
                bound = self._bind_opt(token)
                if bound is None:
                    pending = token
                else:
                    yield bound
            else:
                yield self._bind_arg(token, remaining_args)

        if pending is not None:
            pending.value = "true"
            bound = self._bind_opt(pending)
            if bound is not None:
                yield bound

    def _bind_arg(self, token: Token, remaining_args: list[ArgDefinition]) -> tuple[str, Any]:
        if not remaining_args:
            raise _ParseFailure("Too many args provided than defined")
        arg = remaining_args.pop(0)

        value = coerce_value(token.value or "", arg.type)
        if value is None:
            raise _ParseFailure(
                f"Invalid value (`{token.value}`) for arg `{arg.name}`; should be type: `{arg.type.value}`"
            )
        return arg.name, value

    def _bind_opt(self, token: Token) -> tuple[str, Any] | None:
        """Bind an opt token; returns None when its value is in the next token."""
        opt = self._opts.get(token.key or "")
        if opt is None:
            raise _ParseFailure(f"Invalid opt provided: `{token.key}`")

        if token.value is None:
            if opt.type is not OptType.BOOL:
                return None
            token.value = "true"

        scalar = opt.type.scalar
        value = coerce_value(token.value, scalar)
        if value is None:
            raise _ParseFailure(
                f"Invalid value (`{token.value}`) for opt `{token.key}`; should be type: `{scalar.value}`"
            )
        return opt.name, [value] if opt.is_array else value


class CommandInput:
    """Parsed values of a command, addressed by arg/opt name."""

    def __init__(self, values: Mapping[str, Any], definition: CommandDefinition) -> None:
        self._values = dict(values)
        self.definition = definition

    @classmethod
    def parse(cls, text: str | None, definition: CommandDefinition) -> CommandInput:
        """Raises :class:`ParsingError` if *text* does not match *definition*."""
        return cls(CommandParser(definition).parse_or_raise(text), definition)

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)
