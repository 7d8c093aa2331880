"""
Slash command definitions.

A :class:`CommandDefinition` declares the positional args and named opts a
slash command (or one of its sub-commands) accepts. Definitions also render
the usage text shown when input does not parse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from slack_dispatch.core.common.exceptions import ConfigurationError
from slack_dispatch.core.interfaces.model_bases import InternalDTO

ARRAY_SUFFIX = "[]"


class ArgType(str, Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"


class OptType(str, Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING_ARRAY = "string[]"
    INT_ARRAY = "int[]"
    FLOAT_ARRAY = "float[]"

    @property
    def is_array(self) -> bool:
        return self.value.endswith(ARRAY_SUFFIX)

    @property
    def scalar(self) -> ArgType:
        """The element type; for scalar opts, the type itself."""
        return ArgType(self.value.removesuffix(ARRAY_SUFFIX))


@dataclass(frozen=True)
class ArgDefinition(InternalDTO):
    name: str
    type: ArgType = ArgType.STRING
    required: bool = True
    description: str = ""

    def format(self) -> str:
        text = f"<{self.name}:{self.type.value}>"
        return text if self.required else f"[{text}]"


@dataclass(frozen=True)
class OptDefinition(InternalDTO):
    name: str
    type: OptType = OptType.BOOL
    short_name: str | None = None
    description: str = ""

    @property
    def is_array(self) -> bool:
        return self.type.is_array

    def format(self) -> str:
        text = f"[--{self.name}"
        if self.short_name is not None:
            text += f"|-{self.short_name}"
        if self.type is OptType.BOOL:
            return text + "]"
        text += f" <{self.type.scalar.value}>]"
        return text + "..." if self.is_array else text


@dataclass(frozen=True)
class CommandDefinition(InternalDTO):
    name: str
    sub_command: str | None = None
    description: str = ""
    args: tuple[ArgDefinition, ...] = ()
    opts: tuple[OptDefinition, ...] = field(default_factory=tuple)

    def get_command_format(self) -> str:
        """Usage line(s), e.g. ``/deploy app <env:string> [<count:int>]``."""
        parts = [f"/{self.name}"]
        if self.sub_command is not None:
            parts.append(self.sub_command)
        parts.extend(arg.format() for arg in self.args)
        opts = "".join(f"\n  {opt.format()}" for opt in self.opts)
        return " ".join(parts) + opts

    def get_help_message(self, error: str | None = None) -> dict[str, Any]:
        """An ephemeral message describing usage, led by *error* if given."""
        lines = []
        if error:
            lines.append(":warning: *Command Error*")
            lines.append(f"> {error}")
        lines.append(f"*Command Usage*: ```{self.get_command_format()}```")
        return {"response_type": "ephemeral", "text": "\n".join(lines)}


class DefinitionBuilder:
    """Fluent builder for :class:`CommandDefinition`."""

    def __init__(self) -> None:
        self._name: str | None = None
        self._sub_command: str | None = None
        self._description = ""
        self._args: list[ArgDefinition] = []
        self._opts: list[OptDefinition] = []

    def name(self, command_name: str) -> DefinitionBuilder:
        self._name = command_name.lstrip("/")
        return self

    def sub_command(self, sub_command: str) -> DefinitionBuilder:
        self._sub_command = sub_command
        return self

    def description(self, description: str) -> DefinitionBuilder:
        self._description = description
        return self

    def arg(
        self,
        name: str,
        type: ArgType | str = ArgType.STRING,
        required: bool = True,
        description: str = "",
    ) -> DefinitionBuilder:
        self._args.append(ArgDefinition(name, ArgType(type), required, description))
        return self

    def opt(
        self,
        name: str,
        type: OptType | str = OptType.BOOL,
        short_name: str | None = None,
        description: str = "",
    ) -> DefinitionBuilder:
        self._opts.append(OptDefinition(name, OptType(type), short_name, description))
        return self

    def build(self) -> CommandDefinition:
        if not self._name:
            raise ConfigurationError("Cannot build command without name")

        seen: set[str] = set()
        for opt in self._opts:
            for key in (opt.name, opt.short_name):
                if key is None:
                    continue
                if key in seen:
                    raise ConfigurationError(
                        f"Duplicate opt name: `{key}`", details={"command": self._name}
                    )
                seen.add(key)

        return CommandDefinition(
            name=self._name,
            sub_command=self._sub_command,
            description=self._description,
            args=tuple(self._args),
            opts=tuple(self._opts),
        )
