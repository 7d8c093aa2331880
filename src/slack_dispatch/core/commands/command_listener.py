from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, ClassVar

from slack_dispatch.core.commands.definition import CommandDefinition, DefinitionBuilder
from slack_dispatch.core.commands.parser import CommandInput, CommandParser
from slack_dispatch.core.interfaces.listener_interface import IListener

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context


class CommandListener(IListener):
    """Base class for listeners of a slash command with declared args and opts.

    Subclasses implement :meth:`build_definition` and :meth:`listen_to_command`.
    Input that does not match the definition is answered with a usage message
    instead of reaching :meth:`listen_to_command`.
    """

    _definitions: ClassVar[dict[type, CommandDefinition]] = {}

    @classmethod
    @abstractmethod
    def build_definition(cls, builder: DefinitionBuilder) -> DefinitionBuilder:
        """Declare the command's name, sub-command, args and opts."""

    @classmethod
    def get_definition(cls) -> CommandDefinition:
        definition = CommandListener._definitions.get(cls)
        if definition is None:
            definition = cls.build_definition(DefinitionBuilder()).build()
            CommandListener._definitions[cls] = definition
        return definition

    @abstractmethod
    def listen_to_command(self, context: Context, command_input: CommandInput) -> None:
        """Handle a command whose text parsed successfully."""

    def handle(self, context: Context) -> None:
        definition = self.get_definition()
        result = CommandParser(definition).parse(context.payload.get("text"))
        if result.ok:
            self.listen_to_command(context, CommandInput(result.values, definition))
            return

        message = definition.get_help_message(result.error)
        if context.is_acknowledged:
            context.respond(message)
        else:
            context.ack(message)
