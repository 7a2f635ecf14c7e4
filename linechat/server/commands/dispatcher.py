"""
Command dispatch.

Commands live in an ordered table. A typed token resolves to the first
registered command whose name starts with it, so registration order decides
ties such as ``/h`` between ``help`` and a later ``history``.
"""

import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from linechat.common.protocol_definitions import create_not_recognized_message
from linechat.server.chat.registry import Session
from linechat.server.utils.logger import logger


class Outcome(enum.Enum):
    """What the invoking handler does after a command returns."""
    CONTINUE = 'continue'
    LOGOUT = 'logout'


@dataclass
class CommandContext:
    """Explicit invocation context handed to every command handler."""
    session: Session
    server: object  # linechat.server.main_server.ChatServer

    async def reply(self, text: str):
        """Send a line to the invoking session."""
        await self.session.channel.send(text)


CommandHandler = Callable[[str, CommandContext], Awaitable[Optional[Outcome]]]


@dataclass(frozen=True)
class Command:
    name: str
    handler: CommandHandler
    help_text: str = ''
    admin_only: bool = False


class CommandDispatcher:
    """Ordered command table with prefix resolution and admin gating."""

    def __init__(self, commands: Optional[List[Command]] = None):
        self.commands: List[Command] = []
        for command in commands or []:
            self.register(command)

    def register(self, command: Command):
        """Append a command to the table."""
        if any(existing.name == command.name for existing in self.commands):
            raise ValueError(f"Command '{command.name}' is already registered")
        if not command.name or ' ' in command.name:
            raise ValueError(f"Invalid command name: {command.name!r}")
        self.commands.append(command)

    def resolve(self, token: str) -> Optional[Command]:
        """Get the first command whose name starts with ``token``."""
        if not token:
            return None
        for command in self.commands:
            if command.name.startswith(token):
                return command
        return None

    def visible_to(self, session: Session) -> List[Command]:
        """Commands the session may see and run, in table order."""
        return [c for c in self.commands if session.is_admin or not c.admin_only]

    async def invoke(self, command: Command, argument: str, context: CommandContext,
                     token: Optional[str] = None) -> Outcome:
        """Run a command for the session in ``context``.

        A non-admin invoking an admin-only command gets the same reply as for
        an unknown command.
        """
        if command.admin_only and not context.session.is_admin:
            logger.info(f"Refused admin command /{command.name} from '{context.session.name}'")
            await context.reply(create_not_recognized_message(token if token is not None else command.name))
            return Outcome.CONTINUE

        outcome = await command.handler(argument, context)
        return outcome or Outcome.CONTINUE

    async def dispatch(self, token: str, argument: str, context: CommandContext) -> Outcome:
        """Resolve and invoke a typed command token."""
        logger.log_command(context.session.name, token, argument)

        command = self.resolve(token)
        if command is None:
            await context.reply(create_not_recognized_message(token))
            return Outcome.CONTINUE
        return await self.invoke(command, argument, context, token)
