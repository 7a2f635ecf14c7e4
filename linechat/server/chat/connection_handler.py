"""
Connection handler module.

One ConnectionHandler drives one session through its lifecycle:

    CONNECTING -> AWAITING_NAME -> ACTIVE -> DISCONNECTING -> CLOSED

The operator console handler is created with its session already registered
and starts in ACTIVE. Cancelling the handler's task interrupts whatever read
it is blocked on and sends it through DISCONNECTING.
"""

import asyncio
import enum
from typing import Optional

from linechat.common.constants import Roles
from linechat.common.errors import DeliveryError, NameTakenError
from linechat.common.protocol_definitions import (
    parse_line, decode_line, create_name_prompt, create_invalid_name_message,
    create_name_taken_message, create_welcome_message, create_connected_notice,
    create_disconnected_notice, create_chat_line, create_error_message
)
from linechat.server.chat.registry import Session
from linechat.server.commands.dispatcher import CommandContext, Outcome
from linechat.server.utils.logger import logger


class SessionState(enum.Enum):
    CONNECTING = 'connecting'
    AWAITING_NAME = 'awaiting_name'
    ACTIVE = 'active'
    DISCONNECTING = 'disconnecting'
    CLOSED = 'closed'


class ConnectionHandler:
    """Per-connection session state machine."""

    def __init__(self, server, reader: asyncio.StreamReader, channel,
                 address: Optional[tuple] = None, session: Optional[Session] = None):
        self.server = server
        self.reader = reader
        self.channel = channel
        self.address = address
        self.session = session
        self.state = SessionState.CONNECTING
        self.task: Optional[asyncio.Task] = None

    def describe(self) -> str:
        if self.session is not None:
            return f"'{self.session.name}'"
        return str(self.address)

    async def run(self):
        """Drive the session from connect to close."""
        try:
            if self.session is None:
                self.state = SessionState.AWAITING_NAME
                if not await self._login():
                    logger.info(f"{self.describe()} left before choosing a name")
                    return

            self.state = SessionState.ACTIVE
            await self._serve()

        except asyncio.CancelledError:
            logger.info(f"Session {self.describe()} cancelled")
        except DeliveryError as e:
            logger.info(f"Session {self.describe()} lost its connection: {e}")
        except Exception as e:
            logger.log_error(f"session {self.describe()}", e)
        finally:
            await self._teardown()

    async def _login(self) -> bool:
        """Negotiate a unique name. Returns False if the peer went away first."""
        server = self.server
        while True:
            await self.channel.send_prompt(create_name_prompt())
            line = await self._read_line()
            if line is None:
                return False

            name = line.strip()
            if not name:
                await self.channel.send(create_invalid_name_message())
                continue

            try:
                self.session = await server.registry.insert(name, Roles.NORMAL, self.channel, self.address)
            except NameTakenError:
                logger.info(f"{self.address} asked for taken name '{name}'")
                await self.channel.send(create_name_taken_message(name))
                continue

            logger.log_login(name, self.address)
            await server.broadcaster.send_excluding(
                create_connected_notice(name, server.config.color),
                await server.registry.snapshot(),
                self.session
            )
            await self.channel.send(create_welcome_message(name, server.config.color))
            return True

    async def _serve(self):
        """Read-parse-dispatch loop. Returns on end of stream or logout."""
        prompt = self.server.config.prompt
        await self.channel.send_prompt(prompt)

        while True:
            line = await self._read_line()
            if line is None:
                return

            if await self._process_line(line) is Outcome.LOGOUT:
                return

            await self.channel.send_prompt(prompt)

    async def _process_line(self, line: str) -> Outcome:
        server = self.server
        session = self.session
        parsed = parse_line(line)

        try:
            if parsed.is_command:
                context = CommandContext(session, server)
                return await server.dispatcher.dispatch(parsed.command, parsed.argument, context)

            if line.strip():
                logger.log_chat(session.name, line)
                await server.broadcaster.send(
                    create_chat_line(session.name, session.role, line, server.config.color),
                    await server.registry.snapshot()
                )
        except DeliveryError:
            raise
        except Exception as e:
            logger.log_error(f"handling line from '{session.name}'", e)
            await self.channel.send(create_error_message("your request could not be completed"))

        return Outcome.CONTINUE

    async def _read_line(self) -> Optional[str]:
        """Read one line. None means end of stream or an unreadable connection."""
        try:
            data = await self.reader.readline()
        except (ConnectionError, OSError) as e:
            logger.warning(f"Read from {self.describe()} failed: {e}")
            return None
        except ValueError as e:
            # StreamReader reports an over-long line as ValueError
            logger.warning(f"Dropping {self.describe()}: {e}")
            return None

        if not data:
            return None
        return decode_line(data)

    async def _teardown(self):
        session = self.session
        try:
            if session is not None:
                self.state = SessionState.DISCONNECTING
                if not session.console:
                    # A second cancel must not leave the session registered
                    await asyncio.shield(self._leave(session))
        finally:
            try:
                await self.channel.close()
            finally:
                self.state = SessionState.CLOSED

    async def _leave(self, session: Session):
        """Remove the session and tell the others it is gone."""
        if await self.server.registry.remove(session):
            logger.log_disconnect(session.name, self.address)
            await self.server.broadcaster.send_excluding(
                create_disconnected_notice(session.name, self.server.config.color),
                await self.server.registry.snapshot(),
                session
            )

    def abort(self):
        """Force the session closed: drop the connection and cancel the task."""
        self.channel.abort()
        if self.task is not None:
            self.task.cancel()
