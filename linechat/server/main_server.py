#!/usr/bin/env python3
"""
linechat server - main module.

ChatServer wires the registry, broadcaster, command table, acceptor and
shutdown coordinator together, spawns one handler task per connection and
runs the operator console on the process's own stdin/stdout.
"""

import argparse
import asyncio
import sys
from typing import Dict, Optional

from linechat.common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, LISTEN_BACKLOG, DEFAULT_PROMPT,
    DEFAULT_OPERATOR_NAME, SHUTDOWN_TIMEOUT, MAX_LINE_LENGTH, Roles
)
from linechat.common.console import close_stdin_reader, open_stdin_reader
from linechat.common.errors import BindError
from linechat.server.chat.broadcaster import Broadcaster
from linechat.server.chat.channel import ConsoleChannel, StreamChannel
from linechat.server.chat.connection_handler import ConnectionHandler, SessionState
from linechat.server.chat.registry import Session, UserRegistry
from linechat.server.commands.builtin import builtin_commands
from linechat.server.commands.dispatcher import CommandDispatcher
from linechat.server.control.acceptor import ConnectionAcceptor
from linechat.server.control.shutdown import ShutdownCoordinator
from linechat.server.utils.config import ServerConfig
from linechat.server.utils.logger import logger


class ChatServer:
    """Main server class that integrates all functionality."""

    def __init__(self, config: Optional[ServerConfig] = None,
                 console_reader: Optional[asyncio.StreamReader] = None, console_channel=None):
        self.config = config or ServerConfig()

        self.registry = UserRegistry()
        self.broadcaster = Broadcaster(self.config.delivery_timeout)
        self.dispatcher = CommandDispatcher(builtin_commands())
        self.acceptor = ConnectionAcceptor(
            self.config.host, self.config.port, self.config.backlog,
            self.handle_client, MAX_LINE_LENGTH
        )
        self.shutdown = ShutdownCoordinator(self)

        # Network sessions only; the console handler is tracked separately
        self.handlers: Dict[asyncio.Task, ConnectionHandler] = {}

        self.console_reader = console_reader
        self.console_channel = console_channel
        self.console_handler: Optional[ConnectionHandler] = None
        self.console_task: Optional[asyncio.Task] = None
        self._console_transport = None

    def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Spawn a handler for a freshly accepted connection."""
        if self.shutdown.started:
            writer.close()
            return

        addr = writer.get_extra_info('peername')
        logger.log_connection(addr)
        self.spawn(ConnectionHandler(self, reader, StreamChannel(writer), addr))

    def spawn(self, handler: ConnectionHandler) -> asyncio.Task:
        task = asyncio.create_task(handler.run())
        handler.task = task
        self.handlers[task] = handler
        task.add_done_callback(self._handler_done)
        return task

    def _handler_done(self, task: asyncio.Task):
        self.handlers.pop(task, None)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Session task failed with exception: {task.exception()}")

    async def disconnect(self, session: Session) -> bool:
        """Cancel the handler owning ``session`` and wait for its teardown."""
        for task, handler in list(self.handlers.items()):
            if handler.session is session:
                # Already on its way out: let the teardown finish on its own
                if handler.state not in (SessionState.DISCONNECTING, SessionState.CLOSED):
                    task.cancel()
                await asyncio.wait([task], timeout=self.config.shutdown_timeout)
                return True
        return False

    async def start(self):
        """Bind the listener and attach the operator console."""
        asyncio.get_running_loop().set_exception_handler(self._handle_loop_exception)
        # Operator first, so its name is taken before any client can ask for it
        await self.start_console()
        try:
            await self.acceptor.start()
        except BindError:
            await self.stop_console()
            raise

    async def serve(self) -> int:
        """Run until the operator shuts the server down. Returns the exit status."""
        await self.start()
        return await self.shutdown.wait()

    async def start_console(self):
        """Register the operator session and start its handler."""
        if self.console_reader is None:
            if not self.config.console:
                logger.info("Running without an operator console")
                return
            try:
                self.console_reader, self._console_transport = await open_stdin_reader()
            except (ValueError, OSError) as e:
                logger.warning(f"Operator console unavailable: {e}")
                return

        channel = self.console_channel or ConsoleChannel()
        session = await self.registry.insert(
            self.config.operator_name, Roles.ADMIN, channel, console=True
        )

        self.console_handler = ConnectionHandler(self, self.console_reader, channel, session=session)
        self.console_task = asyncio.create_task(self.console_handler.run())
        self.console_handler.task = self.console_task
        logger.info(f"Operator console attached as '{session.name}'")

    async def stop_console(self):
        if self.console_task is not None and not self.console_task.done():
            self.console_task.cancel()
            await asyncio.wait([self.console_task], timeout=self.config.shutdown_timeout)
        if self._console_transport is not None:
            transport, self._console_transport = self._console_transport, None
            try:
                close_stdin_reader(transport)
            except (ValueError, OSError) as e:
                logger.warning(f"Could not restore blocking mode on stdin: {e}")

    def _handle_loop_exception(self, loop, context):
        # Transient accept() failures inside asyncio's server end up here
        message = context.get('message', 'unhandled error')
        exception = context.get('exception')
        if exception is not None:
            logger.error(f"Event loop: {message}: {exception!r}")
        else:
            logger.error(f"Event loop: {message}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='linechat server')
    parser.add_argument('--host', type=str, default=DEFAULT_SERVER_HOST,
                        help=f'Host to bind to (default: {DEFAULT_SERVER_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'TCP port to listen on (default: {DEFAULT_PORT})')
    parser.add_argument('--backlog', type=int, default=LISTEN_BACKLOG,
                        help=f'Pending connection queue depth (default: {LISTEN_BACKLOG})')
    parser.add_argument('--prompt', type=str, default=DEFAULT_PROMPT,
                        help=f'Prompt sent after each processed line (default: {DEFAULT_PROMPT!r})')
    parser.add_argument('--operator-name', type=str, default=DEFAULT_OPERATOR_NAME,
                        help=f'Display name of the operator console (default: {DEFAULT_OPERATOR_NAME})')
    parser.add_argument('--shutdown-timeout', type=float, default=SHUTDOWN_TIMEOUT,
                        help=f'Seconds to wait for sessions on shutdown (default: {SHUTDOWN_TIMEOUT})')
    parser.add_argument('--no-color', action='store_true',
                        help='Disable ANSI colors in messages')
    parser.add_argument('--no-console', action='store_true',
                        help='Do not attach the operator console to stdin/stdout')
    parser.add_argument('--log-level', type=str, default='info',
                        choices=['debug', 'info', 'warning', 'error'],
                        help='Logging level (default: info)')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not 0 <= args.port <= 65535:
        parser.error(f"port must be between 0 and 65535, got {args.port}")
    if not args.operator_name.strip():
        parser.error("operator name cannot be empty")

    config = ServerConfig.from_args(args)
    logger.set_level(config.log_level)

    server = ChatServer(config)
    try:
        return asyncio.run(server.serve())
    except BindError as e:
        logger.error(f"Server failed to start: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Server interrupted, shutting down...")
        return 0


if __name__ == "__main__":
    sys.exit(main())
