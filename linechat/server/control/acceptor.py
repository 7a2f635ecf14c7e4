"""
Connection acceptor module.

Listens on the configured address and hands every accepted connection to a
callback that spawns its handler task. The callback is a plain function so the
accept loop never waits on session work.
"""

import asyncio
from typing import Callable, List, Optional

from linechat.common.errors import BindError
from linechat.server.utils.logger import logger


ConnectionCallback = Callable[[asyncio.StreamReader, asyncio.StreamWriter], None]


class ConnectionAcceptor:
    """Owns the listening socket."""

    def __init__(self, host: str, port: int, backlog: int, on_connection: ConnectionCallback,
                 line_limit: Optional[int] = None):
        self.host = host
        self.port = port
        self.backlog = backlog
        self.on_connection = on_connection
        self.line_limit = line_limit
        self.server: Optional[asyncio.AbstractServer] = None

    async def start(self):
        """Bind and start listening. Raises BindError on failure."""
        kwargs = {'backlog': self.backlog, 'reuse_address': True}
        if self.line_limit:
            kwargs['limit'] = self.line_limit

        try:
            self.server = await asyncio.start_server(self._accept, self.host, self.port, **kwargs)
        except OSError as e:
            raise BindError(self.host, self.port, e) from e

        logger.info(f"Server listening on {', '.join(str(addr) for addr in self.addresses)}")

    @property
    def accepting(self) -> bool:
        return self.server is not None and self.server.is_serving()

    @property
    def addresses(self) -> List[tuple]:
        if self.server is None:
            return []
        return [sock.getsockname() for sock in self.server.sockets]

    def _accept(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        if not self.accepting:
            writer.close()
            return

        try:
            self.on_connection(reader, writer)
        except Exception as e:
            logger.log_error(f"accepting connection from {writer.get_extra_info('peername')}", e)
            writer.close()

    def stop(self):
        """Stop admitting connections. Established connections are untouched."""
        if self.server is not None and self.server.is_serving():
            self.server.close()
            logger.info("Stopped accepting connections")

    async def wait_closed(self, timeout: float):
        if self.server is None:
            return
        try:
            await asyncio.wait_for(self.server.wait_closed(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Listener did not close within {timeout}s")
