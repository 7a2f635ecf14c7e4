"""
Output channels.

A channel is the write side of one session: a TCP stream for network clients
or the process's stdout for the operator console. Both expose the same
coroutine interface so handlers and the broadcaster never care which one they
are writing to.
"""

import asyncio
import sys
from typing import Optional, TextIO

from linechat.common.errors import DeliveryError
from linechat.common.protocol_definitions import encode_line
from linechat.common.constants import ENCODING
from linechat.server.utils.logger import logger


class StreamChannel:
    """Output channel backed by an asyncio StreamWriter."""

    def __init__(self, writer: asyncio.StreamWriter):
        self.writer = writer
        self.closed = False
        self.lock = asyncio.Lock()  # one writer at a time per connection

    @property
    def peer(self):
        return self.writer.get_extra_info('peername')

    async def send(self, text: str):
        """Write one line and wait until it is flushed to the transport."""
        await self._write(encode_line(text))

    async def send_prompt(self, prompt: str):
        """Write the prompt without a line terminator."""
        if prompt:
            await self._write(prompt.encode(ENCODING))

    async def _write(self, data: bytes):
        if self.closed:
            raise DeliveryError(f"Channel to {self.peer} is closed")

        async with self.lock:
            try:
                self.writer.write(data)
                await self.writer.drain()
            except (ConnectionError, OSError) as e:
                raise DeliveryError(f"Write to {self.peer} failed: {e}") from e

    async def close(self):
        """Close the connection. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True

        try:
            self.writer.close()
            await self.writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Connection to {self.peer} closed with error: {e}")

    def abort(self):
        """Drop the connection immediately, discarding buffered data."""
        self.closed = True
        self.writer.transport.abort()


class ConsoleChannel:
    """Output channel for the operator, writing to the process's stdout."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        # stdout outlives the operator's input, so the console never closes
        self.closed = False

    @property
    def peer(self):
        return 'console'

    async def send(self, text: str):
        self._write(text + '\n')

    async def send_prompt(self, prompt: str):
        if prompt:
            self._write(prompt)

    def _write(self, text: str):
        try:
            self.stream.write(text)
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise DeliveryError(f"Console write failed: {e}") from e

    async def close(self):
        """Flush pending output. The operator keeps receiving chat afterwards."""
        try:
            self.stream.flush()
        except (OSError, ValueError) as e:
            logger.debug(f"Console flush failed: {e}")

    def abort(self):
        pass
