"""
Test doubles and helpers shared by the test modules.
"""

import asyncio

from linechat.common.errors import DeliveryError
from linechat.server.main_server import ChatServer
from linechat.server.utils.config import ServerConfig


class RecordingChannel:
    """Output channel that records what it is sent."""

    def __init__(self, fail: bool = False, hang: bool = False, hang_on_close: bool = False):
        self.lines = []
        self.prompts = []
        self.closed = False
        self.aborted = False
        self.fail = fail
        self.hang = hang
        self.hang_on_close = hang_on_close

    async def send(self, text: str):
        if self.hang:
            await asyncio.Event().wait()
        if self.fail or self.closed:
            raise DeliveryError("recording channel unavailable")
        self.lines.append(text)

    async def send_prompt(self, prompt: str):
        if self.closed:
            raise DeliveryError("recording channel closed")
        self.prompts.append(prompt)

    async def close(self):
        if self.hang_on_close:
            await asyncio.Event().wait()
        self.closed = True

    def abort(self):
        self.aborted = True
        self.closed = True

    def text(self) -> str:
        return '\n'.join(self.lines)


def make_config(**overrides) -> ServerConfig:
    """Config for tests: loopback, ephemeral port, no colors, no stdin console."""
    config = ServerConfig(host='127.0.0.1', port=0)
    config.color = False
    config.console = False
    config.shutdown_timeout = 2.0
    config.delivery_timeout = 1.0
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def make_server(**overrides) -> ChatServer:
    return ChatServer(make_config(**overrides))


def make_reader(*lines: str, eof: bool = True) -> asyncio.StreamReader:
    """StreamReader pre-loaded with input lines."""
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data((line + '\n').encode('utf-8'))
    if eof:
        reader.feed_eof()
    return reader


async def wait_until(predicate, timeout: float = 2.0):
    """Poll ``predicate`` until it is true or fail after ``timeout`` seconds."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_poll(), timeout)


class TestClient:
    """Raw TCP client that buffers everything the server sends."""

    __test__ = False  # not a test case

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self.buffer = ''

    @classmethod
    async def connect(cls, port: int) -> 'TestClient':
        reader, writer = await asyncio.open_connection('127.0.0.1', port)
        return cls(reader, writer)

    async def send(self, line: str):
        self.writer.write((line + '\n').encode('utf-8'))
        await self.writer.drain()

    async def expect(self, text: str, timeout: float = 2.0) -> str:
        """Consume output up to and including ``text``; return what was consumed."""
        async def _read():
            while text not in self.buffer:
                data = await self.reader.read(4096)
                if not data:
                    raise AssertionError(f"connection closed waiting for {text!r}, got {self.buffer!r}")
                self.buffer += data.decode('utf-8')
            head, _, tail = self.buffer.partition(text)
            self.buffer = tail
            return head + text
        return await asyncio.wait_for(_read(), timeout)

    async def expect_closed(self, timeout: float = 2.0) -> str:
        """Read until the server closes the connection; return the remaining output."""
        async def _read():
            while True:
                data = await self.reader.read(4096)
                if not data:
                    return self.buffer
                self.buffer += data.decode('utf-8')
        return await asyncio.wait_for(_read(), timeout)

    async def login(self, name: str):
        await self.expect("Please enter your name: ")
        await self.send(name)
        await self.expect(f"Welcome, {name}!")

    async def close(self):
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass
