#!/usr/bin/env python3
"""
linechat client - main module.

Connects to a linechat server, forwards stdin lines and prints everything the
server sends. Any plain TCP line client (telnet, nc) works as well.
"""

import argparse
import asyncio
import sys
from typing import Optional

from linechat.client.chat.chat_client import ChatClient
from linechat.common.console import close_stdin_reader, open_stdin_reader
from linechat.common.constants import DEFAULT_HOST, DEFAULT_PORT
from linechat.common.protocol_definitions import decode_line

READ_CHUNK = 4096


class LineChatClient:
    """Interactive client for the line protocol."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        self.host = host
        self.port = port
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.chat_client = ChatClient()
        self.running = False

    async def connect(self, retry_count: int = 3, base_delay: float = 1.0) -> bool:
        """Establish connection to the server with retry and exponential backoff."""
        for attempt in range(1, retry_count + 1):
            try:
                self.reader, self.writer = await asyncio.open_connection(self.host, self.port)
                self.chat_client.set_writer(self.writer)
                self.running = True
                return True
            except OSError as e:
                print(f"[ERROR] Could not connect to {self.host}:{self.port}: {e}", file=sys.stderr)
                if attempt < retry_count:
                    delay = base_delay * (2 ** (attempt - 1))
                    print(f"[INFO] Retrying in {delay}s (attempt {attempt}/{retry_count})...", file=sys.stderr)
                    await asyncio.sleep(delay)
        return False

    async def listen_for_messages(self):
        """Print server output until the server closes the connection."""
        try:
            while self.running:
                data = await self.reader.read(READ_CHUNK)
                if not data:
                    break
                self.chat_client.handle_data(data)
        except (ConnectionError, OSError) as e:
            print(f"\n[ERROR] Connection lost: {e}", file=sys.stderr)
        finally:
            self.chat_client.finish()
            self.running = False

    async def forward_input(self, input_reader: asyncio.StreamReader):
        """Send stdin lines; on end of input half-close so the server logs us out."""
        while self.running:
            data = await input_reader.readline()
            if not data:
                break
            if not await self.chat_client.send_line(decode_line(data)):
                break

        if self.writer.can_write_eof() and not self.writer.is_closing():
            self.writer.write_eof()

    async def run(self, input_reader: Optional[asyncio.StreamReader] = None) -> int:
        """Main client loop. Returns the process exit status."""
        if not await self.connect():
            return 1

        transport = None
        if input_reader is None:
            input_reader, transport = await open_stdin_reader()

        listener_task = asyncio.create_task(self.listen_for_messages())
        input_task = asyncio.create_task(self.forward_input(input_reader))
        try:
            # Keep listening after stdin ends; the server closes the connection
            await listener_task
        finally:
            input_task.cancel()
            await asyncio.gather(input_task, return_exceptions=True)
            if transport is not None:
                try:
                    close_stdin_reader(transport)
                except (ValueError, OSError) as e:
                    print(f"[WARN] Could not restore blocking mode on stdin: {e}", file=sys.stderr)
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            print("\n[INFO] Disconnected from server", file=sys.stderr)
        return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='linechat client')
    parser.add_argument('--host', type=str, default=DEFAULT_HOST,
                        help=f'Server host (default: {DEFAULT_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'Server port (default: {DEFAULT_PORT})')
    args = parser.parse_args(argv)

    client = LineChatClient(args.host, args.port)
    try:
        return asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\n[INFO] Client terminated", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
