"""
Chat client module.

This module handles client-side messaging: sending lines and printing what
the server sends back, prompts included.
"""

import asyncio
import codecs
import sys
from typing import Optional, TextIO

from linechat.common.constants import ENCODING
from linechat.common.protocol_definitions import encode_line


class ChatClient:
    """Client-side chat functionality."""

    def __init__(self, writer: Optional[asyncio.StreamWriter] = None, output: Optional[TextIO] = None):
        self.writer = writer
        self.output = output or sys.stdout
        # Server data arrives in arbitrary chunks; keep split UTF-8 sequences intact
        self.decoder = codecs.getincrementaldecoder(ENCODING)(errors='replace')

    def set_writer(self, writer: asyncio.StreamWriter):
        """Set the writer for sending lines."""
        self.writer = writer

    async def send_line(self, text: str) -> bool:
        """Send one line to the server."""
        if not self.writer:
            print("[ERROR] Not connected to server", file=sys.stderr)
            return False

        try:
            self.writer.write(encode_line(text))
            await self.writer.drain()
            return True
        except (ConnectionError, OSError) as e:
            print(f"[ERROR] Failed to send line: {e}", file=sys.stderr)
            return False

    def handle_data(self, data: bytes):
        """Print received server output as-is; prompts carry no newline."""
        text = self.decoder.decode(data)
        if text:
            self.output.write(text)
            self.output.flush()

    def finish(self):
        """Flush whatever the decoder still holds."""
        text = self.decoder.decode(b'', final=True)
        if text:
            self.output.write(text)
            self.output.flush()
