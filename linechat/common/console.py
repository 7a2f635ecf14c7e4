"""
Console input helpers.

Reading stdin through the event loop keeps the read cancellable, which a
thread blocked in ``sys.stdin.readline`` is not.
"""

import asyncio
import os
import sys

from linechat.common.constants import MAX_LINE_LENGTH


async def open_stdin_reader(limit: int = MAX_LINE_LENGTH):
    """Attach a StreamReader to stdin.

    Returns ``(reader, transport)``; release the transport with
    :func:`close_stdin_reader`. Raises ValueError or OSError when stdin is not
    a pipe, socket or terminal.
    """
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    protocol = asyncio.StreamReaderProtocol(reader)

    # Closing the transport closes this duplicate, not fd 0
    pipe = os.fdopen(os.dup(sys.stdin.fileno()), 'rb', buffering=0)
    try:
        transport, _ = await loop.connect_read_pipe(lambda: protocol, pipe)
    except (ValueError, OSError):
        pipe.close()
        raise
    return reader, transport


def close_stdin_reader(transport):
    """Close the stdin transport and put the descriptor back in blocking mode.

    The event loop leaves the descriptor non-blocking, and on a terminal that
    flag is shared with stdout. Raises OSError or ValueError if the mode
    cannot be restored; the transport is closed either way.
    """
    pipe = transport.get_extra_info('pipe')
    try:
        if pipe is not None and not pipe.closed:
            os.set_blocking(pipe.fileno(), True)
    finally:
        transport.close()
