#!/usr/bin/env python3
"""
linechat server - entry point.

Usage:
    python main_server.py

Optional arguments:
    --host HOST               Bind address (default: 0.0.0.0)
    --port PORT               TCP port (default: 6788)
    --backlog N               Pending connection queue depth (default: 5)
    --prompt TEXT             Prompt sent after each processed line (default: '> ')
    --operator-name NAME      Operator console display name (default: admin)
    --shutdown-timeout SECS   Wait for sessions on shutdown (default: 5.0)
    --no-color                Plain text messages
    --no-console              Run without the operator console
    --log-level LEVEL         debug, info, warning or error (default: info)

Type /quit on the server console to shut the server down.
"""

import sys

from linechat.server.main_server import main

if __name__ == "__main__":
    sys.exit(main())
