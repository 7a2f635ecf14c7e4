#!/usr/bin/env python3
"""
linechat client - entry point.

Usage:
    python main_client.py [--host HOST] [--port PORT]
"""

import sys

from linechat.client.main_client import main

if __name__ == "__main__":
    sys.exit(main())
