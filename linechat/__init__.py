"""
linechat - multi-user line-oriented TCP chat server.

Packages:
- common: constants, errors and wire-protocol helpers shared by server and client
- server: session handling, registry, broadcast, commands and lifecycle control
- client: a small interactive line client
"""

__version__ = "1.0.0"
