"""
Server package for linechat.

This package contains all server-side functionality including:
- Session handling and the login handshake
- The shared user registry and broadcast delivery
- Slash command dispatch
- Connection acceptance and graceful shutdown
- Configuration and utilities
"""
