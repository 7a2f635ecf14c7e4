"""
Chat module for server-side session handling.

Handles:
- Per-connection session state machines
- The registry of active sessions
- Broadcast delivery
- Output channels for network clients and the operator console
"""
