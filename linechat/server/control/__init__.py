"""
Control module for server lifecycle.

Handles:
- Accepting inbound connections
- Coordinated shutdown of every session
"""
