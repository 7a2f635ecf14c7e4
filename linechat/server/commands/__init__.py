"""
Command module for server-side slash commands.

Handles:
- The ordered command table and prefix resolution
- Admin-only gating
- Built-in commands
"""
