"""
Chat module for client-side messaging functionality.

Handles:
- Sending lines to the server
- Printing server lines and prompts
"""
