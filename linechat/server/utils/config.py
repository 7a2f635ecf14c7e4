"""
Server configuration module.

This module handles server-side configuration settings.
"""

import logging

from linechat.common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, LISTEN_BACKLOG, DEFAULT_PROMPT,
    DEFAULT_OPERATOR_NAME, SHUTDOWN_TIMEOUT, DELIVERY_TIMEOUT
)


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 backlog: int = LISTEN_BACKLOG, prompt: str = DEFAULT_PROMPT,
                 operator_name: str = DEFAULT_OPERATOR_NAME):
        self.host = host
        self.port = port
        self.backlog = backlog

        # Session settings
        self.prompt = prompt
        self.operator_name = operator_name
        self.console = True  # attach the operator console to stdin/stdout
        self.color = True

        # Timeouts
        self.shutdown_timeout = SHUTDOWN_TIMEOUT
        self.delivery_timeout = DELIVERY_TIMEOUT

        # Logging configuration
        self.log_level = logging.INFO

    @classmethod
    def from_args(cls, args) -> 'ServerConfig':
        """Build a config from parsed command line arguments."""
        config = cls(args.host, args.port, args.backlog, args.prompt, args.operator_name)
        config.shutdown_timeout = args.shutdown_timeout
        config.color = not args.no_color
        config.console = not args.no_console
        config.log_level = getattr(logging, args.log_level.upper())
        return config

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port,
            'backlog': self.backlog
        }

    def get_session_settings(self):
        """Get session settings."""
        return {
            'prompt': self.prompt,
            'operator_name': self.operator_name,
            'console': self.console,
            'color': self.color
        }

    def get_timeouts(self):
        """Get shutdown and delivery timeouts."""
        return {
            'shutdown_timeout': self.shutdown_timeout,
            'delivery_timeout': self.delivery_timeout
        }
