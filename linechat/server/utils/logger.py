"""
Server logging module.

This module handles server-side logging functionality.
"""

import logging

from linechat.common.constants import LOGGER_NAME, LOG_FORMAT, LOG_DATE_FORMAT


class ServerLogger:
    """Server logging class."""

    def __init__(self, log_level: int = logging.INFO):
        # Set up main logger
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        # Console handler goes to stderr; stdout belongs to the operator console
        self.console_handler = logging.StreamHandler()
        self.console_handler.setLevel(log_level)

        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        self.console_handler.setFormatter(formatter)

        self.logger.addHandler(self.console_handler)

    def set_level(self, log_level: int):
        """Change the level of the logger and its console handler."""
        self.logger.setLevel(log_level)
        self.console_handler.setLevel(log_level)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, addr: tuple):
        """Log client connection."""
        self.info(f"New connection from {addr}")

    def log_login(self, username: str, addr: tuple):
        """Log user login."""
        self.info(f"User '{username}' logged in from {addr}")

    def log_disconnect(self, username: str, addr: tuple):
        """Log user disconnect."""
        self.info(f"User '{username}' ({addr}) disconnected")

    def log_chat(self, username: str, message: str):
        """Log chat message."""
        self.debug(f"Chat from {username}: {message}")

    def log_command(self, username: str, command: str, argument: str):
        """Log command invocation."""
        self.debug(f"Command from {username}: /{command} {argument}".rstrip())

    def log_error(self, operation: str, error: BaseException):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")


# Global logger instance
logger = ServerLogger()
