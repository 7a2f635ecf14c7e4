"""
Shared constants for the linechat server and client.

This module contains all constants used across client and server components.
"""

# Network Configuration
DEFAULT_HOST = 'localhost'
DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_PORT = 6788
LISTEN_BACKLOG = 5

# Wire protocol
ENCODING = 'utf-8'
LINE_TERMINATOR = '\n'
COMMAND_PREFIX = '/'
DEFAULT_PROMPT = '> '
MAX_LINE_LENGTH = 64 * 1024  # StreamReader limit

# Sessions
DEFAULT_OPERATOR_NAME = 'admin'

# Timeouts
SHUTDOWN_TIMEOUT = 5.0  # seconds to wait for handlers before aborting them
DELIVERY_TIMEOUT = 10.0  # seconds per recipient for one broadcast write

# Logging
LOGGER_NAME = 'linechat_server'
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


# Roles
class Roles:
    NORMAL = 'normal'
    ADMIN = 'admin'


# ANSI styling
class Styles:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    MAGENTA = '\033[95m'
    CYAN = '\033[96m'
