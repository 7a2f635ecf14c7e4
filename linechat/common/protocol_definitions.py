"""
Protocol definitions for the linechat server and client.

This module defines the line format used between client and server: how an
incoming line is split into a command token and argument, how lines are
encoded on the wire, and the text of every message the server sends.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from linechat.common.constants import COMMAND_PREFIX, ENCODING, LINE_TERMINATOR, Roles, Styles


@dataclass(frozen=True)
class ParsedLine:
    """One line of client input.

    ``command`` is None for chat lines; ``argument`` then holds the whole line.
    """
    command: Optional[str]
    argument: str

    @property
    def is_command(self) -> bool:
        return self.command is not None


def parse_line(line: str) -> ParsedLine:
    """Split a line into command token and argument.

    A line starting with the command prefix yields the text up to the first
    space as the token and everything after that space as the argument.
    Any other line is chat.
    """
    if not line.startswith(COMMAND_PREFIX):
        return ParsedLine(None, line)

    body = line[len(COMMAND_PREFIX):]
    token, _, argument = body.partition(' ')
    return ParsedLine(token, argument)


def decode_line(data: bytes) -> str:
    """Decode one received line, dropping the line terminator."""
    return data.decode(ENCODING, errors='replace').rstrip('\r\n')


def encode_line(text: str) -> bytes:
    """Encode one outgoing line including its terminator."""
    return (text + LINE_TERMINATOR).encode(ENCODING)


def colorize(text: str, style: str, color: bool = True) -> str:
    """Wrap text in an ANSI style when color output is enabled."""
    if not color:
        return text
    return f"{style}{text}{Styles.RESET}"


def role_style(role: str) -> str:
    """Get the name style for a session role."""
    if role == Roles.ADMIN:
        return Styles.BOLD + Styles.RED
    return Styles.CYAN


# Login handshake

def create_name_prompt() -> str:
    return "Please enter your name: "


def create_invalid_name_message() -> str:
    return "Names cannot be empty, please try again."


def create_name_taken_message(name: str) -> str:
    return f"The name '{name}' is already in use, please choose another."


def create_welcome_message(name: str, color: bool = True) -> str:
    """Create the one-time welcome message sent after login."""
    greeting = colorize(f"Welcome, {name}!", Styles.GREEN, color)
    return f"{greeting} Type {COMMAND_PREFIX}help for a list of commands."


# Notices

def create_connected_notice(name: str, color: bool = True) -> str:
    return colorize(f"* {name} has connected", Styles.YELLOW, color)


def create_disconnected_notice(name: str, color: bool = True) -> str:
    return colorize(f"* {name} has disconnected", Styles.YELLOW, color)


def create_shutdown_notice(color: bool = True) -> str:
    return colorize("* The server is shutting down. Goodbye!", Styles.BOLD + Styles.RED, color)


def create_kicked_notice(name: str, by: str, color: bool = True) -> str:
    return colorize(f"* {name} was kicked by {by}", Styles.YELLOW, color)


# Chat

def create_chat_line(name: str, role: str, text: str, color: bool = True) -> str:
    """Create a chat line tagged with the sender's name and role styling."""
    return f"[{colorize(name, role_style(role), color)}] {text}"


def create_emote_line(name: str, role: str, action: str, color: bool = True) -> str:
    return f"* {colorize(name, role_style(role), color)} {action}"


# Command replies

def create_not_recognized_message(token: str) -> str:
    """Create the uniform reply for unknown and disallowed commands."""
    return f"Command not recognized: {COMMAND_PREFIX}{token}. Type {COMMAND_PREFIX}help for a list of commands."


def create_who_message(names: Iterable[str]) -> str:
    """Create the active name listing: each name preceded by a tab."""
    return ''.join(f"\t{name}" for name in names)


def create_help_listing(entries: Iterable[tuple]) -> str:
    """Create the command listing from (name, help_text) pairs."""
    lines: List[str] = ["Available commands:"]
    for name, help_text in entries:
        lines.append(f"  {COMMAND_PREFIX}{name:<8} {help_text}")
    return '\n'.join(lines)


def create_command_help(name: str, help_text: str) -> str:
    return f"{COMMAND_PREFIX}{name}: {help_text}"


def create_goodbye_message() -> str:
    return "Goodbye!"


def create_usage_message(usage: str) -> str:
    return f"Usage: {COMMAND_PREFIX}{usage}"


def create_error_message(message: str) -> str:
    return f"Error: {message}"
