"""
Built-in commands.

Every handler takes the argument string and an explicit CommandContext, and
returns an Outcome (None means CONTINUE).
"""

from typing import List

from linechat.common.constants import COMMAND_PREFIX
from linechat.common.protocol_definitions import (
    create_command_help, create_help_listing, create_not_recognized_message,
    create_who_message, create_goodbye_message, create_emote_line,
    create_kicked_notice, create_usage_message, create_error_message
)
from linechat.server.commands.dispatcher import Command, CommandContext, Outcome
from linechat.server.utils.logger import logger


async def cmd_help(argument: str, ctx: CommandContext):
    """List the commands visible to the caller, or show one command's help."""
    dispatcher = ctx.server.dispatcher
    token = argument.strip()
    if token.startswith(COMMAND_PREFIX):
        token = token[len(COMMAND_PREFIX):]

    if not token:
        entries = [(c.name, c.help_text) for c in dispatcher.visible_to(ctx.session)]
        await ctx.reply(create_help_listing(entries))
        return

    command = dispatcher.resolve(token)
    if command is None or (command.admin_only and not ctx.session.is_admin):
        await ctx.reply(create_not_recognized_message(token))
        return
    await ctx.reply(create_command_help(command.name, command.help_text))


async def cmd_who(argument: str, ctx: CommandContext):
    names = await ctx.server.registry.names()
    await ctx.reply(create_who_message(names))


async def cmd_quit(argument: str, ctx: CommandContext):
    # The operator's quit takes the whole server down; the shutdown
    # coordinator drives this handler too, so it does not log out here.
    if ctx.session.is_admin:
        await ctx.server.shutdown.initiate(ctx.session)
        return Outcome.CONTINUE

    await ctx.reply(create_goodbye_message())
    return Outcome.LOGOUT


async def cmd_me(argument: str, ctx: CommandContext):
    action = argument.strip()
    if not action:
        await ctx.reply(create_usage_message("me <action>"))
        return

    server = ctx.server
    line = create_emote_line(ctx.session.name, ctx.session.role, action, server.config.color)
    logger.log_chat(ctx.session.name, f"* {action}")
    await server.broadcaster.send(line, await server.registry.snapshot())


async def cmd_kick(argument: str, ctx: CommandContext):
    name = argument.strip()
    if not name:
        await ctx.reply(create_usage_message("kick <name>"))
        return

    server = ctx.server
    target = await server.registry.find_by_name(name)
    if target is None:
        await ctx.reply(create_error_message(f"no user named '{name}'"))
        return
    if target.console or target is ctx.session:
        await ctx.reply(create_error_message(f"'{name}' cannot be kicked"))
        return

    logger.info(f"'{ctx.session.name}' kicked '{target.name}'")
    await server.broadcaster.send(
        create_kicked_notice(target.name, ctx.session.name, server.config.color),
        await server.registry.snapshot()
    )
    await server.disconnect(target)


def builtin_commands() -> List[Command]:
    """The built-in command table, in resolution order."""
    return [
        Command('help', cmd_help, "List commands, or show help for one: /help [name]"),
        Command('who', cmd_who, "List the names of everyone connected"),
        Command('quit', cmd_quit, "Leave the chat (the operator shuts the server down)"),
        Command('me', cmd_me, "Send an action to everyone: /me <action>"),
        Command('kick', cmd_kick, "Disconnect a user: /kick <name>", admin_only=True),
    ]
