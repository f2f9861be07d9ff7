"""Definition and registration of the single /mute slash command."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional
import logging

import discord
from discord import app_commands

from mutebot.errors import CommandRegistrationError


MUTE_COMMAND_NAME = "mute"
MUTE_COMMAND_DESCRIPTION = "Mute smallcap"

InteractionCallback = Callable[[discord.Interaction], Awaitable[None]]


def build_mute_command(on_invoke: InteractionCallback) -> app_commands.Command:
    """Build the parameterless /mute command bound to ``on_invoke``."""

    async def mute(interaction: discord.Interaction) -> None:
        await on_invoke(interaction)

    return app_commands.Command(
        name=MUTE_COMMAND_NAME,
        description=MUTE_COMMAND_DESCRIPTION,
        callback=mute,
    )


def command_scope(guild_id: Optional[int]) -> Optional[discord.Object]:
    return discord.Object(id=guild_id) if guild_id is not None else None


def install_commands(
    tree: app_commands.CommandTree,
    command: app_commands.Command,
    *,
    guild_id: Optional[int] = None,
) -> None:
    """Make ``command`` the only command in its scope."""
    scope = command_scope(guild_id)
    tree.clear_commands(guild=scope)
    tree.add_command(command, guild=scope)


async def sync_commands(
    tree: app_commands.CommandTree,
    *,
    guild_id: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
) -> list[app_commands.AppCommand]:
    """Bulk-overwrite the platform's command set with the tree's scope."""

    _logger = logger or logging.getLogger("mutebot.discord.commands")
    scope = command_scope(guild_id)
    if scope is not None:
        _logger.info("registering commands in guild guild_id=%s", guild_id)
    else:
        _logger.info("registering commands globally")

    try:
        registered = await tree.sync(guild=scope)
    except (discord.HTTPException, app_commands.MissingApplicationID) as exc:
        raise CommandRegistrationError(f"Command registration rejected: {exc}") from exc

    _logger.info(
        "commands_registered names=%s",
        [command.name for command in registered],
    )
    return registered
