"""Discord-facing utilities."""

from mutebot.discord.client import InteractionHandler, MuteBotService
from mutebot.discord.commands import (
    MUTE_COMMAND_DESCRIPTION,
    MUTE_COMMAND_NAME,
    build_mute_command,
    install_commands,
    sync_commands,
)
from mutebot.discord.gateway import (
    DiscordGuildGateway,
    DiscordInteractionResponder,
    GuildGateway,
    InteractionContext,
    InteractionResponder,
    interaction_context,
)

__all__ = [
    "DiscordGuildGateway",
    "DiscordInteractionResponder",
    "GuildGateway",
    "InteractionContext",
    "InteractionHandler",
    "InteractionResponder",
    "MUTE_COMMAND_DESCRIPTION",
    "MUTE_COMMAND_NAME",
    "MuteBotService",
    "build_mute_command",
    "install_commands",
    "interaction_context",
    "sync_commands",
]
