"""Factory for wiring up the complete mutebot runtime."""

from __future__ import annotations

from typing import Optional
import logging

from mutebot.config.settings import AppSettings
from mutebot.discord.client import MuteBotService
from mutebot.discord.gateway import DiscordGuildGateway
from mutebot.mute.handler import MuteCommandHandler
from mutebot.mute.scheduler import UnmuteScheduler
from mutebot.runtime.app import RuntimeService


def create_services(
    settings: AppSettings,
    *,
    logger: Optional[logging.Logger] = None,
) -> list[RuntimeService]:
    """Create the bot service and unmute scheduler in start order.

    The runtime stops services in reverse, so pending unmutes are released
    while the connection is still open.
    """

    _logger = logger or logging.getLogger("mutebot.factory")

    bot_service = MuteBotService(
        bot_token=settings.bot.bot_token,
        application_id=settings.bot.application_id,
        guild_id=settings.bot.guild_id,
        logger=_logger,
    )
    scheduler = UnmuteScheduler(logger=_logger)
    handler = MuteCommandHandler(
        gateway=DiscordGuildGateway(bot_service.client, logger=_logger),
        scheduler=scheduler,
        target_user_id=settings.bot.target_user_id,
        mute_role_id=settings.bot.mute_role_id,
        duration_seconds=settings.runtime.mute_duration_seconds,
        logger=_logger,
    )
    bot_service.attach_interaction_handler(handler)
    _logger.info(
        "Mute command wired target_user_id=%s mute_role_id=%s duration_seconds=%s",
        settings.bot.target_user_id,
        settings.bot.mute_role_id,
        settings.runtime.mute_duration_seconds,
    )

    return [bot_service, scheduler]
