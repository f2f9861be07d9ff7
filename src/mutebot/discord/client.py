"""Discord client service wrapping discord.py."""

from __future__ import annotations

from typing import Any, Optional, Protocol
import asyncio
import logging

import discord
from discord import app_commands

from mutebot.discord.commands import build_mute_command, install_commands, sync_commands
from mutebot.discord.gateway import InteractionContext, interaction_context
from mutebot.errors import BotStartupError


class InteractionHandler(Protocol):
    """Handler invoked for each /mute interaction."""

    async def handle(self, context: InteractionContext) -> Any:
        ...


class MuteBotService:
    """Owns the gateway connection and the /mute command registration."""

    def __init__(
        self,
        *,
        bot_token: str,
        application_id: int,
        guild_id: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._bot_token = bot_token
        self._application_id = application_id
        self._guild_id = guild_id
        self._logger = logger or logging.getLogger("mutebot.discord.client")

        intents = discord.Intents.default()
        self._client = discord.Client(intents=intents, application_id=application_id)
        self._tree = app_commands.CommandTree(self._client)
        self._handler: Optional[InteractionHandler] = None

        self._ready_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

        @self._client.event
        async def on_ready():
            await self._on_ready()

    @property
    def client(self) -> discord.Client:
        return self._client

    @property
    def tree(self) -> app_commands.CommandTree:
        return self._tree

    def attach_interaction_handler(self, handler: InteractionHandler) -> None:
        """Route every /mute invocation to ``handler``."""
        self._handler = handler
        install_commands(
            self._tree,
            build_mute_command(self._on_mute),
            guild_id=self._guild_id,
        )

    async def start(self) -> None:
        """Log in, open the gateway connection and register commands."""
        if self._handler is None:
            raise RuntimeError("attach_interaction_handler() must be called before start().")

        self._logger.info(
            "Starting bot application_id=%s guild_id=%s",
            self._application_id,
            self._guild_id,
        )
        try:
            await self._connect()
            await sync_commands(self._tree, guild_id=self._guild_id, logger=self._logger)
        except BaseException:
            await self.stop()
            raise

    async def stop(self) -> None:
        """Close the connection gracefully."""
        if not self._client.is_closed():
            await self._client.close()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception:
                self._logger.exception("Discord connection ended with an error")
            self._task = None

    async def _connect(self) -> None:
        try:
            await self._client.login(self._bot_token)
        except discord.LoginFailure as exc:
            raise BotStartupError(f"Authentication failed: {exc}") from exc
        except discord.HTTPException as exc:
            raise BotStartupError(f"Login request failed: {exc}") from exc

        self._task = asyncio.create_task(self._client.connect())
        ready_waiter = asyncio.create_task(self._ready_event.wait())
        done, _ = await asyncio.wait(
            {self._task, ready_waiter},
            return_when=asyncio.FIRST_COMPLETED,
        )
        if ready_waiter in done:
            return

        ready_waiter.cancel()
        task, self._task = self._task, None
        exc = task.exception() if not task.cancelled() else None
        raise BotStartupError(f"Gateway connection closed before ready: {exc!r}") from exc

    async def _on_ready(self) -> None:
        user = self._client.user
        self._logger.info(
            "Logged in username=%s discriminator=%s",
            user.name if user else None,
            user.discriminator if user else None,
        )
        self._ready_event.set()

    async def _on_mute(self, interaction: discord.Interaction) -> None:
        if self._handler is None:
            return
        try:
            await self._handler.handle(interaction_context(interaction))
        except Exception:
            self._logger.exception("failed to handle interaction")
