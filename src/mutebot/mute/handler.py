"""The /mute command: mute the configured target, then lift it after a delay."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import asyncio
import logging
import math

import discord

from mutebot.config.settings import DEFAULT_MUTE_DURATION_SECONDS
from mutebot.discord.gateway import GuildGateway, InteractionContext, InteractionResponder
from mutebot.errors import MemberLookupError, RoleMutationError, VoiceMuteError
from mutebot.mute.scheduler import Clock, UnmuteScheduler, utc_now


ALREADY_MUTED_MESSAGE = "Already muted"
MUTE_FINISHED_MESSAGE = "Mute is finished"

MUTED = "muted"
ALREADY_MUTED = "already_muted"
LOOKUP_FAILED = "lookup_failed"
ROLE_FAILED = "role_failed"
SHUTTING_DOWN = "shutting_down"

UNMUTE_FINISHED = "finished"
UNMUTE_ROLE_REMOVE_FAILED = "role_remove_failed"


@dataclass(frozen=True)
class MuteResult:
    status: str
    end: Optional[datetime] = None


def relative_timestamp(moment: datetime) -> str:
    """Render a Discord relative time token such as ``<t:1700000000:R>``."""
    return discord.utils.format_dt(moment, style="R")


class MuteCommandHandler:
    """Mutes one fixed member for a fixed duration per invocation.

    Check-and-mute runs under a lock keyed by ``(guild_id, user_id)`` and a
    target with an unmute already pending counts as muted, so back-to-back
    invocations schedule exactly one unmute.
    """

    def __init__(
        self,
        *,
        gateway: GuildGateway,
        scheduler: UnmuteScheduler,
        target_user_id: int,
        mute_role_id: int,
        duration_seconds: float = DEFAULT_MUTE_DURATION_SECONDS,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not math.isfinite(duration_seconds) or duration_seconds <= 0:
            raise ValueError("duration_seconds must be a finite number > 0.")

        self._gateway = gateway
        self._scheduler = scheduler
        self._target_user_id = target_user_id
        self._mute_role_id = mute_role_id
        self._duration = timedelta(seconds=duration_seconds)
        self._clock = clock or utc_now
        self._logger = logger or logging.getLogger("mutebot.mute.handler")
        self._locks: dict[tuple[int, int], asyncio.Lock] = {}

    async def handle(self, context: InteractionContext) -> MuteResult:
        guild_id = context.guild_id
        user_id = self._target_user_id
        self._logger.info(
            "mute_requested interaction_id=%s guild_id=%s invoker_id=%s target_id=%s",
            context.interaction_id,
            guild_id,
            context.invoker_id,
            user_id,
        )

        if guild_id is None:
            self._logger.error(
                "failed to handle interaction: interaction_id=%s has no guild",
                context.interaction_id,
            )
            return MuteResult(status=LOOKUP_FAILED)

        key = (guild_id, user_id)
        async with self._lock_for(key):
            try:
                role_ids = await self._gateway.fetch_member_role_ids(guild_id, user_id)
            except MemberLookupError as exc:
                self._logger.error("failed to handle interaction: %s", exc)
                return MuteResult(status=LOOKUP_FAILED)

            if self._mute_role_id in role_ids or self._scheduler.is_pending(key):
                await context.responder.respond(ALREADY_MUTED_MESSAGE)
                self._logger.info("mute_skipped reason=already_muted guild_id=%s", guild_id)
                return MuteResult(status=ALREADY_MUTED)

            # Nothing would lift a mute applied after the scheduler stopped.
            if not self._scheduler.accepting:
                self._logger.warning("mute_skipped reason=shutting_down guild_id=%s", guild_id)
                return MuteResult(status=SHUTTING_DOWN)

            try:
                await self._gateway.add_role(guild_id, user_id, self._mute_role_id)
            except RoleMutationError as exc:
                self._logger.error("failed to handle interaction: %s", exc)
                return MuteResult(status=ROLE_FAILED)

            await self._set_voice_mute(guild_id, True)

            end = self._clock() + self._duration
            try:
                self._scheduler.schedule(
                    key,
                    end,
                    lambda: self._unmute(guild_id, context.responder),
                )
            except RuntimeError as exc:
                self._logger.warning(
                    "mute_reverted reason=shutting_down guild_id=%s error=%s",
                    guild_id,
                    exc,
                )
                await self._unmute(guild_id, None)
                return MuteResult(status=SHUTTING_DOWN)
            self._logger.info(
                "mute_applied guild_id=%s user_id=%s end=%s",
                guild_id,
                user_id,
                end.isoformat(),
            )

            await context.responder.respond(relative_timestamp(end))
            return MuteResult(status=MUTED, end=end)

    async def _unmute(self, guild_id: int, responder: Optional[InteractionResponder]) -> str:
        user_id = self._target_user_id
        await self._set_voice_mute(guild_id, False)

        try:
            await self._gateway.remove_role(guild_id, user_id, self._mute_role_id)
        except RoleMutationError as exc:
            self._logger.error("failed to unmute: %s", exc)
            return UNMUTE_ROLE_REMOVE_FAILED

        self._logger.info("mute_finished guild_id=%s user_id=%s", guild_id, user_id)
        if responder is None:
            return UNMUTE_FINISHED
        try:
            await responder.edit_response(MUTE_FINISHED_MESSAGE)
        except Exception:
            self._logger.exception("failed to edit message")
        return UNMUTE_FINISHED

    async def _set_voice_mute(self, guild_id: int, muted: bool) -> bool:
        try:
            await self._gateway.set_voice_mute(guild_id, self._target_user_id, muted)
        except VoiceMuteError as exc:
            # Members outside a voice channel cannot be server-muted.
            self._logger.warning("voice_mute_failed muted=%s error=%s", muted, exc)
            return False
        return True

    def _lock_for(self, key: tuple[int, int]) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock
