"""Platform calls used by the mute flow, backed by discord.py."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol
import logging

import discord

from mutebot.errors import MemberLookupError, RoleMutationError, VoiceMuteError


class GuildGateway(Protocol):
    """Member mutations the mute flow depends on."""

    async def fetch_member_role_ids(self, guild_id: int, user_id: int) -> frozenset[int]:
        ...

    async def add_role(self, guild_id: int, user_id: int, role_id: int) -> None:
        ...

    async def remove_role(self, guild_id: int, user_id: int, role_id: int) -> None:
        ...

    async def set_voice_mute(self, guild_id: int, user_id: int, muted: bool) -> None:
        ...


class InteractionResponder(Protocol):
    """Reply channel of a single interaction."""

    async def respond(self, content: str) -> None:
        ...

    async def edit_response(self, content: str) -> None:
        ...


@dataclass(frozen=True)
class InteractionContext:
    """Adapter from discord.Interaction to what the handler needs."""

    interaction_id: int
    guild_id: Optional[int]
    invoker_id: Optional[int]
    responder: InteractionResponder


class DiscordInteractionResponder:
    """Responds to and edits a discord.py interaction."""

    def __init__(self, interaction: discord.Interaction) -> None:
        self._interaction = interaction

    async def respond(self, content: str) -> None:
        await self._interaction.response.send_message(content)

    async def edit_response(self, content: str) -> None:
        await self._interaction.edit_original_response(content=content)


def interaction_context(interaction: discord.Interaction) -> InteractionContext:
    return InteractionContext(
        interaction_id=interaction.id,
        guild_id=interaction.guild_id,
        invoker_id=interaction.user.id if interaction.user else None,
        responder=DiscordInteractionResponder(interaction),
    )


class DiscordGuildGateway:
    """Guild member operations over a connected discord.Client."""

    def __init__(
        self,
        client: discord.Client,
        *,
        audit_reason: str = "mute command",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._audit_reason = audit_reason
        self._logger = logger or logging.getLogger("mutebot.discord.gateway")

    async def fetch_member_role_ids(self, guild_id: int, user_id: int) -> frozenset[int]:
        try:
            guild = await self._guild(guild_id)
            # Always hit the API so the role check does not rely on a stale cache.
            member = await guild.fetch_member(user_id)
        except discord.HTTPException as exc:
            raise MemberLookupError(
                f"Member {user_id} not available in guild {guild_id}: {exc}"
            ) from exc
        return frozenset(role.id for role in member.roles)

    async def add_role(self, guild_id: int, user_id: int, role_id: int) -> None:
        try:
            member = await self._member(guild_id, user_id)
            await member.add_roles(discord.Object(id=role_id), reason=self._audit_reason)
        except discord.HTTPException as exc:
            raise RoleMutationError(
                f"Adding role {role_id} to member {user_id} failed: {exc}"
            ) from exc

    async def remove_role(self, guild_id: int, user_id: int, role_id: int) -> None:
        try:
            member = await self._member(guild_id, user_id)
            await member.remove_roles(discord.Object(id=role_id), reason=self._audit_reason)
        except discord.HTTPException as exc:
            raise RoleMutationError(
                f"Removing role {role_id} from member {user_id} failed: {exc}"
            ) from exc

    async def set_voice_mute(self, guild_id: int, user_id: int, muted: bool) -> None:
        try:
            member = await self._member(guild_id, user_id)
            await member.edit(mute=muted, reason=self._audit_reason)
        except discord.HTTPException as exc:
            raise VoiceMuteError(
                f"Setting voice mute={muted} on member {user_id} failed: {exc}"
            ) from exc

    async def _guild(self, guild_id: int) -> discord.Guild:
        guild = self._client.get_guild(guild_id)
        if guild is None:
            self._logger.debug("guild_cache_miss guild_id=%s", guild_id)
            guild = await self._client.fetch_guild(guild_id)
        return guild

    async def _member(self, guild_id: int, user_id: int) -> discord.Member:
        guild = await self._guild(guild_id)
        member = guild.get_member(user_id)
        if member is None:
            member = await guild.fetch_member(user_id)
        return member
