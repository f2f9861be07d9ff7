from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
import sys
import unittest

import discord

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from mutebot.discord.gateway import DiscordGuildGateway, interaction_context
from mutebot.errors import MemberLookupError, RoleMutationError, VoiceMuteError


def _forbidden() -> discord.Forbidden:
    return discord.Forbidden(SimpleNamespace(status=403, reason="Forbidden"), "Missing Permissions")


def _not_found() -> discord.NotFound:
    return discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown Member")


class _Member:
    def __init__(self, role_ids) -> None:
        self.roles = [SimpleNamespace(id=role_id) for role_id in role_ids]
        self.added: list[tuple[int, str]] = []
        self.removed: list[tuple[int, str]] = []
        self.edits: list[dict] = []
        self.error: Exception | None = None

    async def add_roles(self, role, *, reason=None) -> None:
        if self.error is not None:
            raise self.error
        self.added.append((role.id, reason))

    async def remove_roles(self, role, *, reason=None) -> None:
        if self.error is not None:
            raise self.error
        self.removed.append((role.id, reason))

    async def edit(self, **kwargs) -> None:
        if self.error is not None:
            raise self.error
        self.edits.append(kwargs)


class _Guild:
    def __init__(self, member: _Member, *, cached: bool = True) -> None:
        self._member = member
        self._cached = cached
        self.fetches = 0
        self.fetch_error: Exception | None = None

    def get_member(self, _user_id: int):
        return self._member if self._cached else None

    async def fetch_member(self, _user_id: int):
        self.fetches += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self._member


class _Client:
    def __init__(self, guild: _Guild, *, cached: bool = True) -> None:
        self._guild = guild
        self._cached = cached
        self.guild_fetches = 0

    def get_guild(self, _guild_id: int):
        return self._guild if self._cached else None

    async def fetch_guild(self, _guild_id: int):
        self.guild_fetches += 1
        return self._guild


class DiscordGuildGatewayTests(unittest.IsolatedAsyncioTestCase):
    async def test_fetch_member_role_ids_always_queries_api(self) -> None:
        guild = _Guild(_Member([1, 2]))
        gateway = DiscordGuildGateway(_Client(guild))

        role_ids = await gateway.fetch_member_role_ids(10, 20)

        self.assertEqual(role_ids, frozenset({1, 2}))
        self.assertEqual(guild.fetches, 1)

    async def test_guild_cache_miss_falls_back_to_fetch(self) -> None:
        client = _Client(_Guild(_Member([])), cached=False)
        gateway = DiscordGuildGateway(client)

        await gateway.fetch_member_role_ids(10, 20)

        self.assertEqual(client.guild_fetches, 1)

    async def test_lookup_http_error_becomes_member_lookup_error(self) -> None:
        guild = _Guild(_Member([]))
        guild.fetch_error = _not_found()
        gateway = DiscordGuildGateway(_Client(guild))

        with self.assertRaises(MemberLookupError):
            await gateway.fetch_member_role_ids(10, 20)

    async def test_add_and_remove_role_with_audit_reason(self) -> None:
        member = _Member([])
        gateway = DiscordGuildGateway(_Client(_Guild(member)), audit_reason="timeout")

        await gateway.add_role(10, 20, 30)
        await gateway.remove_role(10, 20, 30)

        self.assertEqual(member.added, [(30, "timeout")])
        self.assertEqual(member.removed, [(30, "timeout")])

    async def test_uncached_member_is_fetched_for_mutations(self) -> None:
        member = _Member([])
        guild = _Guild(member, cached=False)
        gateway = DiscordGuildGateway(_Client(guild))

        await gateway.add_role(10, 20, 30)

        self.assertEqual(guild.fetches, 1)
        self.assertEqual(member.added[0][0], 30)

    async def test_forbidden_role_change_becomes_role_mutation_error(self) -> None:
        member = _Member([])
        member.error = _forbidden()
        gateway = DiscordGuildGateway(_Client(_Guild(member)))

        with self.assertRaises(RoleMutationError):
            await gateway.add_role(10, 20, 30)
        with self.assertRaises(RoleMutationError):
            await gateway.remove_role(10, 20, 30)

    async def test_set_voice_mute_edits_member(self) -> None:
        member = _Member([])
        gateway = DiscordGuildGateway(_Client(_Guild(member)))

        await gateway.set_voice_mute(10, 20, True)
        await gateway.set_voice_mute(10, 20, False)

        self.assertEqual([edit["mute"] for edit in member.edits], [True, False])

    async def test_voice_mute_http_error_is_surfaced(self) -> None:
        member = _Member([])
        member.error = discord.HTTPException(
            SimpleNamespace(status=400, reason="Bad Request"),
            "Target user is not connected to voice.",
        )
        gateway = DiscordGuildGateway(_Client(_Guild(member)))

        with self.assertRaises(VoiceMuteError):
            await gateway.set_voice_mute(10, 20, True)


class _InteractionResponse:
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send_message(self, content: str) -> None:
        self.sent.append(content)


class _Interaction:
    def __init__(self) -> None:
        self.id = 5
        self.guild_id = 10
        self.user = SimpleNamespace(id=77)
        self.response = _InteractionResponse()
        self.edits: list[str] = []

    async def edit_original_response(self, *, content: str) -> None:
        self.edits.append(content)


class InteractionContextTests(unittest.IsolatedAsyncioTestCase):
    async def test_context_wraps_interaction(self) -> None:
        interaction = _Interaction()

        context = interaction_context(interaction)
        await context.responder.respond("<t:1:R>")
        await context.responder.edit_response("Mute is finished")

        self.assertEqual(context.interaction_id, 5)
        self.assertEqual(context.guild_id, 10)
        self.assertEqual(context.invoker_id, 77)
        self.assertEqual(interaction.response.sent, ["<t:1:R>"])
        self.assertEqual(interaction.edits, ["Mute is finished"])


if __name__ == "__main__":
    unittest.main()
