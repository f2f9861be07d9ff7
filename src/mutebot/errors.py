from __future__ import annotations


class MuteBotError(Exception):
    """Base error for bot and platform failures."""


class BotStartupError(MuteBotError):
    """Raised when login or the gateway handshake fails."""


class CommandRegistrationError(MuteBotError):
    """Raised when the platform rejects the command definitions."""


class MemberLookupError(MuteBotError):
    """Raised when the target member cannot be retrieved."""


class RoleMutationError(MuteBotError):
    """Raised when adding or removing the mute role is denied."""


class VoiceMuteError(MuteBotError):
    """Raised when the server voice mute flag cannot be changed."""
