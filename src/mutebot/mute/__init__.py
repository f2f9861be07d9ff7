"""Mute flow: command handler and delayed unmute scheduling."""

from mutebot.mute.handler import (
    ALREADY_MUTED_MESSAGE,
    MUTE_FINISHED_MESSAGE,
    MuteCommandHandler,
    MuteResult,
    relative_timestamp,
)
from mutebot.mute.scheduler import UnmuteScheduler

__all__ = [
    "ALREADY_MUTED_MESSAGE",
    "MUTE_FINISHED_MESSAGE",
    "MuteCommandHandler",
    "MuteResult",
    "UnmuteScheduler",
    "relative_timestamp",
]
