"""Typed settings loader for mutebot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple
import math
import os


_MISSING = object()
_VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

DEFAULT_MUTE_DURATION_SECONDS = 15.0


class SettingsError(ValueError):
    """Raised when settings cannot be loaded or validated."""


@dataclass(frozen=True)
class BotSettings:
    bot_token: str
    application_id: int
    target_user_id: int
    mute_role_id: int
    guild_id: Optional[int] = None

    def __post_init__(self) -> None:
        bot_token = self.bot_token.strip()
        if not bot_token:
            raise SettingsError("BOT_TOKEN cannot be empty.")

        for name, value in (
            ("APPLICATION_ID", self.application_id),
            ("TARGET_USER_ID", self.target_user_id),
            ("MUTE_ROLE", self.mute_role_id),
        ):
            if value <= 0:
                raise SettingsError(f"{name} must be a positive integer.")

        if self.guild_id is not None and self.guild_id <= 0:
            raise SettingsError("GUILD_ID must be a positive integer.")

        object.__setattr__(self, "bot_token", bot_token)

    @property
    def is_guild_scoped(self) -> bool:
        return self.guild_id is not None


@dataclass(frozen=True)
class RuntimeSettings:
    log_level: str = "INFO"
    mute_duration_seconds: float = DEFAULT_MUTE_DURATION_SECONDS

    def __post_init__(self) -> None:
        log_level = self.log_level.strip().upper()
        if log_level not in _VALID_LOG_LEVELS:
            raise SettingsError(
                "MUTEBOT_LOG_LEVEL must be one of: " + ", ".join(sorted(_VALID_LOG_LEVELS))
            )

        if not math.isfinite(self.mute_duration_seconds) or self.mute_duration_seconds <= 0:
            raise SettingsError("MUTEBOT_MUTE_DURATION_SECONDS must be a finite number > 0.")

        object.__setattr__(self, "log_level", log_level)


@dataclass(frozen=True)
class AppSettings:
    bot: BotSettings
    runtime: RuntimeSettings


def load_settings(environ: Optional[Mapping[str, str]] = None) -> AppSettings:
    """Load validated settings from the environment."""

    env = dict(environ) if environ is not None else dict(os.environ)

    bot = BotSettings(
        bot_token=_read_value(env, key="BOT_TOKEN", caster=_as_str),
        application_id=_read_value(env, key="APPLICATION_ID", caster=_as_snowflake),
        target_user_id=_read_value(env, key="TARGET_USER_ID", caster=_as_snowflake),
        mute_role_id=_read_value(env, key="MUTE_ROLE", caster=_as_snowflake),
        guild_id=_read_value(
            env,
            key="GUILD_ID",
            caster=_as_optional_snowflake,
            default=None,
        ),
    )

    runtime = RuntimeSettings(
        log_level=_read_value(
            env,
            key="MUTEBOT_LOG_LEVEL",
            caster=_as_str,
            default="INFO",
        ),
        mute_duration_seconds=_read_value(
            env,
            key="MUTEBOT_MUTE_DURATION_SECONDS",
            caster=_as_float,
            default=DEFAULT_MUTE_DURATION_SECONDS,
        ),
    )

    return AppSettings(bot=bot, runtime=runtime)


def settings_summary(settings: AppSettings) -> dict:
    """Render redacted settings for diagnostics."""

    return {
        "bot": {
            "bot_token": _redact(settings.bot.bot_token),
            "application_id": settings.bot.application_id,
            "guild_id": settings.bot.guild_id,
            "target_user_id": settings.bot.target_user_id,
            "mute_role_id": settings.bot.mute_role_id,
        },
        "runtime": {
            "log_level": settings.runtime.log_level,
            "mute_duration_seconds": settings.runtime.mute_duration_seconds,
        },
    }


def _redact(secret: str) -> str:
    if len(secret) <= 4:
        return "***"
    return "***" + secret[-4:]


def _read_value(
    environ: Mapping[str, str],
    *,
    key: str,
    caster: Callable[[Any], Any],
    default: Any = _MISSING,
) -> Any:
    raw_value, source = _resolve_raw_value(environ=environ, key=key, default=default)

    try:
        return caster(raw_value)
    except SettingsError as exc:
        raise SettingsError(f"Invalid value for '{key}' from {source}: {exc}") from exc
    except Exception as exc:
        raise SettingsError(
            f"Invalid value for '{key}' from {source}: {raw_value!r}"
        ) from exc


def _resolve_raw_value(
    *,
    environ: Mapping[str, str],
    key: str,
    default: Any,
) -> Tuple[Any, str]:
    env_value = environ.get(key)
    if env_value not in (None, ""):
        return env_value, "environment"

    if default is not _MISSING:
        return default, "default"

    raise SettingsError(f"Missing required setting '{key}'.")


def _as_str(value: Any) -> str:
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise SettingsError("Value cannot be empty.")
        return text

    raise SettingsError("Expected string value.")


def _as_snowflake(value: Any) -> int:
    if isinstance(value, bool):
        raise SettingsError("Boolean is not a valid id.")

    if isinstance(value, int):
        snowflake = value
    elif isinstance(value, str):
        text = value.strip()
        if not text.isdigit():
            raise SettingsError("Expected a numeric id.")
        snowflake = int(text)
    else:
        raise SettingsError("Expected a numeric id.")

    if snowflake <= 0:
        raise SettingsError("Id must be a positive integer.")
    return snowflake


def _as_optional_snowflake(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return _as_snowflake(value)


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        raise SettingsError("Boolean is not a valid float value.")

    if isinstance(value, (int, float)):
        return float(value)

    if isinstance(value, str):
        return float(value.strip())

    raise SettingsError("Expected float value.")
