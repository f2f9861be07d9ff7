"""Configuration APIs."""

from mutebot.config.settings import (
    AppSettings,
    BotSettings,
    RuntimeSettings,
    SettingsError,
    load_settings,
    settings_summary,
)

__all__ = [
    "AppSettings",
    "BotSettings",
    "RuntimeSettings",
    "SettingsError",
    "load_settings",
    "settings_summary",
]
