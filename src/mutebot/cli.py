"""CLI for the mutebot runtime."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Sequence
import argparse
import asyncio
import json
import logging

from dotenv import find_dotenv, load_dotenv

from mutebot import __version__
from mutebot.config.settings import SettingsError, load_settings, settings_summary
from mutebot.errors import BotStartupError, CommandRegistrationError
from mutebot.runtime.app import configure_logging, run_runtime


logger = logging.getLogger("mutebot.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discord /mute bot")
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Path to a .env file. Defaults to the nearest .env from the working directory.",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Validate settings and print a redacted summary.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Boot runtime and stop immediately (startup wiring smoke check).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"mutebot {__version__}",
    )
    return parser


def load_env_file(env_file: Optional[Path] = None) -> bool:
    """Load a dotenv file into os.environ without overriding existing values."""
    path = str(env_file.expanduser()) if env_file is not None else find_dotenv(usecwd=True)
    if not path or not load_dotenv(path, override=False):
        logger.warning("failed to load env variables from file path=%s", path or ".env")
        return False
    return True


def main(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging("INFO")
    load_env_file(args.env_file)

    try:
        settings = load_settings(environ=environ)
    except SettingsError as exc:
        logger.error("failed to load config from env: %s", exc)
        return 2

    configure_logging(settings.runtime.log_level)

    if args.check:
        print(json.dumps(settings_summary(settings), indent=2, sort_keys=True))
        return 0

    shutdown_event = None
    if args.once:
        shutdown_event = asyncio.Event()
        shutdown_event.set()

    try:
        asyncio.run(run_runtime(settings=settings, shutdown_event=shutdown_event))
    except KeyboardInterrupt:
        # KeyboardInterrupt is expected during local runs.
        return 130
    except (BotStartupError, CommandRegistrationError) as exc:
        logger.error("bot startup failed: %s", exc)
        return 1

    return 0
