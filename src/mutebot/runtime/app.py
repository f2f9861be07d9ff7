"""Runtime lifecycle wiring for mutebot."""

from __future__ import annotations

from typing import Optional, Protocol
import asyncio
import logging
import signal

from mutebot.config.settings import AppSettings


class RuntimeService(Protocol):
    """Small lifecycle contract used by the runtime host."""

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...


class RuntimeApp:
    """Application host with deterministic startup and shutdown ordering."""

    def __init__(
        self,
        settings: AppSettings,
        services: Optional[list[RuntimeService]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings
        self.logger = logger or logging.getLogger("mutebot.runtime")
        self._services = services or []
        self._running: list[RuntimeService] = []

    async def start(self) -> None:
        if self._running:
            return

        for service in self._services:
            try:
                await service.start()
            except BaseException:
                # Release whatever already came up before propagating.
                await self.stop()
                raise
            self._running.append(service)

    async def stop(self) -> None:
        # Stop services in reverse order
        while self._running:
            service = self._running.pop()
            try:
                await service.stop()
            except Exception:
                self.logger.exception("Service shutdown failed.")

    async def run(self, shutdown_event: Optional[asyncio.Event] = None) -> None:
        stop_event = shutdown_event or asyncio.Event()
        added_signals = self._install_signal_handlers(stop_event)

        try:
            await self.start()
            self.logger.info(
                "Runtime started target_user_id=%s guild_id=%s. Press Ctrl+C to exit.",
                self.settings.bot.target_user_id,
                self.settings.bot.guild_id,
            )
            await stop_event.wait()
            self.logger.info("Runtime shutdown requested.")
        finally:
            await self.stop()
            self._remove_signal_handlers(added_signals)

    @staticmethod
    def _install_signal_handlers(stop_event: asyncio.Event) -> list[signal.Signals]:
        loop = asyncio.get_running_loop()
        added = []

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
                added.append(sig)
            except (NotImplementedError, RuntimeError):
                # Signal handlers may be unsupported on some environments.
                break

        return added

    @staticmethod
    def _remove_signal_handlers(signals_to_remove: list[signal.Signals]) -> None:
        loop = asyncio.get_running_loop()

        for sig in signals_to_remove:
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                break


def configure_logging(log_level: str) -> None:
    level = getattr(logging, log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger().setLevel(level)


async def run_runtime(settings: AppSettings, shutdown_event: Optional[asyncio.Event] = None) -> None:
    from mutebot.runtime.factory import create_services

    logger = logging.getLogger("mutebot.runtime")
    app = RuntimeApp(
        settings=settings,
        services=create_services(settings, logger=logger),
        logger=logger,
    )

    await app.run(shutdown_event=shutdown_event)
