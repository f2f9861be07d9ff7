"""Tracked delayed unmute tasks keyed by mute target."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Hashable, Optional
import asyncio
import logging


UnmuteAction = Callable[[], Awaitable[Any]]
SleepFn = Callable[[float], Awaitable[Any]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _PendingUnmute:
    key: Hashable
    end: datetime
    action: UnmuteAction
    task: Optional[asyncio.Task] = None
    fired: bool = False


class UnmuteScheduler:
    """Runs one delayed unmute per key and can release them all on shutdown."""

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        sleep: Optional[SleepFn] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._clock = clock or utc_now
        self._sleep = sleep or asyncio.sleep
        self._logger = logger or logging.getLogger("mutebot.mute.scheduler")
        self._pending: dict[Hashable, _PendingUnmute] = {}
        self._stopped = False

    async def start(self) -> None:
        self._stopped = False

    @property
    def accepting(self) -> bool:
        return not self._stopped

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def pending_keys(self) -> tuple[Hashable, ...]:
        return tuple(self._pending.keys())

    def schedule(self, key: Hashable, end: datetime, action: UnmuteAction) -> asyncio.Task:
        if self._stopped:
            raise RuntimeError("Scheduler is stopped.")
        if key in self._pending:
            raise ValueError(f"Unmute already pending for {key!r}.")

        entry = _PendingUnmute(key=key, end=end, action=action)
        delay = max(0.0, (end - self._clock()).total_seconds())
        entry.task = asyncio.create_task(self._run(entry, delay))
        self._pending[key] = entry
        self._logger.debug("unmute_scheduled key=%s end=%s delay=%.3f", key, end.isoformat(), delay)
        return entry.task

    async def cancel(self, key: Hashable) -> bool:
        """Cancel a pending unmute without running it."""
        entry = self._pending.get(key)
        if entry is None or entry.fired:
            return False

        self._pending.pop(key, None)
        await _cancel_task(entry.task)
        self._logger.info("unmute_cancelled key=%s", key)
        return True

    async def stop(self, *, release_pending: bool = True, timeout: float = 5.0) -> None:
        """Cancel every timer; when releasing, run their actions right away."""
        self._stopped = True
        entries = list(self._pending.values())
        self._pending.clear()
        if not entries:
            return

        waiting = []
        to_release = []
        for entry in entries:
            if entry.fired:
                # Already past the sleep; let the action finish.
                waiting.append(entry.task)
                continue
            await _cancel_task(entry.task)
            if release_pending:
                to_release.append(entry)

        self._logger.info(
            "unmute_scheduler_stopping pending=%s releasing=%s",
            len(entries),
            len(to_release),
        )

        waiting.extend(asyncio.ensure_future(self._release(entry)) for entry in to_release)
        if not waiting:
            return

        _, not_done = await asyncio.wait(waiting, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            self._logger.warning("unmute_release_timeout unfinished=%s", len(not_done))

    async def _run(self, entry: _PendingUnmute, delay: float) -> None:
        try:
            await self._sleep(delay)
            entry.fired = True
            await entry.action()
        except asyncio.CancelledError:
            raise
        except Exception:
            self._logger.exception("Unmute action failed for key=%s", entry.key)
        finally:
            if self._pending.get(entry.key) is entry:
                del self._pending[entry.key]

    async def _release(self, entry: _PendingUnmute) -> None:
        try:
            await entry.action()
            self._logger.info("unmute_released key=%s", entry.key)
        except Exception:
            self._logger.exception("Unmute release failed for key=%s", entry.key)


async def _cancel_task(task: Optional[asyncio.Task]) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
