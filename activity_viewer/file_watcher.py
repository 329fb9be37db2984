"""Live tail for the loaded log file.

Each tick re-reads the whole file through an injected ``reacquire`` callable
and hands the content to the caller, which parses only entries past its last
seen ``log_seq``. Three consecutive failed acquisitions disable the tail until
it is started again.

States: idle -> active on ``start``; active stays active on success and on the
first failures; active -> disabled when ``max_failures`` is reached; disabled
only leaves through another ``start`` or a new ``configure``. Ticks come from
an async iterator so tests can drive the loop without real timers.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional

from watchfiles import awatch

from activity_viewer import config
from activity_viewer.observability import record_poll_failure

logger = logging.getLogger("activity_viewer.tail")

Reacquire = Callable[[], Awaitable[Optional[str]]]


class TailState(str, enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    DISABLED = "disabled"


class AcquisitionError(Exception):
    """Raised when the log source yields no content for a tick."""


@dataclass
class TailCallbacks:
    on_new_content: Callable[[str], None]
    on_error: Callable[[Exception, int], None]
    on_disabled: Callable[[], None]


class LogFileSource:
    """Reads the log file from disk in a worker thread."""

    def __init__(self, path: Path):
        self.path = path

    async def acquire_initial(self) -> str:
        return await asyncio.to_thread(self.path.read_text, encoding="utf-8")

    async def reacquire(self) -> Optional[str]:
        try:
            return await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not re-read %s: %s", self.path, exc)
            return None


async def interval_ticks(
    seconds: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncIterator[None]:
    """Tick once every ``seconds``."""
    while True:
        await sleep(seconds)
        yield None


async def file_change_ticks(path: Path, stop_event: asyncio.Event | None = None) -> AsyncIterator[None]:
    """Tick once per batch of filesystem changes to ``path``."""
    async for _changes in awatch(path, stop_event=stop_event):
        yield None


def default_ticks(path: Path | None) -> AsyncIterator[None]:
    if config.LIVE_TAIL_MODE == "watch" and path is not None:
        return file_change_ticks(path)
    return interval_ticks(config.LIVE_TAIL_INTERVAL_SECONDS)


class LiveTail:
    def __init__(self, max_failures: int = config.LIVE_TAIL_MAX_FAILURES):
        self.max_failures = max_failures
        self._state = TailState.IDLE
        self._consecutive_failures = 0
        self._reacquire: Optional[Reacquire] = None
        self._callbacks: Optional[TailCallbacks] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> TailState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TailState.ACTIVE

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def is_configured(self) -> bool:
        return self._reacquire is not None and self._callbacks is not None

    def configure(self, reacquire: Reacquire, callbacks: TailCallbacks) -> None:
        """Install a new content source without starting the tick loop (manual polls only).

        A new source starts clean: a disabled tail goes back to idle and the
        failure counter is zeroed. Call ``stop`` first if a loop is running.
        """
        self._reacquire = reacquire
        self._callbacks = callbacks
        self._consecutive_failures = 0
        if self._state is TailState.DISABLED:
            self._state = TailState.IDLE

    async def start(
        self,
        reacquire: Reacquire,
        callbacks: TailCallbacks,
        ticks: AsyncIterator[None] | None = None,
    ) -> None:
        """Start (or restart) tailing; a disabled tail becomes active again."""
        await self.stop()
        self.configure(reacquire, callbacks)
        self._state = TailState.ACTIVE
        self._task = asyncio.create_task(
            self._run(ticks if ticks is not None else interval_ticks(config.LIVE_TAIL_INTERVAL_SECONDS))
        )
        logger.info("Live tail started")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if self._state is TailState.ACTIVE:
            self._state = TailState.IDLE
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Live tail stopped")

    async def poll_now(self) -> bool:
        """Run one acquisition attempt; returns True when content was delivered."""
        if not self.is_configured or self._state is TailState.DISABLED:
            return False

        try:
            content = await self._reacquire()
            if content is None:
                raise AcquisitionError("Log source returned no content")
        except Exception as exc:
            self._consecutive_failures += 1
            record_poll_failure(self._consecutive_failures)
            logger.warning(
                "Live tail poll failed (%d/%d): %s",
                self._consecutive_failures,
                self.max_failures,
                exc,
            )
            self._callbacks.on_error(exc, self._consecutive_failures)
            if self._consecutive_failures >= self.max_failures and self._state is TailState.ACTIVE:
                self._state = TailState.DISABLED
                logger.error(
                    "Live tail disabled after %d consecutive failures", self._consecutive_failures
                )
                self._callbacks.on_disabled()
            return False

        self._consecutive_failures = 0
        self._callbacks.on_new_content(content)
        return True

    async def _run(self, ticks: AsyncIterator[None]) -> None:
        try:
            async for _ in ticks:
                if self._state is not TailState.ACTIVE:
                    break
                await self.poll_now()
                if self._state is not TailState.ACTIVE:
                    break
        except asyncio.CancelledError:
            logger.info("Live tail task cancelled")
        except Exception as e:
            logger.error(f"Live tail error: {e}")
        finally:
            aclose = getattr(ticks, "aclose", None)
            if aclose is not None:
                await aclose()
            if self._state is TailState.ACTIVE:
                self._state = TailState.IDLE


# Singleton instance
live_tail = LiveTail()
