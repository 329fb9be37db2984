import asyncio
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from activity_viewer import file_watcher
from activity_viewer.file_watcher import (
    LiveTail,
    LogFileSource,
    TailCallbacks,
    TailState,
    file_change_ticks,
    interval_ticks,
)


async def _ticks(count: int):
    for _ in range(count):
        await asyncio.sleep(0)
        yield None


async def _blocked_ticks(event: asyncio.Event):
    await event.wait()
    yield None


class _Recorder:
    def __init__(self) -> None:
        self.contents: list[str] = []
        self.errors: list[int] = []
        self.disabled = 0

    def callbacks(self) -> TailCallbacks:
        return TailCallbacks(
            on_new_content=self.contents.append,
            on_error=lambda exc, count: self.errors.append(count),
            on_disabled=self._on_disabled,
        )

    def _on_disabled(self) -> None:
        self.disabled += 1


def _source(*results):
    queue = list(results)

    async def reacquire():
        value = queue.pop(0) if queue else None
        if isinstance(value, Exception):
            raise value
        return value

    return reacquire


class LiveTailTests(unittest.IsolatedAsyncioTestCase):
    async def test_three_consecutive_failures_disable_the_tail_once(self) -> None:
        tail = LiveTail(max_failures=3)
        recorder = _Recorder()

        await tail.start(_source(None, OSError("gone"), None, "late"), recorder.callbacks(), _ticks(6))
        await asyncio.wait_for(tail._task, timeout=1)

        self.assertEqual(tail.state, TailState.DISABLED)
        self.assertEqual(recorder.errors, [1, 2, 3])
        self.assertEqual(recorder.disabled, 1)
        self.assertEqual(recorder.contents, [])

        self.assertFalse(await tail.poll_now())
        self.assertEqual(recorder.errors, [1, 2, 3])

    async def test_success_resets_the_failure_count(self) -> None:
        tail = LiveTail(max_failures=3)
        recorder = _Recorder()

        await tail.start(_source(None, None, "a", None, None, "b"), recorder.callbacks(), _ticks(6))
        await asyncio.wait_for(tail._task, timeout=1)

        self.assertEqual(recorder.contents, ["a", "b"])
        self.assertEqual(recorder.errors, [1, 2, 1, 2])
        self.assertEqual(recorder.disabled, 0)
        self.assertEqual(tail.consecutive_failures, 0)
        # ticks ran out, so the tail goes back to idle
        self.assertEqual(tail.state, TailState.IDLE)

    async def test_restart_after_disable_resets_state(self) -> None:
        tail = LiveTail(max_failures=1)
        recorder = _Recorder()

        await tail.start(_source(None), recorder.callbacks(), _ticks(1))
        await asyncio.wait_for(tail._task, timeout=1)
        self.assertEqual(tail.state, TailState.DISABLED)

        event = asyncio.Event()
        await tail.start(_source("fresh"), recorder.callbacks(), _blocked_ticks(event))
        self.assertEqual(tail.state, TailState.ACTIVE)
        self.assertEqual(tail.consecutive_failures, 0)

        self.assertTrue(await tail.poll_now())
        self.assertEqual(recorder.contents, ["fresh"])
        await tail.stop()

    async def test_configuring_a_new_source_clears_the_disabled_state(self) -> None:
        tail = LiveTail(max_failures=1)
        recorder = _Recorder()
        await tail.start(_source(None), recorder.callbacks(), _ticks(1))
        await asyncio.wait_for(tail._task, timeout=1)
        self.assertEqual(tail.state, TailState.DISABLED)

        tail.configure(_source("new file"), recorder.callbacks())

        self.assertEqual(tail.state, TailState.IDLE)
        self.assertEqual(tail.consecutive_failures, 0)
        self.assertTrue(await tail.poll_now())
        self.assertEqual(recorder.contents, ["new file"])

    async def test_stop_returns_to_idle_and_cancels_the_loop(self) -> None:
        tail = LiveTail()
        event = asyncio.Event()

        await tail.start(_source(), _Recorder().callbacks(), _blocked_ticks(event))
        task = tail._task
        await tail.stop()

        self.assertEqual(tail.state, TailState.IDLE)
        self.assertTrue(task.done())

    async def test_poll_without_configuration_does_nothing(self) -> None:
        self.assertFalse(await LiveTail().poll_now())

    async def test_failures_while_idle_never_disable(self) -> None:
        tail = LiveTail(max_failures=2)
        recorder = _Recorder()
        tail.configure(_source(None, None, None), recorder.callbacks())

        for _ in range(3):
            await tail.poll_now()

        self.assertEqual(tail.state, TailState.IDLE)
        self.assertEqual(recorder.errors, [1, 2, 3])
        self.assertEqual(recorder.disabled, 0)


class TickSourceTests(unittest.IsolatedAsyncioTestCase):
    async def test_interval_ticks_sleep_between_ticks(self) -> None:
        delays: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            delays.append(seconds)

        ticks = interval_ticks(30, sleep=fake_sleep)
        await ticks.__anext__()
        await ticks.__anext__()
        await ticks.aclose()

        self.assertEqual(delays, [30, 30])

    async def test_file_change_ticks_yield_per_change_batch(self) -> None:
        async def fake_awatch(path, stop_event=None):
            yield {("modified", str(path))}
            yield {("modified", str(path)), ("modified", str(path))}

        with patch.object(file_watcher, "awatch", fake_awatch):
            ticks = [tick async for tick in file_change_ticks(Path("activity.jsonl"))]

        self.assertEqual(ticks, [None, None])


class LogFileSourceTests(unittest.IsolatedAsyncioTestCase):
    async def test_reacquire_returns_none_when_file_is_gone(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "activity.jsonl"
            path.write_text("{}\n", encoding="utf-8")
            source = LogFileSource(path)
            self.assertEqual(await source.reacquire(), "{}\n")

            path.unlink()
            self.assertIsNone(await source.reacquire())


if __name__ == "__main__":
    unittest.main()
