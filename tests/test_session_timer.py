import asyncio
import time

import pytest

from proctored_cbt.services.session_timer import (
    SessionTimer,
    calculate_time_remaining,
    format_time,
)

TICK = 0.01


def test_runs_to_completion_and_expires_once():
    expired = []
    ticks = []

    async def main():
        timer = SessionTimer(5, on_expire=lambda: expired.append(True),
                             on_tick=ticks.append, tick_interval=TICK)
        timer.start()
        await timer.wait()
        await asyncio.sleep(TICK * 5)
        return timer

    timer = asyncio.run(main())
    assert expired == [True]
    assert ticks == [4, 3, 2, 1, 0]
    assert timer.remaining == 0
    assert timer.expired


def test_expires_after_roughly_duration_ticks():
    async def main():
        fired = asyncio.Event()
        timer = SessionTimer(3, on_expire=fired.set, tick_interval=0.05)
        started = time.monotonic()
        timer.start()
        await asyncio.wait_for(fired.wait(), 2)
        return time.monotonic() - started

    elapsed = asyncio.run(main())
    assert 0.15 - 0.05 <= elapsed < 0.15 + 0.5


def test_cancel_prevents_callbacks():
    expired = []

    async def main():
        timer = SessionTimer(3, on_expire=lambda: expired.append(True), tick_interval=TICK)
        timer.start()
        await asyncio.sleep(TICK * 1.5)
        timer.cancel()
        remaining = timer.remaining
        await asyncio.sleep(TICK * 10)
        return timer, remaining

    timer, remaining = asyncio.run(main())
    assert expired == []
    assert timer.remaining == remaining
    assert not timer.running


def test_cancel_is_safe_before_start_and_twice():
    timer = SessionTimer(3, on_expire=lambda: None)
    timer.cancel()
    timer.cancel()
    assert not timer.running


def test_start_twice_is_ignored():
    calls = []

    async def main():
        timer = SessionTimer(2, on_expire=lambda: calls.append(1), tick_interval=TICK)
        timer.start()
        timer.start()
        await timer.wait()

    asyncio.run(main())
    assert calls == [1]


def test_remaining_never_increases():
    seen = []

    async def main():
        timer = SessionTimer(4, on_expire=lambda: None, on_tick=seen.append, tick_interval=TICK)
        timer.start()
        await timer.wait()

    asyncio.run(main())
    assert seen == sorted(seen, reverse=True)


def test_zero_duration_expires_on_first_tick():
    expired = []

    async def main():
        timer = SessionTimer(0, on_expire=lambda: expired.append(True), tick_interval=TICK)
        timer.start()
        await timer.wait()

    asyncio.run(main())
    assert expired == [True]


def test_failing_tick_callback_does_not_stop_timer():
    expired = []

    def bad_tick(remaining):
        raise RuntimeError("boom")

    async def main():
        timer = SessionTimer(2, on_expire=lambda: expired.append(True),
                             on_tick=bad_tick, tick_interval=TICK)
        timer.start()
        await timer.wait()

    asyncio.run(main())
    assert expired == [True]


@pytest.mark.parametrize("seconds, expected", [
    (0, "00:00"),
    (59, "00:59"),
    (61, "01:01"),
    (3600, "60:00"),
    (None, "00:00"),
    (-5, "00:00"),
])
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_calculate_time_remaining():
    assert calculate_time_remaining(1000.0, 10, now=1000.0 + 125) == 600 - 125
    assert calculate_time_remaining(1000.0, 1, now=1000.0 + 3600) == 0


def test_warning_in_last_ten_minutes():
    assert SessionTimer(700, on_expire=lambda: None).is_warning is False
    assert SessionTimer(599, on_expire=lambda: None).is_warning is True
