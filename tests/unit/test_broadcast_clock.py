"""
Tests for BroadcastClock — tick advancement, interval clamping, pause/resume.
"""

import asyncio
import pytest

from skytrack.api.broadcast_clock import BroadcastClock, MAX_INTERVAL_S, MIN_INTERVAL_S


class TestBroadcastClockInit:
    def test_defaults(self):
        clock = BroadcastClock()
        assert clock.interval_s == 0.5
        assert clock.tick == 0
        assert clock.is_running is False

    def test_interval_clamped(self):
        assert BroadcastClock(interval_s=0.0).interval_s == MIN_INTERVAL_S
        assert BroadcastClock(interval_s=1000).interval_s == MAX_INTERVAL_S


class TestBroadcastClockControls:
    def test_pause_sets_flag(self):
        clock = BroadcastClock()
        clock.is_running = True
        clock.pause()
        assert clock.is_running is False

    def test_set_interval(self):
        clock = BroadcastClock()
        clock.set_interval(2.0)
        assert clock.interval_s == 2.0

    def test_set_interval_clamps(self):
        clock = BroadcastClock()
        clock.set_interval(0.001)
        assert clock.interval_s == MIN_INTERVAL_S
        clock.set_interval(600)
        assert clock.interval_s == MAX_INTERVAL_S

    def test_on_tick_registers(self):
        clock = BroadcastClock()
        async def cb(tick): pass
        clock.on_tick(cb)
        assert len(clock._callbacks) == 1


@pytest.mark.asyncio
class TestBroadcastClockAsync:
    async def test_fire(self):
        clock = BroadcastClock()
        ticks = []

        async def on_tick(tick):
            ticks.append(tick)

        clock.on_tick(on_tick)
        await clock.fire()
        await clock.fire()
        assert ticks == [1, 2]

    async def test_failing_callback_is_isolated(self):
        clock = BroadcastClock()
        ticks = []

        async def broken(tick):
            raise RuntimeError("boom")

        async def on_tick(tick):
            ticks.append(tick)

        clock.on_tick(broken)
        clock.on_tick(on_tick)
        await clock.fire()
        assert ticks == [1]

    async def test_start_and_stop(self):
        clock = BroadcastClock(interval_s=MIN_INTERVAL_S)
        await clock.start()
        assert clock.is_running is True
        await asyncio.sleep(0.2)
        await clock.stop()
        assert clock.is_running is False
        assert clock.tick > 0

    async def test_paused_clock_does_not_tick(self):
        clock = BroadcastClock(interval_s=MIN_INTERVAL_S)
        await clock.start()
        clock.pause()
        await asyncio.sleep(0.05)
        tick = clock.tick
        await asyncio.sleep(0.2)
        assert clock.tick == tick
        clock.resume()
        await asyncio.sleep(0.2)
        await clock.stop()
        assert clock.tick > tick
