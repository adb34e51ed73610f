"""Tests for the display ticker."""

import asyncio

import pytest

from punchclock.entries import EntryListManager
from punchclock.timer import DisplayTicker, TimerController


@pytest.fixture
def controller(local_storage, clock) -> TimerController:
    return TimerController(EntryListManager(local_storage), clock=clock)


class TestDisplayTicker:
    """Ticks follow the session lifecycle and never leak."""

    @pytest.mark.asyncio
    async def test_ticks_while_running(self, controller, clock) -> None:
        ticks: list[int] = []
        ticker = DisplayTicker(controller, on_tick=ticks.append, interval=0.01)
        ticker.attach()
        assert not ticker.is_active

        controller.start("A")
        assert ticker.is_active
        clock.advance(7)
        await asyncio.sleep(0.05)

        assert ticks[0] == 0
        assert 7 in ticks
        await ticker.aclose()

    @pytest.mark.asyncio
    async def test_pause_cancels_and_shows_final_value(self, controller, clock) -> None:
        ticks: list[int] = []
        ticker = DisplayTicker(controller, on_tick=ticks.append, interval=0.01)
        controller.start("A")
        ticker.attach()
        assert ticker.is_active

        clock.advance(12)
        controller.pause()

        assert not ticker.is_active
        assert ticks[-1] == 12
        await ticker.aclose()

    @pytest.mark.asyncio
    async def test_refresh_recomputes_from_clock(self, controller, clock) -> None:
        """A long-delayed tick still shows the true elapsed time."""
        ticks: list[int] = []
        ticker = DisplayTicker(controller, on_tick=ticks.append, interval=3600)
        controller.start("A")
        ticker.attach()
        await asyncio.sleep(0)

        clock.advance(900)
        ticker.refresh()

        assert ticks[-1] == 900
        await ticker.aclose()

    @pytest.mark.asyncio
    async def test_stop_cancels(self, controller, clock) -> None:
        ticker = DisplayTicker(controller, on_tick=lambda s: None, interval=0.01)
        ticker.attach()
        controller.start("A")
        clock.advance(3)

        await controller.stop()

        assert not ticker.is_active
        await ticker.aclose()

    @pytest.mark.asyncio
    async def test_aclose_detaches(self, controller) -> None:
        ticks: list[int] = []
        ticker = DisplayTicker(controller, on_tick=ticks.append, interval=0.01)
        ticker.attach()
        controller.start("A")

        await ticker.aclose()
        assert not ticker.is_active

        count = len(ticks)
        controller.pause()
        assert len(ticks) == count

    def test_interval_must_be_positive(self, controller) -> None:
        with pytest.raises(ValueError):
            DisplayTicker(controller, on_tick=lambda s: None, interval=0)
