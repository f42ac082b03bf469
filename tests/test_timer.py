"""Tests for the exam countdown."""
from __future__ import annotations

import asyncio

import pytest

from quiz_practice.timer import SECONDS_PER_QUESTION, ExamTimer, format_time


def test_format_time():
    assert format_time(300) == "5:00"
    assert format_time(61) == "1:01"
    assert format_time(-3) == "0:00"


class TestExamTimer:
    def test_allocate_adds(self):
        timer = ExamTimer(on_expire=lambda: None)
        timer.allocate(5)
        timer.allocate(5)
        assert timer.remaining == 10 * SECONDS_PER_QUESTION

    def test_tick_expires_once(self):
        calls = []
        timer = ExamTimer(on_expire=lambda: calls.append(1))
        timer.remaining = 2
        timer.tick()
        timer.tick()
        timer.tick()
        assert timer.remaining == 0
        assert timer.expired
        assert calls == [1]

    def test_reset(self):
        timer = ExamTimer(on_expire=lambda: None)
        timer.remaining = 1
        timer.tick()
        timer.reset()
        assert not timer.expired
        timer.allocate(1)
        assert timer.remaining == SECONDS_PER_QUESTION

    def test_no_allocation_after_expiry(self):
        timer = ExamTimer(on_expire=lambda: None)
        timer.remaining = 1
        timer.tick()
        timer.allocate(3)
        assert timer.remaining == 0

    @pytest.mark.asyncio
    async def test_runs_down(self):
        done = asyncio.Event()
        timer = ExamTimer(on_expire=done.set, interval=0.001)
        timer.remaining = 3
        timer.start()
        assert timer.running
        await asyncio.wait_for(done.wait(), timeout=2)
        assert timer.remaining == 0
        assert not timer.running

    @pytest.mark.asyncio
    async def test_cancel_stops_ticking(self):
        timer = ExamTimer(on_expire=lambda: None, interval=0.001)
        timer.allocate(1)
        timer.start()
        timer.cancel()
        await asyncio.sleep(0.02)
        assert timer.remaining == SECONDS_PER_QUESTION
        assert not timer.running

    @pytest.mark.asyncio
    async def test_start_without_time_is_noop(self):
        timer = ExamTimer(on_expire=lambda: None)
        timer.start()
        assert not timer.running
