"""Countdown clock for exam-mode sessions."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

log = logging.getLogger("quiz_practice.timer")

SECONDS_PER_QUESTION = 60


def current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


def format_time(seconds: int) -> str:
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins}:{secs:02d}"


class ExamTimer:
    """Remaining-seconds counter driven by a repeating asyncio task.

    Time is only ever added through allocate(); the clock is never
    recomputed from the question count. The expiry callback fires at most
    once per reset().
    """

    def __init__(self, on_expire: Callable[[], None], interval: float = 1.0):
        self.remaining = 0
        self.interval = interval
        self._on_expire = on_expire
        self._task: asyncio.Task | None = None
        self._expired = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self._expired

    def allocate(self, question_count: int) -> None:
        if self._expired:
            return
        self.remaining += question_count * SECONDS_PER_QUESTION
        log.info("Allocated %ds for %d questions (%ds left)",
                 question_count * SECONDS_PER_QUESTION, question_count, self.remaining)

    def start(self) -> None:
        if self.running or self._expired or self.remaining <= 0:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not current_task():
            task.cancel()

    def reset(self) -> None:
        self.cancel()
        self.remaining = 0
        self._expired = False

    def tick(self) -> None:
        if self.remaining <= 0 or self._expired:
            return
        self.remaining -= 1
        if self.remaining == 0:
            self._expire()

    def _expire(self) -> None:
        self._expired = True
        # Detach before the handler runs; the ticking task itself is never cancelled
        self.cancel()
        log.info("Time is up")
        self._on_expire()

    async def _run(self) -> None:
        while self.remaining > 0 and not self._expired:
            await asyncio.sleep(self.interval)
            self.tick()
