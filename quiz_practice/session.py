"""Quiz session state machine.

A session moves SELECTING_DIFFICULTY -> LOADING -> ACTIVE -> FINISHED.
Advancing past the last loaded question enters LOADING_MORE, which holds the
pending index until the next batch is appended (or the fetch fails and the
index is rolled back). A failed initial load lands in ERROR.

Everything runs on one event loop. The only suspension points are the
provider fetch and the exam timer's sleep.
"""
from __future__ import annotations

import asyncio
import logging
import sqlite3
from enum import Enum

from quiz_practice.errors import CorruptPersistedState
from quiz_practice.models import (
    Difficulty,
    ExamResult,
    Language,
    PersistedSession,
    Question,
    QuizState,
    SessionMode,
    batch_size_for,
    subject_name,
)
from quiz_practice.providers.base import QuestionProvider
from quiz_practice.recovery_store import SessionRecoveryStore
from quiz_practice.stats_store import StatsStore
from quiz_practice.timer import ExamTimer, current_task

log = logging.getLogger("quiz_practice.session")

NO_QUESTIONS = "No questions generated. Please try again."
LOAD_FAILED = "Failed to load questions. Check your connection."
RESUME_FAILED = "Failed to load saved session."
STORAGE_FAILED = "Failed to save your progress. Your answers are kept for this session."

# What a storage port may raise on a broken disk or record
STORAGE_ERRORS = (sqlite3.Error, OSError, CorruptPersistedState)


class Phase(str, Enum):
    SELECTING_DIFFICULTY = "selecting_difficulty"
    LOADING = "loading"
    ACTIVE = "active"
    LOADING_MORE = "loading_more"
    FINISHED = "finished"
    ERROR = "error"


class QuizSession:
    def __init__(
        self,
        subject: str,
        provider: QuestionProvider,
        stats: StatsStore,
        recovery: SessionRecoveryStore,
        language: Language = Language.ENGLISH,
        tick_interval: float = 1.0,
    ):
        self.subject = subject
        self.subject_name = subject_name(subject)
        self.language = language
        self.provider = provider
        self.stats = stats
        self.recovery = recovery

        self.phase = Phase.SELECTING_DIFFICULTY
        self.mode = SessionMode.PRACTICE
        self.difficulty: Difficulty | None = None
        self.state = QuizState()
        self.pending_index: int | None = None
        self.error = ""
        self.notice = ""
        self.timer = ExamTimer(on_expire=self._on_time_up, interval=tick_interval)

        self._load_task: asyncio.Task | None = None
        # Bumped whenever the session is reset so late fetches are discarded
        self._epoch = 0

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def current_question(self) -> Question | None:
        idx = self.state.current_index
        if 0 <= idx < len(self.state.questions):
            return self.state.questions[idx]
        return None

    @property
    def is_answered(self) -> bool:
        return self.state.current_index in self.state.answers

    @property
    def is_bookmarked(self) -> bool:
        q = self.current_question
        if q is None:
            return False
        try:
            return self.stats.is_bookmarked(q.id)
        except STORAGE_ERRORS as e:
            log.warning("Bookmark lookup failed: %s", e)
            return False

    @property
    def has_saved_session(self) -> bool:
        try:
            return self.recovery.has_saved(self.subject)
        except STORAGE_ERRORS as e:
            log.warning("Saved-session lookup failed: %s", e)
            return False

    @property
    def time_left(self) -> int:
        return self.timer.remaining

    @property
    def loading(self) -> bool:
        return self.phase in (Phase.LOADING, Phase.LOADING_MORE)

    # ── Setup ────────────────────────────────────────────────────────────

    def set_mode(self, mode: SessionMode) -> bool:
        if self.phase is not Phase.SELECTING_DIFFICULTY:
            return False
        self.mode = mode
        return True

    async def select_difficulty(self, level: Difficulty) -> bool:
        """Pick a difficulty and load the first batch. Returns whether it loaded."""
        if self.phase is not Phase.SELECTING_DIFFICULTY:
            return False
        self.difficulty = level
        self.error = ""
        self.notice = ""
        self.phase = Phase.LOADING
        log.info("Starting %s %s session for %s", self.mode.value, level.value, self.subject)
        return await self._load_batch(initial=True)

    async def retry(self) -> bool:
        """Re-request the batch that last failed, with the same difficulty."""
        if self.phase is Phase.ERROR and self.difficulty is not None:
            self.error = ""
            self.phase = Phase.LOADING
            return await self._load_batch(initial=True)
        if (self.phase is Phase.ACTIVE and self.error in (LOAD_FAILED, NO_QUESTIONS)
                and self.state.current_index == len(self.state.questions) - 1):
            self.advance()
            await self.wait_for_batch()
            return self.phase is Phase.ACTIVE and not self.error
        return False

    # ── Loading ──────────────────────────────────────────────────────────

    async def _load_batch(self, initial: bool) -> bool:
        assert self.difficulty is not None
        epoch = self._epoch
        count = batch_size_for(self.subject)
        try:
            new_questions = await self.provider.generate_questions(
                self.subject, self.language, self.difficulty, count
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if epoch == self._epoch:
                log.warning("Question load failed for %s: %s", self.subject, e)
                self._load_failed(LOAD_FAILED, initial)
            return False

        if epoch != self._epoch:
            log.info("Discarding late batch for %s", self.subject)
            return False
        if not new_questions:
            log.warning("Provider returned no questions for %s", self.subject)
            self._load_failed(NO_QUESTIONS, initial)
            return False

        # Append, never replace: answers already given keep their indices
        self.state.questions.extend(new_questions)
        self.pending_index = None
        self.phase = Phase.ACTIVE
        log.info("Loaded %d questions for %s (%d total)",
                 len(new_questions), self.subject, len(self.state.questions))
        if self.mode is SessionMode.EXAM:
            self.timer.allocate(len(new_questions))
            self.timer.start()
        return True

    def _load_failed(self, message: str, initial: bool) -> None:
        self.error = message
        self.pending_index = None
        if initial:
            self.phase = Phase.ERROR
        else:
            self.state.current_index = max(len(self.state.questions) - 1, 0)
            self.phase = Phase.ACTIVE

    async def wait_for_batch(self) -> None:
        task = self._load_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    def _cancel_load(self) -> None:
        task, self._load_task = self._load_task, None
        if task is not None and not task.done() and task is not current_task():
            task.cancel()

    # ── Answering and navigation ─────────────────────────────────────────

    def submit_answer(self, option_index: int) -> bool | None:
        """Record the answer for the current question.

        Returns whether it was correct, or None when the call is ignored
        (wrong phase, or the question already has its final answer).
        """
        if self.phase is not Phase.ACTIVE:
            return None
        q = self.current_question
        if q is None or self.is_answered:
            return None
        if not 0 <= option_index < len(q.options):
            raise ValueError(f"option index {option_index} out of range for {len(q.options)} options")

        is_correct = option_index == q.correct_answer_index
        self.state.answers[self.state.current_index] = option_index
        if is_correct:
            self.state.score += 1
        self._store("record answer", self.stats.update_stats, self.subject, is_correct)
        return is_correct

    def _store(self, what: str, write, *args) -> bool:
        """Run a store write, turning a storage failure into the error banner."""
        try:
            write(*args)
        except STORAGE_ERRORS as e:
            log.error("Could not %s for %s: %s", what, self.subject, e)
            self.error = STORAGE_FAILED
            return False
        return True

    def advance(self) -> None:
        """Move to the next question, fetching another batch at the end.

        Skipping an unanswered question is allowed here; exam-mode "no
        skipping" is left to the presentation layer.
        """
        if self.phase is not Phase.ACTIVE:
            return
        self.error = ""
        nxt = self.state.current_index + 1
        if nxt < len(self.state.questions):
            self.state.current_index = nxt
            return
        if self.difficulty is None:
            return
        self.phase = Phase.LOADING_MORE
        self.pending_index = nxt
        self.state.current_index = nxt
        self._load_task = asyncio.get_running_loop().create_task(
            self._load_batch(initial=False)
        )

    def jump_to(self, index: int) -> bool:
        if self.phase is not Phase.ACTIVE:
            return False
        if not 0 <= index < len(self.state.questions):
            return False
        self.error = ""
        self.state.current_index = index
        return True

    # ── Completion ───────────────────────────────────────────────────────

    def finish(self) -> ExamResult | None:
        if self.state.is_finished:
            return None
        if self.phase not in (Phase.ACTIVE, Phase.LOADING_MORE):
            return None
        self.timer.cancel()
        self._cancel_load()
        self._epoch += 1
        if self.pending_index is not None:
            self.state.current_index = max(len(self.state.questions) - 1, 0)
            self.pending_index = None

        # Finished before any write, so a failing store can't reopen the session
        self.state.is_finished = True
        self.phase = Phase.FINISHED
        self.error = ""

        result = None
        if self.difficulty is not None:
            result = ExamResult.create(
                subject_id=self.subject,
                score=self.state.score,
                total_questions=len(self.state.questions),
                difficulty=self.difficulty,
                mode=self.mode,
            )
            self._store("record result", self.stats.add_exam_result, result)
        self._store("clear saved session", self.recovery.clear, self.subject)
        log.info("Finished %s: %d/%d", self.subject, self.state.score, len(self.state.questions))
        return result

    def _on_time_up(self) -> None:
        log.info("Exam time expired for %s", self.subject)
        self.finish()

    def restart(self) -> None:
        self.close()
        self.state = QuizState()
        self.difficulty = None
        self.pending_index = None
        self.error = ""
        self.notice = ""
        self.phase = Phase.SELECTING_DIFFICULTY

    def close(self) -> None:
        """Release the timer and any pending fetch."""
        self._epoch += 1
        self.timer.reset()
        self._cancel_load()

    # ── Persistence ──────────────────────────────────────────────────────

    def save(self) -> bool:
        if self.phase is not Phase.ACTIVE or self.mode is not SessionMode.PRACTICE:
            return False
        if self.difficulty is None:
            return False
        snapshot = PersistedSession(
            subject=self.subject,
            difficulty=self.difficulty,
            mode=self.mode,
            state=self.state,
        )
        if not self._store("save session", self.recovery.save, snapshot):
            return False
        self.notice = "Progress saved successfully!"
        return True

    def resume(self) -> bool:
        if self.phase is not Phase.SELECTING_DIFFICULTY:
            return False
        try:
            snapshot = self.recovery.load(self.subject)
        except STORAGE_ERRORS as e:
            log.error("Could not resume %s: %s", self.subject, e)
            self.error = RESUME_FAILED
            return False
        if snapshot is None:
            return False

        self.difficulty = snapshot.difficulty
        self.mode = snapshot.mode
        self.state = snapshot.state
        if self.state.current_index >= len(self.state.questions):
            self.state.current_index = len(self.state.questions) - 1
        self.phase = Phase.FINISHED if self.state.is_finished else Phase.ACTIVE
        self.error = ""
        self.notice = "Session resumed successfully!"
        log.info("Resumed %s at question %d/%d", self.subject,
                 self.state.current_index + 1, len(self.state.questions))
        return True

    def toggle_bookmark(self) -> bool | None:
        q = self.current_question
        if q is None:
            return None
        try:
            bookmarked = self.stats.toggle_bookmark(q)
        except STORAGE_ERRORS as e:
            log.error("Could not toggle bookmark for %s: %s", q.id, e)
            self.error = STORAGE_FAILED
            return None
        self.notice = "Question bookmarked" if bookmarked else "Bookmark removed"
        return bookmarked
