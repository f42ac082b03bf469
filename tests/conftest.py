"""Shared test fixtures."""
from __future__ import annotations

import itertools

import pytest

from quiz_practice.models import Question
from quiz_practice.recovery_store import SessionRecoveryStore
from quiz_practice.stats_store import StatsStore
from quiz_practice.storage import MemoryStorage, SqliteStorage

_ids = itertools.count(1)


@pytest.fixture
def storage():
    """In-memory key space."""
    return MemoryStorage()


@pytest.fixture
def sqlite_storage(tmp_path):
    """A fresh sqlite-backed key space."""
    s = SqliteStorage(tmp_path / "test.db")
    yield s
    s.close()


@pytest.fixture
def stats_store(storage):
    return StatsStore(storage)


@pytest.fixture
def recovery_store(storage):
    return SessionRecoveryStore(storage)


@pytest.fixture
def sample_question():
    """A valid Question object."""
    return Question(
        id="q-001",
        question_text="What is the chemical symbol for gold?",
        options=["Ag", "Au", "Gd", "Go"],
        correct_answer_index=1,
        explanation="Gold's symbol Au comes from the Latin aurum.",
        explanation_summary="Au is from Latin aurum.",
        subject="gen_science",
        difficulty="easy",
    )


@pytest.fixture
def make_questions():
    """Factory for batches of unique questions whose answer is always option 0."""

    def _make(count: int, subject: str = "math", difficulty: str = "medium") -> list[Question]:
        batch = []
        for _ in range(count):
            n = next(_ids)
            batch.append(Question(
                id=f"gen-{n}",
                question_text=f"What is {n} + 0?",
                options=[str(n), str(n + 1), str(n + 2), str(n + 3)],
                correct_answer_index=0,
                explanation=f"Adding zero leaves {n} unchanged.",
                subject=subject,
                difficulty=difficulty,
            ))
        return batch

    return _make
