"""Tests for saved practice sessions."""
from __future__ import annotations

import json

import pytest

from quiz_practice.errors import CorruptPersistedState
from quiz_practice.models import Difficulty, PersistedSession, QuizState, SessionMode
from quiz_practice.storage import progress_key


def _snapshot(questions, mode=SessionMode.PRACTICE, **state) -> PersistedSession:
    return PersistedSession(
        subject="math",
        difficulty=Difficulty.MEDIUM,
        mode=mode,
        state=QuizState(questions=questions, **state),
    )


class TestSessionRecoveryStore:
    def test_nothing_saved(self, recovery_store):
        assert recovery_store.has_saved("math") is False
        assert recovery_store.load("math") is None

    def test_save_and_load(self, recovery_store, make_questions):
        qs = make_questions(3)
        recovery_store.save(_snapshot(qs, current_index=2, score=1, answers={0: 0, 1: 2}))

        assert recovery_store.has_saved("math")
        loaded = recovery_store.load("math")
        assert loaded.state.questions == qs
        assert loaded.state.current_index == 2
        assert loaded.state.answers == {0: 0, 1: 2}
        assert loaded.difficulty is Difficulty.MEDIUM

    def test_one_slot_per_subject(self, recovery_store, make_questions):
        recovery_store.save(_snapshot(make_questions(1)))
        second = make_questions(2)
        recovery_store.save(_snapshot(second))
        assert recovery_store.load("math").state.questions == second
        assert recovery_store.has_saved("history") is False

    def test_exam_snapshot_refused(self, recovery_store, make_questions):
        with pytest.raises(ValueError):
            recovery_store.save(_snapshot(make_questions(1), mode=SessionMode.EXAM))
        assert recovery_store.has_saved("math") is False

    def test_clear(self, recovery_store, make_questions):
        recovery_store.save(_snapshot(make_questions(1)))
        recovery_store.clear("math")
        recovery_store.clear("math")
        assert recovery_store.has_saved("math") is False

    def test_corrupt_blob(self, storage, recovery_store):
        storage.set(progress_key("math"), "not json")
        with pytest.raises(CorruptPersistedState) as exc:
            recovery_store.load("math")
        assert exc.value.key == "quiz_progress_math"
        assert storage.get(progress_key("math")) == "not json"

    def test_stored_exam_snapshot_is_corrupt(self, storage, recovery_store, make_questions):
        data = _snapshot(make_questions(1)).to_dict()
        data["mode"] = "exam"
        storage.set(progress_key("math"), json.dumps(data))
        with pytest.raises(CorruptPersistedState):
            recovery_store.load("math")

    def test_empty_snapshot_is_corrupt(self, storage, recovery_store):
        storage.set(progress_key("math"), json.dumps(_snapshot([]).to_dict()))
        with pytest.raises(CorruptPersistedState):
            recovery_store.load("math")
