"""Tests for data models."""
from __future__ import annotations

import pytest

from quiz_practice.models import (
    COMPREHENSIVE_SUBJECT,
    BookmarkedQuestion,
    Difficulty,
    ExamResult,
    Language,
    PersistedSession,
    Question,
    QuizState,
    SessionMode,
    UserStats,
    batch_size_for,
    subject_name,
)


class TestEnums:
    def test_difficulty_parse_accepts_labels(self):
        assert Difficulty.parse("Medium") is Difficulty.MEDIUM
        assert Difficulty.parse("hard") is Difficulty.HARD

    def test_difficulty_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            Difficulty.parse("extreme")

    def test_language_labels(self):
        assert Language.BENGALI.label == "Bengali"
        assert Language("hi") is Language.HINDI


class TestSubjects:
    def test_batch_sizes(self):
        assert batch_size_for(COMPREHENSIVE_SUBJECT) == 25
        assert batch_size_for("math") == 5

    def test_names(self):
        assert subject_name("math") == "Mathematics"
        assert subject_name(COMPREHENSIVE_SUBJECT) == "Full Mock Exam"
        assert subject_name("astronomy") == "astronomy"


class TestQuestion:
    def test_from_dict(self, sample_question):
        q = Question.from_dict(sample_question.to_dict())
        assert q == sample_question
        assert q.options[q.correct_answer_index] == "Au"

    def test_too_few_options(self, sample_question):
        d = sample_question.to_dict()
        d["options"] = ["only one"]
        with pytest.raises(ValueError):
            Question.from_dict(d)

    def test_index_out_of_range(self, sample_question):
        d = sample_question.to_dict()
        d["correct_answer_index"] = 4
        with pytest.raises(ValueError):
            Question.from_dict(d)

    def test_missing_field(self, sample_question):
        d = sample_question.to_dict()
        del d["question_text"]
        with pytest.raises(KeyError):
            Question.from_dict(d)


class TestQuizState:
    def test_answers_survive_json_keys(self, sample_question):
        state = QuizState(questions=[sample_question], answers={0: 1}, score=1)
        d = state.to_dict()
        assert d["answers"] == {"0": 1}
        restored = QuizState.from_dict(d)
        assert restored.answers == {0: 1}
        assert restored.score == 1

    def test_sparse_list_answers(self, make_questions):
        qs = make_questions(3)
        d = QuizState(questions=qs).to_dict()
        d["answers"] = [0, None, 2]
        state = QuizState.from_dict(d)
        assert state.answers == {0: 0, 2: 2}

    def test_boolean_answer_rejected(self, make_questions):
        d = QuizState(questions=make_questions(2)).to_dict()
        d["answers"] = {"0": True}
        with pytest.raises(ValueError):
            QuizState.from_dict(d)

    def test_answer_for_unknown_index(self, make_questions):
        d = QuizState(questions=make_questions(2)).to_dict()
        d["answers"] = {"5": 0}
        with pytest.raises(ValueError):
            QuizState.from_dict(d)


class TestPersistedSession:
    def test_roundtrip(self, make_questions):
        snap = PersistedSession(
            subject="math",
            difficulty=Difficulty.MEDIUM,
            mode=SessionMode.PRACTICE,
            state=QuizState(questions=make_questions(2), current_index=1),
        )
        restored = PersistedSession.from_dict(snap.to_dict())
        assert restored.difficulty is Difficulty.MEDIUM
        assert restored.mode is SessionMode.PRACTICE
        assert restored.state.current_index == 1
        assert restored.date == snap.date

    def test_missing_mode_defaults_to_practice(self, make_questions):
        d = PersistedSession(
            subject="math",
            difficulty=Difficulty.EASY,
            mode=SessionMode.PRACTICE,
            state=QuizState(questions=make_questions(1)),
        ).to_dict()
        del d["mode"]
        assert PersistedSession.from_dict(d).mode is SessionMode.PRACTICE


class TestExamResult:
    def test_create(self):
        r = ExamResult.create("math", 3, 5, Difficulty.MEDIUM, SessionMode.PRACTICE)
        assert r.subject_name == "Mathematics"
        assert r.difficulty == "medium"
        assert r.mode == "practice"
        assert r.percentage == 60

    def test_from_dict_fills_old_fields(self):
        r = ExamResult.from_dict({"subject_id": "history", "score": "3", "total_questions": 5})
        assert r.mode == "practice"
        assert r.difficulty == "medium"
        assert r.subject_name == "History"
        assert r.id

    def test_from_dict_needs_score(self):
        with pytest.raises(KeyError):
            ExamResult.from_dict({"subject_id": "history", "total_questions": 5})

    def test_zero_questions(self):
        r = ExamResult.create("gk", 0, 0, Difficulty.EASY, SessionMode.EXAM)
        assert r.percentage == 0


class TestUserStats:
    def test_bookmark_flattened(self, sample_question):
        stats = UserStats(bookmarks=[BookmarkedQuestion(sample_question, saved_at="2026-01-01")])
        d = stats.to_dict()
        assert d["bookmarks"][0]["id"] == "q-001"
        assert d["bookmarks"][0]["saved_at"] == "2026-01-01"
        assert UserStats.from_dict(d).bookmarks[0].question == sample_question
