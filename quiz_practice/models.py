from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

log = logging.getLogger("quiz_practice.models")


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: str) -> Difficulty:
        # Older blobs stored the display label ("Medium")
        return cls(str(value).strip().lower())


class SessionMode(str, Enum):
    PRACTICE = "practice"
    EXAM = "exam"


class Language(str, Enum):
    ENGLISH = "en"
    BENGALI = "bn"
    HINDI = "hi"

    @property
    def label(self) -> str:
        return {"en": "English", "bn": "Bengali", "hi": "Hindi"}[self.value]


COMPREHENSIVE_SUBJECT = "all_subjects"
COMPREHENSIVE_BATCH_SIZE = 25
DEFAULT_BATCH_SIZE = 5

SUBJECTS: dict[str, str] = {
    "gen_science": "General Science",
    "gk": "General Knowledge",
    "current_affairs": "Current Affairs",
    "english": "English",
    "math": "Mathematics",
    "reasoning": "Reasoning",
    "history": "History",
    "geography": "Geography",
}


def subject_name(subject_id: str) -> str:
    if subject_id == COMPREHENSIVE_SUBJECT:
        return "Full Mock Exam"
    return SUBJECTS.get(subject_id, subject_id)


def batch_size_for(subject_id: str) -> int:
    if subject_id == COMPREHENSIVE_SUBJECT:
        return COMPREHENSIVE_BATCH_SIZE
    return DEFAULT_BATCH_SIZE


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Question:
    id: str
    question_text: str
    options: list[str]
    correct_answer_index: int
    explanation: str
    subject: str
    difficulty: str
    explanation_summary: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question_text": self.question_text,
            "options": list(self.options),
            "correct_answer_index": self.correct_answer_index,
            "explanation": self.explanation,
            "explanation_summary": self.explanation_summary,
            "subject": self.subject,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        """Build a question from a stored dict, rejecting malformed records."""
        options = data["options"]
        if not isinstance(options, list) or len(options) < 2:
            raise ValueError("options must be a list of at least 2 strings")
        if not all(isinstance(o, str) for o in options):
            raise ValueError("options must be strings")
        ci = data["correct_answer_index"]
        if isinstance(ci, bool) or not isinstance(ci, int) or not 0 <= ci < len(options):
            raise ValueError(f"correct_answer_index out of range: {ci!r}")
        return cls(
            id=str(data["id"]),
            question_text=str(data["question_text"]),
            options=list(options),
            correct_answer_index=ci,
            explanation=str(data.get("explanation", "")),
            subject=str(data.get("subject", "")),
            difficulty=str(data.get("difficulty", "")),
            explanation_summary=data.get("explanation_summary"),
        )


@dataclass
class QuizState:
    questions: list[Question] = field(default_factory=list)
    current_index: int = 0
    score: int = 0
    answers: dict[int, int] = field(default_factory=dict)
    is_finished: bool = False

    def to_dict(self) -> dict:
        return {
            "questions": [q.to_dict() for q in self.questions],
            "current_index": self.current_index,
            "score": self.score,
            # JSON object keys are strings
            "answers": {str(i): a for i, a in self.answers.items()},
            "is_finished": self.is_finished,
        }

    @classmethod
    def from_dict(cls, data: dict) -> QuizState:
        questions = [Question.from_dict(q) for q in data["questions"]]
        raw_answers = data.get("answers") or {}
        if isinstance(raw_answers, list):
            # Sparse array layout: unanswered slots are null
            pairs = [(i, a) for i, a in enumerate(raw_answers) if a is not None]
        elif isinstance(raw_answers, dict):
            pairs = [(int(i), a) for i, a in raw_answers.items()]
        else:
            raise ValueError("answers must be a mapping or a list")
        answers: dict[int, int] = {}
        for i, a in pairs:
            if not 0 <= i < len(questions):
                raise ValueError(f"answer for unknown question index {i}")
            if isinstance(a, bool) or not isinstance(a, int) or not 0 <= a < len(questions[i].options):
                raise ValueError(f"answer out of range at index {i}: {a!r}")
            answers[i] = a
        current_index = int(data.get("current_index", 0))
        if current_index < 0:
            raise ValueError(f"negative current_index: {current_index}")
        return cls(
            questions=questions,
            current_index=current_index,
            score=int(data.get("score", 0)),
            answers=answers,
            is_finished=bool(data.get("is_finished", False)),
        )


@dataclass
class PersistedSession:
    subject: str
    difficulty: Difficulty
    mode: SessionMode
    state: QuizState
    date: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "subject": self.subject,
            "difficulty": self.difficulty.value,
            "mode": self.mode.value,
            "state": self.state.to_dict(),
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PersistedSession:
        return cls(
            subject=str(data["subject"]),
            difficulty=Difficulty.parse(data["difficulty"]),
            mode=SessionMode(data.get("mode") or SessionMode.PRACTICE.value),
            state=QuizState.from_dict(data["state"]),
            date=str(data.get("date", "")),
        )


@dataclass
class SubjectStats:
    total_attempted: int = 0
    total_correct: int = 0


@dataclass(frozen=True)
class ExamResult:
    id: str
    date: str
    subject_id: str
    subject_name: str
    score: int
    total_questions: int
    difficulty: str
    mode: str

    @classmethod
    def create(
        cls,
        subject_id: str,
        score: int,
        total_questions: int,
        difficulty: Difficulty,
        mode: SessionMode,
    ) -> ExamResult:
        return cls(
            id=str(uuid.uuid4()),
            date=_now(),
            subject_id=subject_id,
            subject_name=subject_name(subject_id),
            score=score,
            total_questions=total_questions,
            difficulty=difficulty.value,
            mode=mode.value,
        )

    @property
    def percentage(self) -> int:
        if self.total_questions <= 0:
            return 0
        return round(self.score / self.total_questions * 100)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "subject_id": self.subject_id,
            "subject_name": self.subject_name,
            "score": self.score,
            "total_questions": self.total_questions,
            "difficulty": self.difficulty,
            "mode": self.mode,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ExamResult:
        """Rebuild a stored result. Only subject and score are required;
        records from older clients lack mode, difficulty or names."""
        sid = str(data["subject_id"])
        score = int(data["score"])
        total = int(data["total_questions"])
        if score < 0 or total < 0:
            raise ValueError(f"negative score {score}/{total}")
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            date=str(data.get("date") or ""),
            subject_id=sid,
            subject_name=str(data.get("subject_name") or subject_name(sid)),
            score=score,
            total_questions=total,
            difficulty=str(data.get("difficulty") or Difficulty.MEDIUM.value).lower(),
            mode=str(data.get("mode") or SessionMode.PRACTICE.value).lower(),
        )


@dataclass(frozen=True)
class BookmarkedQuestion:
    question: Question
    saved_at: str = field(default_factory=_now)

    @property
    def id(self) -> str:
        return self.question.id

    def to_dict(self) -> dict:
        return {**self.question.to_dict(), "saved_at": self.saved_at}

    @classmethod
    def from_dict(cls, data: dict) -> BookmarkedQuestion:
        return cls(question=Question.from_dict(data), saved_at=str(data.get("saved_at", "")))


@dataclass
class UserStats:
    total_questions: int = 0
    total_correct: int = 0
    subject_stats: dict[str, SubjectStats] = field(default_factory=dict)
    history: list[ExamResult] = field(default_factory=list)
    bookmarks: list[BookmarkedQuestion] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_questions": self.total_questions,
            "total_correct": self.total_correct,
            "subject_stats": {
                sid: {"total_attempted": s.total_attempted, "total_correct": s.total_correct}
                for sid, s in self.subject_stats.items()
            },
            "history": [r.to_dict() for r in self.history],
            "bookmarks": [b.to_dict() for b in self.bookmarks],
        }

    @classmethod
    def from_dict(cls, data: dict) -> UserStats:
        """Rebuild the stats record field by field.

        Missing or mistyped counters read as zero. History and bookmark
        entries that cannot be repaired are dropped one at a time, so a
        single bad entry never costs the rest of the record.
        """
        subject_stats: dict[str, SubjectStats] = {}
        raw_subjects = data.get("subject_stats")
        if isinstance(raw_subjects, dict):
            for sid, s in raw_subjects.items():
                if not isinstance(s, dict):
                    log.warning("Dropping subject stats for %s: %r", sid, s)
                    continue
                subject_stats[sid] = SubjectStats(
                    total_attempted=_count(s.get("total_attempted")),
                    total_correct=_count(s.get("total_correct")),
                )
        elif raw_subjects is not None:
            log.warning("Dropping subject_stats: expected an object")

        bookmarks: list[BookmarkedQuestion] = []
        for b in _entries(data.get("bookmarks"), BookmarkedQuestion.from_dict, "bookmark"):
            if all(b.id != kept.id for kept in bookmarks):
                bookmarks.append(b)

        return cls(
            total_questions=_count(data.get("total_questions")),
            total_correct=_count(data.get("total_correct")),
            subject_stats=subject_stats,
            history=_entries(data.get("history"), ExamResult.from_dict, "history"),
            bookmarks=bookmarks,
        )


def _count(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _entries(items, parse, what: str) -> list:
    if items is None:
        return []
    if not isinstance(items, list):
        log.warning("Dropping %s: expected a list, got %s", what, type(items).__name__)
        return []
    parsed = []
    for i, item in enumerate(items):
        try:
            parsed.append(parse(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log.warning("Dropping %s entry %d: %s", what, i, e)
    return parsed


@dataclass
class UserProfile:
    email: str
    name: str
    is_verified: bool = False
