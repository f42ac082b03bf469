"""Aggregate statistics, exam history and bookmarks.

Every call re-reads the whole record from storage, mutates it and writes it
back. Two writers sharing the same storage can lose each other's updates;
the last write wins.
"""
from __future__ import annotations

import json
import logging

from quiz_practice.errors import CorruptPersistedState
from quiz_practice.models import (
    SUBJECTS,
    BookmarkedQuestion,
    ExamResult,
    Question,
    SubjectStats,
    UserStats,
)
from quiz_practice.storage import STATS_KEY, Storage

log = logging.getLogger("quiz_practice.stats")

HISTORY_LIMIT = 50


def _default_stats() -> UserStats:
    return UserStats(subject_stats={sid: SubjectStats() for sid in SUBJECTS})


class StatsStore:
    def __init__(self, storage: Storage):
        self.storage = storage

    def _load(self) -> UserStats:
        """Read the record for modification.

        Raises CorruptPersistedState when the blob is not a JSON object, so
        no mutator ever writes defaults over data it could not read.
        """
        raw = self.storage.get(STATS_KEY)
        if raw is None:
            return _default_stats()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptPersistedState(STATS_KEY, str(e)) from e
        if not isinstance(data, dict):
            raise CorruptPersistedState(STATS_KEY, f"expected an object, got {type(data).__name__}")
        stats = UserStats.from_dict(data)
        for sid in SUBJECTS:
            stats.subject_stats.setdefault(sid, SubjectStats())
        return stats

    def get_stats(self) -> UserStats:
        """Read the stats record, filling in anything an older schema lacks."""
        try:
            return self._load()
        except CorruptPersistedState as e:
            # The stored blob stays in place; mutators refuse to replace it
            log.error("Failed to parse stats: %s", e)
            return _default_stats()

    def _write(self, stats: UserStats) -> None:
        self.storage.set(STATS_KEY, json.dumps(stats.to_dict()))

    def update_stats(self, subject_id: str, is_correct: bool) -> UserStats:
        stats = self._load()
        stats.total_questions += 1
        if is_correct:
            stats.total_correct += 1
        sub = stats.subject_stats.setdefault(subject_id, SubjectStats())
        sub.total_attempted += 1
        if is_correct:
            sub.total_correct += 1
        self._write(stats)
        return stats

    def add_exam_result(self, result: ExamResult) -> None:
        stats = self._load()
        stats.history = [result, *stats.history][:HISTORY_LIMIT]
        self._write(stats)
        log.info("Recorded %s result for %s: %d/%d",
                 result.mode, result.subject_id, result.score, result.total_questions)

    def toggle_bookmark(self, question: Question) -> bool:
        """Add or remove *question*; returns whether it is bookmarked afterwards."""
        stats = self._load()
        existing = next(
            (i for i, b in enumerate(stats.bookmarks) if b.id == question.id), None
        )
        if existing is None:
            stats.bookmarks.insert(0, BookmarkedQuestion(question))
        else:
            del stats.bookmarks[existing]
        self._write(stats)
        return existing is None

    def remove_bookmark(self, question_id: str) -> bool:
        stats = self._load()
        kept = [b for b in stats.bookmarks if b.id != question_id]
        if len(kept) == len(stats.bookmarks):
            return False
        stats.bookmarks = kept
        self._write(stats)
        return True

    def get_bookmarks(self) -> list[BookmarkedQuestion]:
        return self.get_stats().bookmarks

    def is_bookmarked(self, question_id: str) -> bool:
        return any(b.id == question_id for b in self.get_bookmarks())


def _accuracy(correct: int, attempted: int) -> int:
    return round(correct / attempted * 100) if attempted > 0 else 0


def summarize_stats(stats: UserStats) -> dict:
    """Dashboard numbers: overall accuracy, per-subject mastery, best and worst subject."""
    performance = []
    for sid, name in SUBJECTS.items():
        sub = stats.subject_stats.get(sid, SubjectStats())
        performance.append({
            "subject_id": sid,
            "subject_name": name,
            "total_attempted": sub.total_attempted,
            "total_correct": sub.total_correct,
            "accuracy": _accuracy(sub.total_correct, sub.total_attempted),
        })
    performance.sort(key=lambda p: p["accuracy"], reverse=True)

    strongest = performance[0] if performance and performance[0]["total_attempted"] > 0 else None
    weakest = next(
        (p for p in reversed(performance) if p["total_attempted"] > 0 and p["accuracy"] < 50),
        None,
    )
    return {
        "total_questions": stats.total_questions,
        "total_correct": stats.total_correct,
        "overall_accuracy": _accuracy(stats.total_correct, stats.total_questions),
        "subject_performance": performance,
        "strongest_subject": strongest["subject_name"] if strongest else None,
        "weakest_subject": weakest["subject_name"] if weakest else None,
        "exams_taken": len(stats.history),
        "bookmark_count": len(stats.bookmarks),
    }
