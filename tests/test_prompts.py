"""Tests for prompt templates."""
from __future__ import annotations

from quiz_practice.prompts import (
    MOCK_EXAM_GUIDANCE,
    QUESTION_BATCH_PROMPT,
    format_subject_guidance,
)


def test_batch_prompt_formats():
    prompt = QUESTION_BATCH_PROMPT.format(
        subject_name="History",
        difficulty="Easy",
        language="Bengali",
        count=5,
        subject_guidance=format_subject_guidance("History", False),
    )
    assert "Subject: History" in prompt
    assert "exactly 5 multiple-choice questions" in prompt
    assert "in Bengali" in prompt
    assert '"correct_answer_index": 0' in prompt


def test_subject_guidance():
    assert format_subject_guidance("Geography", False) == (
        "Keep every question strictly within Geography."
    )
    assert format_subject_guidance("Full Mock Exam", True) == MOCK_EXAM_GUIDANCE
