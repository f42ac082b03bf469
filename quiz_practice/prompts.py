"""Prompt templates for question generation."""
from __future__ import annotations

QUESTION_BATCH_PROMPT = """\
You are writing practice questions for a competitive-exam preparation app.

Subject: {subject_name}
Difficulty: {difficulty}
Language: {language}

{subject_guidance}

Instructions:
1. Write exactly {count} multiple-choice questions for this subject at the \
requested difficulty. Easy questions test recall of common facts; medium \
questions need one step of reasoning; hard questions combine several facts or \
steps.
2. Each question has exactly 4 options. Exactly one option is correct and \
the other three are plausible but clearly wrong to someone who knows the topic.
3. Set correct_answer_index to the position of the correct option (0-based).
4. Write an explanation (2-4 sentences) of why the correct option is right.
5. Write an explanation_summary of at most 15 words.
6. Write the question, options and explanations in {language}.
7. Do not repeat questions and do not number the options.

Respond in this exact JSON format only, with no other text:
{{
  "questions": [
    {{
      "question_text": "The question",
      "options": ["option 1", "option 2", "option 3", "option 4"],
      "correct_answer_index": 0,
      "explanation": "Why the correct option is right",
      "explanation_summary": "One-line takeaway"
    }}
  ]
}}
"""

MOCK_EXAM_GUIDANCE = """\
This is a full mock exam. Spread the questions across General Science, \
General Knowledge, Current Affairs, English, Mathematics, Reasoning, History \
and Geography."""

SUBJECT_GUIDANCE = "Keep every question strictly within {subject_name}."


def format_subject_guidance(subject_name: str, comprehensive: bool) -> str:
    if comprehensive:
        return MOCK_EXAM_GUIDANCE
    return SUBJECT_GUIDANCE.format(subject_name=subject_name)
