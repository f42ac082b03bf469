"""Ask an LLM for batches of multiple-choice questions."""
from __future__ import annotations

import json
import logging
import re
import uuid
from typing import TYPE_CHECKING

from quiz_practice.errors import GenerationFailure
from quiz_practice.models import (
    COMPREHENSIVE_SUBJECT,
    Difficulty,
    Language,
    Question,
    subject_name,
)
from quiz_practice.prompts import QUESTION_BATCH_PROMPT, format_subject_guidance
from quiz_practice.providers.base import QuestionProvider

if TYPE_CHECKING:
    from quiz_practice.providers.base import LLMProvider

_log = logging.getLogger("quiz_practice.qgen")

MAX_RETRIES = 3


def _extract_json(text: str) -> dict | None:
    """Extract a JSON object from an LLM response.

    Strips ``<think>`` blocks, then tries a fenced code block, then the last
    balanced ``{…}`` block in the text.
    """
    text = re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()

    m = re.search(r"```(?:json)?\s*\n?({.*?})\s*\n?```", text, re.DOTALL)
    if m:
        try:
            return json.loads(m.group(1))
        except json.JSONDecodeError:
            pass

    for candidate in reversed(_find_json_objects(text)):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


def _find_json_objects(text: str) -> list[str]:
    """Find balanced top-level ``{…}`` substrings in *text*."""
    results: list[str] = []
    depth = 0
    start = -1
    in_str = False
    escape = False
    for i, ch in enumerate(text):
        if in_str:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"' and depth > 0:
            in_str = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                results.append(text[start : i + 1])
    return results


def _validate_item(data: dict) -> str | None:
    """Check one generated question, coercing small mistakes in place.

    Returns ``None`` when the item is usable, otherwise the reason it was dropped.
    """
    if not isinstance(data, dict):
        return f"expected object, got {type(data).__name__}"
    required = {"question_text", "options", "correct_answer_index", "explanation"}
    missing = required - data.keys()
    if missing:
        return f"missing fields: {', '.join(sorted(missing))}"

    text = data["question_text"]
    if not isinstance(text, str) or not text.strip():
        return "empty question_text"

    options = data["options"]
    if not isinstance(options, list) or len(options) < 2:
        return "options must be a list of at least 2"
    options = [str(o).strip() for o in options]
    if any(not o for o in options):
        return "blank option"
    if len({o.lower() for o in options}) != len(options):
        return "duplicate options"
    data["options"] = options

    ci = data["correct_answer_index"]
    if isinstance(ci, str) and ci.strip().isdigit():
        ci = int(ci.strip())
    if isinstance(ci, bool) or not isinstance(ci, int):
        return f"correct_answer_index not an int: {ci!r}"
    if not 0 <= ci < len(options):
        return f"correct_answer_index out of range: {ci}"
    data["correct_answer_index"] = ci

    if not isinstance(data["explanation"], str):
        return "explanation must be a string"
    return None


def _parse_batch(response: str, subject: str, difficulty: Difficulty) -> list[Question]:
    data = _extract_json(response)
    if data is None:
        _log.info("  No JSON in response")
        return []
    items = data.get("questions")
    if not isinstance(items, list):
        _log.info("  Response has no 'questions' list")
        return []

    questions: list[Question] = []
    for i, item in enumerate(items):
        reason = _validate_item(item)
        if reason:
            _log.info("  Dropped item %d: %s", i, reason)
            continue
        summary = item.get("explanation_summary")
        questions.append(Question(
            id=str(uuid.uuid4()),
            question_text=item["question_text"].strip(),
            options=item["options"],
            correct_answer_index=item["correct_answer_index"],
            explanation=item["explanation"].strip(),
            explanation_summary=summary.strip() if isinstance(summary, str) and summary.strip() else None,
            subject=subject,
            difficulty=difficulty.value,
        ))
    return questions


class LLMQuestionProvider(QuestionProvider):
    def __init__(self, llm: LLMProvider, thinking: bool = False):
        self.llm = llm
        self.thinking = thinking

    async def generate_questions(
        self,
        subject: str,
        language: Language,
        difficulty: Difficulty,
        count: int,
    ) -> list[Question]:
        """Generate up to *count* questions.

        Retries while a response yields no usable question. Raises
        GenerationFailure when the final attempt could not reach the LLM.
        """
        prompt = QUESTION_BATCH_PROMPT.format(
            subject_name=subject_name(subject),
            difficulty=difficulty.label,
            language=language.label,
            count=count,
            subject_guidance=format_subject_guidance(
                subject_name(subject), subject == COMPREHENSIVE_SUBJECT
            ),
        )
        last_error: Exception | None = None
        for attempt in range(MAX_RETRIES):
            _log.info("Generate %d %s/%s questions (attempt %d/%d) via %s",
                      count, subject, difficulty.value, attempt + 1, MAX_RETRIES, self.llm.name())
            try:
                response = await self.llm.generate(prompt, temperature=0.7, thinking=self.thinking)
            except Exception as e:
                last_error = e
                _log.warning("  LLM call failed: %s", e)
                continue
            questions = _parse_batch(response, subject, difficulty)
            if questions:
                _log.info("  Got %d/%d usable questions", len(questions), count)
                return questions[:count]
            last_error = None

        if last_error is not None:
            raise GenerationFailure(f"question provider unavailable: {last_error}") from last_error
        return []
