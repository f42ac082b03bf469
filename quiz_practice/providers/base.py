from __future__ import annotations

from abc import ABC, abstractmethod

from quiz_practice.models import Difficulty, Language, Question


class LLMProvider(ABC):
    @abstractmethod
    async def generate(self, prompt: str, temperature: float = 0.7, thinking: bool = True) -> str:
        ...

    @abstractmethod
    def name(self) -> str:
        ...


class QuestionProvider(ABC):
    """Source of question batches for a quiz session."""

    @abstractmethod
    async def generate_questions(
        self,
        subject: str,
        language: Language,
        difficulty: Difficulty,
        count: int,
    ) -> list[Question]:
        ...
