from __future__ import annotations

import logging
import os

from quiz_practice.providers.base import LLMProvider

log = logging.getLogger("quiz_practice.llm")

SYSTEM_PROMPT = "You write accurate exam-preparation quiz questions and reply with JSON only."


class AnthropicProvider(LLMProvider):
    def __init__(self, model: str = "claude-sonnet-4-20250514", max_tokens: int = 4096):
        import anthropic
        self.client = anthropic.AsyncAnthropic(
            api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
        )
        self.model = model
        self.max_tokens = max_tokens

    async def generate(self, prompt: str, temperature: float = 0.7, thinking: bool = True) -> str:
        message = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=temperature,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(block.text for block in message.content if block.type == "text")
        log.info("Anthropic returned %d chars (stop: %s)", len(text), message.stop_reason)
        return text

    def name(self) -> str:
        return f"anthropic/{self.model}"
