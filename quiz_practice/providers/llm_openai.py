from __future__ import annotations

import logging
import os

from quiz_practice.providers.base import LLMProvider

log = logging.getLogger("quiz_practice.llm")


class OpenAIProvider(LLMProvider):
    def __init__(self, model: str = "gpt-4o-mini"):
        import openai
        self.client = openai.AsyncOpenAI(
            api_key=os.environ.get("OPENAI_API_KEY", ""),
        )
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7, thinking: bool = True) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": "Reply with a single JSON object."},
                {"role": "user", "content": prompt},
            ],
        )
        content = resp.choices[0].message.content or ""
        log.info("OpenAI returned %d chars (finish: %s)", len(content), resp.choices[0].finish_reason)
        return content

    def name(self) -> str:
        return f"openai/{self.model}"
