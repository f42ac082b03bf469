from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from quiz_practice.models import Language

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "ollama",
    "llm_model": "qwen3:8b",
    "ollama_url": "http://localhost:11434",
    "llm_thinking": False,
    "language": "en",
    "db_path": "progress.db",
    "timer_tick_seconds": 1.0,
}


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    ollama_url: str = DEFAULTS["ollama_url"]
    llm_thinking: bool = DEFAULTS["llm_thinking"]
    language: str = DEFAULTS["language"]
    db_path: str = DEFAULTS["db_path"]
    timer_tick_seconds: float = DEFAULTS["timer_tick_seconds"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    @property
    def quiz_language(self) -> Language:
        try:
            return Language(self.language)
        except ValueError:
            return Language.ENGLISH

    def to_dict(self) -> dict:
        return {
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "ollama_url": self.ollama_url,
            "llm_thinking": self.llm_thinking,
            "language": self.language,
            "db_path": self.db_path,
            "timer_tick_seconds": self.timer_tick_seconds,
        }


LLM_PROVIDERS = ("ollama", "anthropic", "openai")
LANGUAGE_NAMES = {"English": "en", "Bengali": "bn", "Hindi": "hi"}


def coerce_setting(name: str, value):
    """Check one incoming value against its field's type; raises ValueError."""
    default = DEFAULTS[name]
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"{name} must be true or false")
        return value
    if isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ValueError(f"{name} must be a positive number")
        return float(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")
    value = value.strip()
    if name == "llm_provider" and value not in LLM_PROVIDERS:
        raise ValueError(f"llm_provider must be one of {', '.join(LLM_PROVIDERS)}")
    if name == "language":
        value = LANGUAGE_NAMES.get(value, value)
        if value not in {lang.value for lang in Language}:
            raise ValueError("language must be en, bn or hi")
    return value


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        # Accept the display names the quiz client used to store
        if raw.get("language") in LANGUAGE_NAMES:
            raw["language"] = LANGUAGE_NAMES[raw["language"]]
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
