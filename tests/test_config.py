"""Tests for configuration loading and saving."""
from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from quiz_practice.config import DEFAULTS, Settings, coerce_setting, load_settings, save_settings
from quiz_practice.models import Language


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.llm_provider == "ollama"
        assert s.language == "en"
        assert s.timer_tick_seconds == 1.0

    def test_to_dict(self):
        d = Settings().to_dict()
        assert set(d) == set(DEFAULTS)

    def test_quiz_language(self):
        assert Settings(language="bn").quiz_language is Language.BENGALI
        assert Settings(language="xx").quiz_language is Language.ENGLISH


class TestCoerceSetting:
    def test_valid_values(self):
        assert coerce_setting("timer_tick_seconds", 2) == 2.0
        assert coerce_setting("llm_thinking", True) is True
        assert coerce_setting("language", "Hindi") == "hi"
        assert coerce_setting("llm_provider", "openai") == "openai"

    @pytest.mark.parametrize("name,value", [
        ("timer_tick_seconds", "x"),
        ("timer_tick_seconds", 0),
        ("timer_tick_seconds", True),
        ("llm_thinking", "yes"),
        ("language", "fr"),
        ("llm_provider", "carrier-pigeon"),
        ("llm_model", ""),
        ("db_path", 5),
    ])
    def test_rejects_bad_values(self, name, value):
        with pytest.raises(ValueError):
            coerce_setting(name, value)


class TestLoadSaveSettings:
    def test_load_from_file(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"llm_provider": "openai", "language": "hi"}))

        with patch("quiz_practice.config.CONFIG_PATH", config_path):
            s = load_settings()
        assert s.llm_provider == "openai"
        assert s.language == "hi"
        assert s.db_path == "progress.db"

    def test_load_missing_file(self, tmp_path):
        with patch("quiz_practice.config.CONFIG_PATH", tmp_path / "nonexistent.json"):
            s = load_settings()
        assert s.llm_provider == "ollama"

    def test_language_display_name_migrated(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"language": "Bengali"}))
        with patch("quiz_practice.config.CONFIG_PATH", config_path):
            s = load_settings()
        assert s.language == "bn"

    def test_unknown_keys_ignored(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"session_size": 20}))
        with patch("quiz_practice.config.CONFIG_PATH", config_path):
            s = load_settings()
        assert not hasattr(s, "session_size")

    def test_save_creates_file(self, tmp_path):
        config_path = tmp_path / "config.json"
        with patch("quiz_practice.config.CONFIG_PATH", config_path):
            save_settings(Settings(llm_provider="anthropic"))
        assert json.loads(config_path.read_text())["llm_provider"] == "anthropic"
