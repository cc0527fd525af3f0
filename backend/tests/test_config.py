"""
Tests for environment-backed configuration accessors.
"""
import logging
from pathlib import Path

from foodlog import config


def test_defaults(monkeypatch):
    for name in ("SEARCH_REGION", "SEARCH_RESULT_COUNT", "OPENAI_MODEL", "OPENAI_VISION_MODEL",
                 "LLM_TEMPERATURE", "LLM_MAX_TOKENS", "DEFAULT_USER_WEIGHT_KG", "FOOD_ENTRIES_TABLE"):
        monkeypatch.delenv(name, raising=False)
    assert config.get_search_region() == "AU"
    assert config.get_search_result_count() == 5
    assert config.get_openai_model() == "gpt-4o-mini"
    assert config.get_openai_vision_model() == "gpt-4o"
    assert config.get_llm_temperature() == 0.3
    assert config.get_llm_max_tokens() == 500
    assert config.get_default_user_weight_kg() == 70.0
    assert config.get_food_entries_table() == "food_entries"


def test_overrides(monkeypatch):
    monkeypatch.setenv("SEARCH_REGION", "NZ")
    monkeypatch.setenv("SEARCH_RESULT_COUNT", "3")
    monkeypatch.setenv("LLM_TEMPERATURE", "0.7")
    assert config.get_search_region() == "NZ"
    assert config.get_search_result_count() == 3
    assert config.get_llm_temperature() == 0.7


def test_invalid_number_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("SEARCH_RESULT_COUNT", "five")
    monkeypatch.setenv("LLM_MAX_TOKENS", "")
    assert config.get_search_result_count() == 5
    assert config.get_llm_max_tokens() == 500


def test_search_retries_at_least_one(monkeypatch):
    monkeypatch.setenv("SEARCH_MAX_RETRIES", "0")
    assert config.get_search_max_retries() == 1


def test_supabase_public_fallbacks(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_ANON_KEY", "anon")
    assert config.get_supabase_url() == "https://project.supabase.co"
    assert config.get_supabase_key() == "anon"


def test_local_ledger_path(monkeypatch, tmp_path):
    monkeypatch.delenv("LOCAL_LEDGER_PATH", raising=False)
    default = config.get_local_ledger_path()
    assert default.parts[-2:] == ("data", "food_entries.json")
    monkeypatch.setenv("LOCAL_LEDGER_PATH", str(tmp_path / "x.json"))
    assert config.get_local_ledger_path() == Path(tmp_path / "x.json")


def test_log_config_never_logs_secrets(monkeypatch, caplog):
    monkeypatch.setenv("BRAVE_API_KEY", "brave-secret")
    monkeypatch.setenv("OPENAI_API_KEY", "openai-secret")
    with caplog.at_level(logging.INFO, logger="foodlog.config"):
        config.log_config()
    text = caplog.text
    assert "CONFIG:" in text
    assert "brave_key=True" in text
    assert "brave-secret" not in text
    assert "openai-secret" not in text
