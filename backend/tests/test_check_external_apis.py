"""
Tests for the external service health-check script (mocked, no network).
Run from backend: python -m pytest tests/test_check_external_apis.py -v
"""
from unittest.mock import patch

from foodlog.errors import AuthError, UpstreamError
from foodlog.search.brave import SearchResult


def test_brave_without_key(monkeypatch):
    from scripts.check_external_apis import check_brave
    monkeypatch.setenv("BRAVE_API_KEY", "")
    ok, msg = check_brave()
    assert ok is False
    assert "no API key" in msg


def test_openai_without_key(monkeypatch):
    from scripts.check_external_apis import check_openai
    monkeypatch.setenv("OPENAI_API_KEY", "")
    ok, msg = check_openai()
    assert ok is False
    assert "no API key" in msg


@patch("foodlog.search.brave.BraveSearchClient.search")
def test_brave_success(mock_search, monkeypatch):
    from scripts.check_external_apis import check_brave
    monkeypatch.setenv("BRAVE_API_KEY", "test-key")
    mock_search.return_value = [SearchResult(title="Banana", url="https://nutritionix.com/banana", description="105 cal")]
    ok, msg = check_brave()
    assert ok is True
    assert "results=1" in msg


@patch("foodlog.search.brave.BraveSearchClient.search")
def test_brave_upstream_failure(mock_search, monkeypatch):
    from scripts.check_external_apis import check_brave
    monkeypatch.setenv("BRAVE_API_KEY", "test-key")
    mock_search.side_effect = UpstreamError("HTTP 503")
    ok, msg = check_brave()
    assert ok is False
    assert "503" in msg


@patch("foodlog.llm.client.OpenAIChatClient.complete")
def test_openai_auth_failure(mock_complete, monkeypatch):
    from scripts.check_external_apis import check_openai
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    mock_complete.side_effect = AuthError("HTTP 401")
    ok, msg = check_openai()
    assert ok is False
    assert "401" in msg


def test_main_exit_code():
    """main() returns 0 only when both services work."""
    from scripts.check_external_apis import main
    with patch("scripts.check_external_apis.check_brave", return_value=(True, "ok")):
        with patch("scripts.check_external_apis.check_openai", return_value=(True, "ok")):
            assert main() == 0
    with patch("scripts.check_external_apis.check_brave", return_value=(False, "no key")):
        with patch("scripts.check_external_apis.check_openai", return_value=(True, "ok")):
            assert main() == 1
    with patch("scripts.check_external_apis.check_brave", return_value=(True, "ok")):
        with patch("scripts.check_external_apis.check_openai", return_value=(False, "timeout")):
            assert main() == 1
