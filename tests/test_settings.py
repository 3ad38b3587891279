# tests/test_settings.py

import time

import pytest

from config.settings import LLMConfig, ScrapeConfig, ServerConfig
from scrapers.cancellation import CancelToken
from scrapers.errors import ScrapeCancelledError
from scrapers.models import ScrapeRequest


def test_scrape_defaults(monkeypatch):
    for name in ("DEFAULT_LOCATION", "DEFAULT_PAGE_LIMIT", "DEFAULT_SITES", "NAVIGATION_TIMEOUT_MS"):
        monkeypatch.delenv(name, raising=False)
    cfg = ScrapeConfig()
    assert cfg.default_location == "Perth, WA"
    assert cfg.default_page_limit == 1
    assert cfg.default_sites == ["seek", "indeed", "linkedin"]
    assert cfg.navigation_timeout_ms == 60000


def test_navigation_timeout_never_below_sixty_seconds(monkeypatch):
    monkeypatch.setenv("NAVIGATION_TIMEOUT_MS", "5000")
    assert ScrapeConfig().navigation_timeout_ms == 60000
    monkeypatch.setenv("NAVIGATION_TIMEOUT_MS", "90000")
    assert ScrapeConfig().navigation_timeout_ms == 90000


def test_sites_and_seed_from_env(monkeypatch):
    monkeypatch.setenv("DEFAULT_SITES", " seek , dice ,")
    monkeypatch.setenv("SCHEDULER_SEED", "42")
    cfg = ScrapeConfig()
    assert cfg.default_sites == ["seek", "dice"]
    assert cfg.scheduler_seed == 42


def test_llm_enabled_only_with_key():
    assert not LLMConfig(api_key="  ").enabled
    assert LLMConfig(api_key="sk-test").enabled


def test_server_cors_origins(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000,https://jobs.example.com")
    assert ServerConfig().cors_origins == ["http://localhost:3000", "https://jobs.example.com"]


def test_scrape_request_validates_page_limit():
    assert ScrapeRequest("seek", "Dev").page_limit == 1
    with pytest.raises(ValueError):
        ScrapeRequest("seek", "Dev", "Perth, WA", page_limit=0)


def test_cancel_token_deadline():
    token = CancelToken(timeout_s=0.01)
    assert not token.cancelled
    time.sleep(0.02)
    assert token.cancelled
    with pytest.raises(ScrapeCancelledError, match="deadline"):
        token.raise_if_cancelled("between_sites")


def test_cancel_token_without_deadline():
    token = CancelToken()
    assert token.remaining_s() is None
    token.raise_if_cancelled()
    token.cancel()
    with pytest.raises(ScrapeCancelledError, match="cancelled"):
        token.raise_if_cancelled()
