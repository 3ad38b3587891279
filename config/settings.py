"""Centralised configuration settings for the job scraper service.

All environment variable reads are consolidated here into typed, frozen
dataclass instances. Every other module should import the module-level
singletons (``scrape_config``, ``llm_config``, ``server_config``) from this
module instead of calling ``os.getenv()`` directly.

Values are read from the process environment after an optional ``.env``
file in the project root has been loaded. Variables already set in the
process environment win over the file.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

__all__ = [
    "scrape_config",
    "llm_config",
    "server_config",
    "get_settings",
    "ScrapeConfig",
    "LLMConfig",
    "ServerConfig",
]

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Browser navigation must be allowed at least this long to reach network idle.
MIN_NAVIGATION_TIMEOUT_MS = 60000


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _optional_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    return int(raw)


@dataclass(frozen=True)
class ScrapeConfig:
    """Scraping session and orchestration configuration.

    Attributes:
        default_location: Region string used when a request omits one.
        default_page_limit: Result pages scraped per (term, site) when the
            caller does not specify a limit.
        max_page_limit: Upper bound accepted from HTTP callers.
        default_sites: Sites searched when a multi-site request omits them.
        headless: Launch Chromium headless.
        navigation_timeout_ms: ``page.goto`` timeout; never below 60 s.
        scrape_timeout_s: Overall deadline for one multi-site scrape;
            ``0`` disables it.
        scheduler_seed: Seed for the human-pattern scheduler; ``None``
            draws from system entropy.
    """

    default_location: str = field(
        default_factory=lambda: os.getenv("DEFAULT_LOCATION", "Perth, WA")
    )
    default_page_limit: int = field(
        default_factory=lambda: int(os.getenv("DEFAULT_PAGE_LIMIT", "1"))
    )
    max_page_limit: int = field(
        default_factory=lambda: int(os.getenv("MAX_PAGE_LIMIT", "10"))
    )
    default_sites: list[str] = field(
        default_factory=lambda: _split_csv(
            os.getenv("DEFAULT_SITES", "seek,indeed,linkedin")
        )
    )
    headless: bool = field(
        default_factory=lambda: os.getenv("HEADLESS", "true").lower() == "true"
    )
    navigation_timeout_ms: int = field(
        default_factory=lambda: max(
            MIN_NAVIGATION_TIMEOUT_MS,
            int(os.getenv("NAVIGATION_TIMEOUT_MS", str(MIN_NAVIGATION_TIMEOUT_MS))),
        )
    )
    scrape_timeout_s: float = field(
        default_factory=lambda: float(os.getenv("SCRAPE_TIMEOUT_S", "0"))
    )
    scheduler_seed: Optional[int] = field(
        default_factory=lambda: _optional_int(os.getenv("SCHEDULER_SEED"))
    )


@dataclass(frozen=True)
class LLMConfig:
    """Match-scoring / keyword-extraction model configuration.

    Attributes:
        api_key: Provider API key. When empty the scorer skips the remote
            call and uses its local heuristic.
        scoring_model: ``litellm`` model string for job-match scoring.
        keyword_model: ``litellm`` model string for search-term generation.
        timeout_s: Per-request timeout for model calls.
    """

    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    scoring_model: str = field(
        default_factory=lambda: os.getenv("SCORING_MODEL", "gpt-4o-mini")
    )
    keyword_model: str = field(
        default_factory=lambda: os.getenv("KEYWORD_MODEL", "gpt-4o")
    )
    timeout_s: float = field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT_S", "60"))
    )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key.strip())


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server configuration.

    Attributes:
        host: Interface uvicorn binds to.
        port: Port uvicorn listens on.
        cors_origins: Origins allowed by the CORS middleware.
        log_level: Python ``logging`` level string (e.g. ``"INFO"``).
    """

    host: str = field(default_factory=lambda: os.getenv("FASTAPI_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("FASTAPI_PORT", "5000")))
    cors_origins: list[str] = field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ORIGINS", "*"))
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def get_settings() -> tuple[ScrapeConfig, LLMConfig, ServerConfig]:
    """Load ``.env`` and build all configuration singletons.

    Called once at module import time; the results are stored as
    module-level singletons.

    Returns:
        A three-element tuple ``(scrape_config, llm_config, server_config)``.
    """
    load_dotenv(PROJECT_ROOT / ".env", override=False)
    logging.getLogger("settings").debug("Loaded settings from environment")
    return ScrapeConfig(), LLMConfig(), ServerConfig()


scrape_config, llm_config, server_config = get_settings()
