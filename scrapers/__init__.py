"""
scrapers/__init__.py

JOB SCRAPER: SCRAPERS PACKAGE
=============================

Purpose:
    Scrape job listings from public job boards with a real browser, paced
    to resemble a human visitor, and return them as ``JobRecord`` objects
    deduplicated by title + company.

Public API:

    from scrapers import MultiSiteOrchestrator

    # Async usage
    orchestrator = MultiSiteOrchestrator()
    jobs = await orchestrator.scrape_all(["Python Developer"], ["seek", "indeed"])

    # Synchronous usage
    jobs = MultiSiteOrchestrator().run_sync(["Python Developer"], sites=["seek"])

    # Metrics from the most recent call
    orchestrator.last_run.to_dict()

Advanced (single session / site table):

    from scrapers import PageSessionDriver, SITE_REGISTRY, ScrapeRequest
"""

from scrapers.cancellation import CancelToken
from scrapers.errors import (
    ConfigurationError,
    ExtractionError,
    JobScraperError,
    NavigationError,
    OrchestrationError,
    ScrapeCancelledError,
    UnknownSiteError,
    UpstreamServiceError,
)
from scrapers.models import JobRecord, ScrapeRequest
from scrapers.site_profiles import SITE_REGISTRY, SiteProfile, SiteRegistry
from scrapers.human_patterns import HumanPatternScheduler, ZeroDelayScheduler
from scrapers.extractor import extract_jobs
from scrapers.session_driver import PageSessionDriver, SessionResult
from scrapers.orchestrator import MultiSiteOrchestrator, ScrapeMetrics

__all__ = [
    # Primary entry point
    "MultiSiteOrchestrator",
    "ScrapeMetrics",
    # Single-session layer
    "PageSessionDriver",
    "SessionResult",
    "CancelToken",
    # Site table + parsing
    "SITE_REGISTRY",
    "SiteRegistry",
    "SiteProfile",
    "extract_jobs",
    # Pacing
    "HumanPatternScheduler",
    "ZeroDelayScheduler",
    # Data
    "JobRecord",
    "ScrapeRequest",
    # Errors
    "JobScraperError",
    "ConfigurationError",
    "UnknownSiteError",
    "NavigationError",
    "ExtractionError",
    "ScrapeCancelledError",
    "OrchestrationError",
    "UpstreamServiceError",
]
