"""Exception hierarchy for the scraping core.

Configuration errors fail fast before any browser is launched. Navigation,
extraction and cancellation errors are recovered at the session boundary.
Orchestration errors are recovered at the (term, site) loop boundary, and
upstream errors are absorbed by the match scorer's local fallback.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "JobScraperError",
    "ConfigurationError",
    "UnknownSiteError",
    "NavigationError",
    "ExtractionError",
    "ScrapeCancelledError",
    "OrchestrationError",
    "UpstreamServiceError",
]


class JobScraperError(Exception):
    """Base exception for the job scraper."""


class ConfigurationError(JobScraperError):
    """Static configuration is missing or invalid."""


class UnknownSiteError(ConfigurationError):
    """A site identifier is not in the site profile registry."""

    def __init__(self, site_id: str, valid_sites: Optional[list[str]] = None) -> None:
        self.site_id = site_id
        self.valid_sites = list(valid_sites or [])
        message = f"Unknown site: '{site_id}'"
        if self.valid_sites:
            message += f". Must be one of: {', '.join(self.valid_sites)}"
        super().__init__(message)


class NavigationError(JobScraperError):
    """Browser navigation, click or network wait failed."""


class ExtractionError(JobScraperError):
    """A rendered snapshot could not be parsed at all."""


class ScrapeCancelledError(JobScraperError):
    """The caller's cancel token fired or its deadline passed."""


class OrchestrationError(JobScraperError):
    """An unexpected failure escaped a single (term, site) scrape."""

    def __init__(self, term: str, site_id: str, cause: BaseException) -> None:
        self.term = term
        self.site_id = site_id
        self.cause = cause
        super().__init__(f"{site_id} failed for term '{term}': {cause}")


class UpstreamServiceError(JobScraperError):
    """The LLM-backed scoring service is unavailable or returned garbage."""
