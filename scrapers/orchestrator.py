"""
scrapers/orchestrator.py

MULTI-SITE ORCHESTRATOR
=======================

Runs the (search term x site) product one session at a time:

├── validate every site id up front (fail fast, before any delay)
├── shuffle terms and sites independently
├── pace with startup / inter-term / inter-site / post-result delays
├── isolate faults per pair (log, recovery delay, continue)
├── honour a cancel token / overall deadline between pairs
└── concatenate, pre-dedup delay, deduplicate by title+company

One process-wide asyncio.Lock per site keeps concurrent callers from
driving the same job board at the same time.

Usage:
    orchestrator = MultiSiteOrchestrator()
    jobs = await orchestrator.scrape_all(["Python Developer"], ["seek", "indeed"])
    print(orchestrator.last_run.to_dict())
"""

from __future__ import annotations

import asyncio
import logging
import time
import weakref
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config.settings import scrape_config
from Utils.normalise_dedupe import deduplicate_jobs

from .cancellation import CancelToken
from .errors import ConfigurationError, OrchestrationError, ScrapeCancelledError
from .human_patterns import DELAYS, DelayWindow, HumanPatternScheduler
from .models import JobRecord, ScrapeRequest
from .session_driver import PageSessionDriver, Sleep
from .site_profiles import SITE_REGISTRY, SiteProfile, SiteRegistry

LOG = logging.getLogger("orchestrator")

__all__ = ["PairOutcome", "ScrapeMetrics", "MultiSiteOrchestrator"]

# ================================================================================
# METRICS
# ================================================================================


@dataclass
class PairOutcome:
    term: str
    site_id: str
    jobs: int = 0
    pages_scraped: int = 0
    runtime_ms: float = 0.0
    error: Optional[str] = None


@dataclass
class ScrapeMetrics:
    pairs_attempted: int = 0
    pairs_succeeded: int = 0
    pairs_failed: int = 0

    total_jobs_raw: int = 0
    total_jobs_unique: int = 0
    deduped_jobs: int = 0

    execution_time_ms: float = 0.0
    cancelled: bool = False

    # site -> {"count": int, "runtime_ms": float, "errors": int}
    sites_scraped: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    outcomes: List[PairOutcome] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ================================================================================
# PER-SITE LOCKS
# ================================================================================

# Keyed by event loop so locks never cross loops (tests call asyncio.run repeatedly).
_SITE_LOCKS: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, asyncio.Lock]]" = (
    weakref.WeakKeyDictionary()
)


def site_lock(site_id: str) -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    locks = _SITE_LOCKS.setdefault(loop, {})
    if site_id not in locks:
        locks[site_id] = asyncio.Lock()
    return locks[site_id]


# ================================================================================
# ORCHESTRATOR
# ================================================================================


class MultiSiteOrchestrator:
    """Sequential, human-paced scraping across many terms and sites."""

    def __init__(
        self,
        registry: SiteRegistry = SITE_REGISTRY,
        scheduler: Optional[HumanPatternScheduler] = None,
        driver: Optional[PageSessionDriver] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.registry = registry
        self.scheduler = scheduler or HumanPatternScheduler(scrape_config.scheduler_seed)
        self._sleep: Sleep = sleep or asyncio.sleep
        self.driver = driver or PageSessionDriver(scheduler=self.scheduler, sleep=self._sleep)
        self.last_run: Optional[ScrapeMetrics] = None

    # ------------------------------------------------------------------ #
    # PUBLIC API
    # ------------------------------------------------------------------ #

    async def scrape_all(
        self,
        terms: Sequence[str],
        sites: Optional[Sequence[str]] = None,
        page_limit: Optional[int] = None,
        location: Optional[str] = None,
        timeout_s: Optional[float] = None,
        cancel: Optional[CancelToken] = None,
    ) -> List[JobRecord]:
        """Scrape every term on every site and return deduplicated jobs.

        Raises:
            UnknownSiteError: A site id is not registered. Raised before any
                delay or browser work.
            ConfigurationError: ``page_limit`` is below 1.
        """
        site_ids = list(sites) if sites is not None else list(scrape_config.default_sites)
        profiles = {site_id: self.registry.lookup(site_id) for site_id in site_ids}
        page_limit = self._resolve_page_limit(page_limit)
        location = location or scrape_config.default_location
        token = cancel or CancelToken(timeout_s if timeout_s is not None else scrape_config.scrape_timeout_s)

        metrics = ScrapeMetrics(
            sites_scraped={s: {"count": 0, "runtime_ms": 0.0, "errors": 0} for s in profiles}
        )
        self.last_run = metrics
        start = time.time()

        term_list = [t.strip() for t in terms if t and t.strip()]
        if not term_list or not profiles:
            LOG.info("Nothing to scrape (terms=%d, sites=%d)", len(term_list), len(profiles))
            return []

        term_order = self.scheduler.shuffled(term_list)
        site_order = self.scheduler.shuffled(list(profiles))
        LOG.info(
            "🚀 Starting scrape: %d term(s) x %d site(s) | location='%s' | pages=%d",
            len(term_order),
            len(site_order),
            location,
            page_limit,
        )

        all_jobs: List[JobRecord] = []
        try:
            await self._pause(DELAYS.RUN_START, token)
            for term in term_order:
                await self._pause(DELAYS.BETWEEN_TERMS, token)
                for site_id in site_order:
                    await self._pause(DELAYS.BETWEEN_SITES, token)
                    jobs, ok = await self._run_pair(
                        term, site_id, profiles[site_id], location, page_limit, token, metrics
                    )
                    all_jobs.extend(jobs)
                    await self._pause(DELAYS.POST_RESULT if ok else DELAYS.ERROR_RECOVERY, token)
        except ScrapeCancelledError as exc:
            metrics.cancelled = True
            LOG.warning("Scrape stopped early (%s); returning %d jobs so far", exc, len(all_jobs))

        if all_jobs and not metrics.cancelled:
            await self._pause(DELAYS.PRE_DEDUP, None)
        unique = deduplicate_jobs(all_jobs)

        metrics.total_jobs_raw = len(all_jobs)
        metrics.total_jobs_unique = len(unique)
        metrics.deduped_jobs = len(all_jobs) - len(unique)
        metrics.execution_time_ms = (time.time() - start) * 1000.0
        LOG.info(
            "🎉 Scrape completed: %d unique jobs (from %d raw) | %d/%d pairs ok in %.0f ms",
            metrics.total_jobs_unique,
            metrics.total_jobs_raw,
            metrics.pairs_succeeded,
            metrics.pairs_attempted,
            metrics.execution_time_ms,
        )
        return unique

    async def scrape_site(
        self,
        site_id: str,
        term: str,
        location: Optional[str] = None,
        page_limit: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> List[JobRecord]:
        """Scrape one site for one term; no orchestration delays."""
        profile = self.registry.lookup(site_id)
        page_limit = self._resolve_page_limit(page_limit)
        location = location or scrape_config.default_location

        metrics = ScrapeMetrics(sites_scraped={site_id: {"count": 0, "runtime_ms": 0.0, "errors": 0}})
        self.last_run = metrics
        start = time.time()

        jobs, _ = await self._run_pair(term, site_id, profile, location, page_limit, cancel, metrics)
        metrics.cancelled = cancel is not None and cancel.cancelled

        unique = deduplicate_jobs(jobs)
        metrics.total_jobs_raw = len(jobs)
        metrics.total_jobs_unique = len(unique)
        metrics.deduped_jobs = len(jobs) - len(unique)
        metrics.execution_time_ms = (time.time() - start) * 1000.0
        return unique

    def run_sync(self, terms: Sequence[str], **kwargs: Any) -> List[JobRecord]:
        """Blocking wrapper around ``scrape_all`` for scripts and the CLI."""
        return asyncio.run(self.scrape_all(terms, **kwargs))

    # ------------------------------------------------------------------ #
    # INTERNALS
    # ------------------------------------------------------------------ #

    async def _run_pair(
        self,
        term: str,
        site_id: str,
        profile: SiteProfile,
        location: str,
        page_limit: int,
        cancel: Optional[CancelToken],
        metrics: ScrapeMetrics,
    ) -> Tuple[List[JobRecord], bool]:
        """Run one (term, site) session; returns its records and whether it succeeded."""
        metrics.pairs_attempted += 1
        site_metrics = metrics.sites_scraped.setdefault(
            site_id, {"count": 0, "runtime_ms": 0.0, "errors": 0}
        )
        outcome = PairOutcome(term=term, site_id=site_id)
        metrics.outcomes.append(outcome)
        t0 = time.time()

        try:
            async with site_lock(site_id):
                result = await self.driver.run(
                    ScrapeRequest(site_id=site_id, term=term, location=location, page_limit=page_limit),
                    profile,
                    cancel,
                )
        except Exception as exc:  # noqa: BLE001
            error = OrchestrationError(term, site_id, exc)
            outcome.runtime_ms = (time.time() - t0) * 1000.0
            outcome.error = str(error)
            site_metrics["runtime_ms"] += outcome.runtime_ms
            self._record_failure(metrics, site_metrics)
            LOG.error("❌ %s", error, exc_info=True)
            return [], False

        outcome.runtime_ms = (time.time() - t0) * 1000.0
        outcome.jobs = len(result.records)
        outcome.pages_scraped = result.pages_scraped
        site_metrics["count"] += len(result.records)
        site_metrics["runtime_ms"] += outcome.runtime_ms

        if result.error is not None:
            outcome.error = str(result.error)
            self._record_failure(metrics, site_metrics)
            LOG.warning(
                "%s/'%s' ended with error; keeping %d partial jobs",
                site_id,
                term,
                len(result.records),
            )
            return list(result.records), False

        metrics.pairs_succeeded += 1
        LOG.info("Found %d jobs on %s for '%s'", len(result.records), site_id, term)
        return list(result.records), True

    @staticmethod
    def _record_failure(metrics: ScrapeMetrics, site_metrics: Dict[str, Any]) -> None:
        metrics.pairs_failed += 1
        site_metrics["errors"] += 1

    @staticmethod
    def _resolve_page_limit(page_limit: Optional[int]) -> int:
        value = scrape_config.default_page_limit if page_limit is None else page_limit
        if value < 1:
            raise ConfigurationError(f"page_limit must be >= 1, got {value}")
        return value

    async def _pause(self, window: DelayWindow, cancel: Optional[CancelToken]) -> None:
        ms = self.scheduler.delay_for(window)
        LOG.debug("%s delay: %dms", window.name, ms)
        if cancel is not None:
            cancel.raise_if_cancelled(window.name)
        if ms > 0:
            await self._sleep(ms / 1000.0)
        if cancel is not None:
            cancel.raise_if_cancelled(window.name)
