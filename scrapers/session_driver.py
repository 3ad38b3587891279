"""
scrapers/session_driver.py

PAGE SESSION DRIVER
===================

Runs one scrape of one site for one search term inside its own browser:

    LAUNCHING -> CONFIGURING -> NAVIGATING -> EXTRACTING
        -> (PAGINATING -> EXTRACTING)* -> CLOSING -> CLOSED

Every step is paced by the HumanPatternScheduler. Any failure after launch
ends the session early but keeps the records already extracted; the
browser is always released and the closing pause always runs.

Usage:
    driver = PageSessionDriver()
    result = await driver.run(ScrapeRequest("seek", "Python Developer", "Perth, WA"), profile)
    if not result.ok:
        LOG.warning("partial result: %s", result.error)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from config.settings import MIN_NAVIGATION_TIMEOUT_MS, scrape_config

from .browser import BrowserLauncher
from .cancellation import CancelToken
from .errors import NavigationError
from .extractor import extract_jobs
from .human_patterns import DELAYS, DelayWindow, HumanPatternScheduler, NetworkProfile
from .models import JobRecord, ScrapeRequest
from .site_profiles import SiteProfile

LOG = logging.getLogger("session_driver")

__all__ = ["SessionPhase", "SessionState", "SessionResult", "PageSessionDriver"]

Sleep = Callable[[float], Awaitable[Any]]

# Elements a person might plausibly rest the pointer on.
HOVER_TARGETS = 'a, button, div[role="button"]'

_COUNT_HOVER_TARGETS_JS = "sel => document.querySelectorAll(sel).length"
_HOVER_JS = """
([sel, idx]) => {
    const el = document.querySelectorAll(sel)[idx];
    if (!el) return false;
    const rect = el.getBoundingClientRect();
    el.dispatchEvent(new MouseEvent('mouseover', {
        bubbles: true,
        clientX: rect.left + rect.width / 2,
        clientY: rect.top + rect.height / 2,
    }));
    return true;
}
"""
_SCROLL_JS = "d => window.scrollBy(0, d)"


class SessionPhase(str, Enum):
    LAUNCHING = "launching"
    CONFIGURING = "configuring"
    NAVIGATING = "navigating"
    EXTRACTING = "extracting"
    PAGINATING = "paginating"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class SessionState:
    phase: SessionPhase = SessionPhase.LAUNCHING
    page_index: int = 0
    pages_scraped: int = 0
    has_next_page: bool = False
    records: List[JobRecord] = field(default_factory=list)


@dataclass
class SessionResult:
    """Outcome of one session; ``records`` is populated even when ``error`` is set."""

    site_id: str
    term: str
    records: List[JobRecord]
    pages_scraped: int = 0
    final_phase: SessionPhase = SessionPhase.CLOSED
    failed_phase: Optional[SessionPhase] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PageSessionDriver:
    """Drives a single browser session through search, extraction and pagination."""

    def __init__(
        self,
        scheduler: Optional[HumanPatternScheduler] = None,
        launcher: Optional[BrowserLauncher] = None,
        sleep: Optional[Sleep] = None,
        navigation_timeout_ms: Optional[int] = None,
        extractor: Callable[[str, SiteProfile, str], List[JobRecord]] = extract_jobs,
    ) -> None:
        self.scheduler = scheduler or HumanPatternScheduler(scrape_config.scheduler_seed)
        self.launcher = launcher or BrowserLauncher()
        self._sleep: Sleep = sleep or asyncio.sleep
        self.navigation_timeout_ms = max(
            MIN_NAVIGATION_TIMEOUT_MS,
            navigation_timeout_ms or scrape_config.navigation_timeout_ms,
        )
        self._extractor = extractor

    # ------------------------------------------------------------------ #
    # ENTRY POINT
    # ------------------------------------------------------------------ #

    async def run(
        self,
        request: ScrapeRequest,
        profile: SiteProfile,
        cancel: Optional[CancelToken] = None,
    ) -> SessionResult:
        state = SessionState()
        error: Optional[BaseException] = None
        failed_phase: Optional[SessionPhase] = None

        LOG.info(
            "Scraping %s with search term '%s' in location '%s' (pages=%d)",
            request.site_id,
            request.term,
            request.location,
            request.page_limit,
        )

        try:
            await self._pause(DELAYS.SESSION_START, cancel)
            slow_mo_ms = self.scheduler.delay_for(DELAYS.SLOW_MO)
            async with self.launcher.launch(slow_mo_ms=slow_mo_ms) as browser:
                try:
                    await self._drive(browser, request, profile, state, cancel)
                except Exception:
                    failed_phase = state.phase
                    raise
                finally:
                    state.phase = SessionPhase.CLOSING
                    await self._pause(DELAYS.CLOSING, None)
        except Exception as exc:  # noqa: BLE001
            error = exc
            failed_phase = failed_phase or state.phase
            LOG.error(
                "❌ %s session for '%s' failed during %s: %s (%d jobs kept)",
                request.site_id,
                request.term,
                failed_phase.value,
                exc,
                len(state.records),
            )

        state.phase = SessionPhase.CLOSED
        if error is None:
            LOG.info(
                "✅ %s: %d jobs for '%s' across %d page(s)",
                request.site_id,
                len(state.records),
                request.term,
                state.pages_scraped,
            )
        return SessionResult(
            site_id=request.site_id,
            term=request.term,
            records=list(state.records),
            pages_scraped=state.pages_scraped,
            final_phase=state.phase,
            failed_phase=failed_phase,
            error=error,
        )

    # ------------------------------------------------------------------ #
    # PHASES
    # ------------------------------------------------------------------ #

    async def _drive(
        self,
        browser: Any,
        request: ScrapeRequest,
        profile: SiteProfile,
        state: SessionState,
        cancel: Optional[CancelToken],
    ) -> None:
        state.phase = SessionPhase.CONFIGURING
        viewport = self.scheduler.viewport()
        user_agent = self.scheduler.user_agent()
        context = await browser.new_context(
            viewport=viewport.as_dict(),
            user_agent=user_agent,
            locale="en-US",
        )
        await context.add_init_script(self.launcher.stealth_script)
        page = await context.new_page()
        LOG.debug("Viewport %dx%d | UA %s", viewport.width, viewport.height, user_agent)

        network = self.scheduler.network_profile()
        if network is not None:
            await self._throttle(context, page, network)

        state.phase = SessionPhase.NAVIGATING
        await self._pause(DELAYS.PRE_NAVIGATION, cancel)
        url = profile.build_search_url(request.term, request.location)
        LOG.info("Navigating to %s", url)
        try:
            await page.goto(url, wait_until="networkidle", timeout=self._wait_timeout_ms(cancel))
        except Exception as exc:
            raise NavigationError(f"{request.site_id}: could not load {url}: {exc}") from exc
        self._check(cancel, "navigation")

        await self._pause(DELAYS.POST_NAVIGATION, cancel)
        await self._scroll(page, cancel)

        for page_index in range(request.page_limit):
            state.page_index = page_index
            state.phase = SessionPhase.EXTRACTING
            await self._pause(DELAYS.PRE_EXTRACTION, cancel)
            await self._scroll(page, cancel)
            await self._move_pointer(page, cancel)
            await self._hover_random_element(page)

            jobs = await self._extract_page(page, profile, request.site_id, cancel)
            state.records.extend(jobs)
            state.pages_scraped += 1
            LOG.info(
                "%s page %d: %d jobs (total %d)",
                request.site_id,
                page_index + 1,
                len(jobs),
                len(state.records),
            )

            if page_index >= request.page_limit - 1:
                break

            await self._pause(DELAYS.NEXT_PAGE_CHECK, cancel)
            state.has_next_page = await self._has_next_page(page, profile, cancel)
            if not state.has_next_page:
                LOG.info("%s: no next page after page %d", request.site_id, page_index + 1)
                break

            state.phase = SessionPhase.PAGINATING
            await self._click_next(page, profile, request.site_id, cancel)

    async def _throttle(self, context: Any, page: Any, network: NetworkProfile) -> None:
        try:
            cdp = await context.new_cdp_session(page)
            await cdp.send("Network.emulateNetworkConditions", network.to_cdp())
            LOG.info("Network throttled to %s profile", network.name)
        except Exception as e:  # noqa: BLE001
            LOG.warning("Network throttling unavailable (%s); continuing unthrottled", e)

    async def _extract_page(
        self,
        page: Any,
        profile: SiteProfile,
        site_id: str,
        cancel: Optional[CancelToken],
    ) -> List[JobRecord]:
        await self._pause(DELAYS.CONTENT_SNAPSHOT, cancel)
        html = await page.content()
        # Parse off the event loop.
        return await asyncio.to_thread(self._extractor, html, profile, site_id)

    async def _has_next_page(
        self, page: Any, profile: SiteProfile, cancel: Optional[CancelToken]
    ) -> bool:
        await self._pause(DELAYS.BUTTON_PROBE, cancel)
        button = await page.query_selector(profile.selectors.next_page_button)
        return button is not None

    async def _click_next(
        self,
        page: Any,
        profile: SiteProfile,
        site_id: str,
        cancel: Optional[CancelToken],
    ) -> None:
        await self._pause(DELAYS.PRE_CLICK, cancel)
        await self._move_pointer(page, cancel)
        await self._pause(DELAYS.CLICK, cancel)
        try:
            await page.click(profile.selectors.next_page_button)
            await page.wait_for_load_state("networkidle", timeout=self._wait_timeout_ms(cancel))
        except Exception as exc:
            raise NavigationError(f"{site_id}: next-page navigation failed: {exc}") from exc
        await self._pause(DELAYS.NETWORK_IDLE, cancel)
        await self._pause(DELAYS.POST_CLICK, cancel)

    # ------------------------------------------------------------------ #
    # HUMAN BEHAVIOUR
    # ------------------------------------------------------------------ #

    async def _scroll(self, page: Any, cancel: Optional[CancelToken]) -> None:
        for step in self.scheduler.scroll_plan():
            self._check(cancel, "scroll")
            await page.evaluate(_SCROLL_JS, step.distance_px)
            await self._sleep_ms(step.pause_ms, cancel)

    async def _move_pointer(self, page: Any, cancel: Optional[CancelToken]) -> None:
        for step in self.scheduler.pointer_plan():
            self._check(cancel, "pointer")
            await page.mouse.move(step.x, step.y)
            await self._sleep_ms(step.pause_ms, cancel)

    async def _hover_random_element(self, page: Any) -> None:
        try:
            count = await page.evaluate(_COUNT_HOVER_TARGETS_JS, HOVER_TARGETS)
            index = self.scheduler.hover_index(int(count or 0))
            if index is not None:
                await page.evaluate(_HOVER_JS, [HOVER_TARGETS, index])
        except Exception as e:  # noqa: BLE001
            LOG.debug("Hover skipped: %s", e)

    # ------------------------------------------------------------------ #
    # PACING
    # ------------------------------------------------------------------ #

    @staticmethod
    def _check(cancel: Optional[CancelToken], where: str) -> None:
        if cancel is not None:
            cancel.raise_if_cancelled(where)

    def _wait_timeout_ms(self, cancel: Optional[CancelToken]) -> float:
        """Browser wait timeout, capped by whatever is left of the run deadline."""
        remaining = cancel.remaining_s() if cancel is not None else None
        if remaining is None:
            return self.navigation_timeout_ms
        return max(1.0, min(self.navigation_timeout_ms, remaining * 1000))

    async def _pause(self, window: DelayWindow, cancel: Optional[CancelToken]) -> None:
        ms = self.scheduler.delay_for(window)
        LOG.debug("%s delay: %dms", window.name, ms)
        self._check(cancel, window.name)
        await self._sleep_ms(ms, cancel)

    async def _sleep_ms(self, ms: int, cancel: Optional[CancelToken]) -> None:
        if ms > 0:
            await self._sleep(ms / 1000.0)
        self._check(cancel, "sleep")
