"""
scrapers/human_patterns.py

HUMAN-PATTERN SCHEDULER
=======================

Produces bounded random durations, counts and coordinates used to pace every
browser action, so that automated traffic does not present uniform timing:

├── named delay windows (session start, pre-click, error recovery, ...)
├── scroll plans and pointer plans
├── viewport + user-agent selection
├── optional throttled network profile (~30% of sessions)
└── uniform shuffles for (term, site) ordering

The scheduler performs no I/O. It only draws from its own ``random.Random``
so a fixed seed gives a deterministic plan. ``ZeroDelayScheduler`` keeps
every draw but collapses all pauses to 0 ms for tests.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

LOG = logging.getLogger("human_patterns")

T = TypeVar("T")

__all__ = [
    "DelayWindow",
    "DELAYS",
    "ScrollStep",
    "PointerStep",
    "Viewport",
    "NetworkProfile",
    "NETWORK_PRESETS",
    "USER_AGENTS",
    "HumanPatternScheduler",
    "ZeroDelayScheduler",
]

# =================================================================================
# TIMING TABLE
# =================================================================================


@dataclass(frozen=True)
class DelayWindow:
    name: str
    min_ms: int
    max_ms: int


class DELAYS:
    """Delay windows (milliseconds) for each pacing point."""

    # orchestrator
    RUN_START = DelayWindow("run_start", 2000, 5000)
    BETWEEN_TERMS = DelayWindow("between_terms", 3000, 8000)
    BETWEEN_SITES = DelayWindow("between_sites", 3500, 7000)
    POST_RESULT = DelayWindow("post_result", 500, 1500)
    ERROR_RECOVERY = DelayWindow("error_recovery", 5000, 10000)
    PRE_DEDUP = DelayWindow("pre_dedup", 1000, 2000)

    # session
    SESSION_START = DelayWindow("session_start", 1500, 5000)
    SLOW_MO = DelayWindow("slow_mo", 10, 50)
    PRE_NAVIGATION = DelayWindow("pre_navigation", 1000, 3000)
    POST_NAVIGATION = DelayWindow("post_navigation", 2000, 5000)
    PRE_EXTRACTION = DelayWindow("pre_extraction", 800, 2500)
    CONTENT_SNAPSHOT = DelayWindow("content_snapshot", 500, 1800)
    NEXT_PAGE_CHECK = DelayWindow("next_page_check", 500, 1500)
    BUTTON_PROBE = DelayWindow("button_probe", 300, 1200)
    PRE_CLICK = DelayWindow("pre_click", 1500, 3500)
    CLICK = DelayWindow("click", 300, 900)
    NETWORK_IDLE = DelayWindow("network_idle", 1500, 3000)
    POST_CLICK = DelayWindow("post_click", 3000, 6000)
    CLOSING = DelayWindow("closing", 1000, 3000)


# =================================================================================
# PLAN TYPES
# =================================================================================


@dataclass(frozen=True)
class ScrollStep:
    distance_px: int
    pause_ms: int


@dataclass(frozen=True)
class PointerStep:
    x: int
    y: int
    pause_ms: int


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int

    def as_dict(self) -> dict:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class NetworkProfile:
    """Throttled link characteristics, in kilobits per second."""

    name: str
    download_kbps: int
    upload_kbps: int
    latency_ms: int

    def to_cdp(self) -> dict:
        """Parameters for ``Network.emulateNetworkConditions`` (bytes/second)."""
        return {
            "offline": False,
            "downloadThroughput": self.download_kbps * 1000 // 8,
            "uploadThroughput": self.upload_kbps * 1000 // 8,
            "latency": self.latency_ms,
        }


NETWORK_PRESETS: Sequence[NetworkProfile] = (
    NetworkProfile("fast-3g", download_kbps=8000, upload_kbps=4000, latency_ms=50),
    NetworkProfile("slow-3g", download_kbps=4000, upload_kbps=2000, latency_ms=100),
    NetworkProfile("dsl", download_kbps=40000, upload_kbps=20000, latency_ms=20),
)

THROTTLE_PROBABILITY = 0.3

USER_AGENTS: Sequence[str] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.4 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/119.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

# =================================================================================
# SCHEDULER
# =================================================================================


class HumanPatternScheduler:
    """Seedable source of randomized pacing and interaction parameters."""

    SCROLL_STEPS = (2, 6)
    SCROLL_DISTANCE_PX = (100, 800)
    SCROLL_PAUSE_MS = (300, 1200)

    POINTER_STEPS = (1, 4)
    POINTER_X = (100, 800)
    POINTER_Y = (100, 600)
    POINTER_PAUSE_MS = (100, 500)

    VIEWPORT_WIDTH = (1200, 1600)
    VIEWPORT_HEIGHT = (800, 1000)

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def random_delay_ms(self, min_ms: int, max_ms: int) -> int:
        """Uniform integer in ``[min_ms, max_ms]``."""
        if min_ms > max_ms:
            min_ms, max_ms = max_ms, min_ms
        return self._rng.randint(min_ms, max_ms)

    def delay_for(self, window: DelayWindow) -> int:
        return self.random_delay_ms(window.min_ms, window.max_ms)

    def scroll_plan(self) -> List[ScrollStep]:
        count = self._rng.randint(*self.SCROLL_STEPS)
        return [
            ScrollStep(
                distance_px=self._rng.randint(*self.SCROLL_DISTANCE_PX),
                pause_ms=self.random_delay_ms(*self.SCROLL_PAUSE_MS),
            )
            for _ in range(count)
        ]

    def pointer_plan(self) -> List[PointerStep]:
        count = self._rng.randint(*self.POINTER_STEPS)
        return [
            PointerStep(
                x=self._rng.randint(*self.POINTER_X),
                y=self._rng.randint(*self.POINTER_Y),
                pause_ms=self.random_delay_ms(*self.POINTER_PAUSE_MS),
            )
            for _ in range(count)
        ]

    def user_agent(self) -> str:
        return self._rng.choice(USER_AGENTS)

    def viewport(self) -> Viewport:
        return Viewport(
            width=self._rng.randint(*self.VIEWPORT_WIDTH),
            height=self._rng.randint(*self.VIEWPORT_HEIGHT),
        )

    def network_profile(self) -> Optional[NetworkProfile]:
        """One of ``NETWORK_PRESETS`` roughly 30% of the time, else None."""
        if self._rng.random() < THROTTLE_PROBABILITY:
            return self._rng.choice(NETWORK_PRESETS)
        return None

    def hover_index(self, count: int) -> Optional[int]:
        if count <= 0:
            return None
        return self._rng.randrange(count)

    def shuffled(self, items: Sequence[T]) -> List[T]:
        """Uniform random permutation of ``items``; the input is untouched."""
        out = list(items)
        self._rng.shuffle(out)
        return out


class ZeroDelayScheduler(HumanPatternScheduler):
    """Same plans as the parent, but every pause is 0 ms."""

    def random_delay_ms(self, min_ms: int, max_ms: int) -> int:
        return 0
