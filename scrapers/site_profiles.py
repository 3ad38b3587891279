"""
scrapers/site_profiles.py

SITE PROFILE REGISTRY
=====================

Static, per-site configuration describing how to query and parse one
external job board:

├── search URL template + optional location query parameter
├── CSS selectors for title/company/description/link/location/salary/date
├── next-page control selector
└── extraction strategy (job-card container, field lookup, URL resolution)

The registry is built once at import time and exposed read-only, so any
number of sessions may look profiles up concurrently.

Usage:
    profile = SITE_REGISTRY.lookup("seek")
    url = profile.build_search_url("Frontend Developer", "Perth, WA")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional
from urllib.parse import quote_plus, urljoin

import soupsieve as sv
from bs4 import Tag

from .errors import ConfigurationError, UnknownSiteError

LOG = logging.getLogger("site_profiles")

__all__ = [
    "SelectorSet",
    "SiteProfile",
    "SiteExtractionStrategy",
    "SiteRegistry",
    "SITE_REGISTRY",
]

# =================================================================================
# DATA MODEL
# =================================================================================


@dataclass(frozen=True)
class SelectorSet:
    """CSS selectors for one site's search-result page."""

    title: str
    company: str
    description: str
    link: str
    next_page_button: str
    location: Optional[str] = None
    salary: Optional[str] = None
    date_posted: Optional[str] = None

    def required(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "company": self.company,
            "description": self.description,
            "link": self.link,
        }


class SiteExtractionStrategy:
    """
    Per-site capability set used by the record extractor.

    ``container_selector`` identifies the job card that encloses a title
    element. ``base_origin`` is prefixed to relative hrefs.
    ``link_from_ancestor`` makes ``resolve_url`` read the href from the
    nearest enclosing ``<a>`` rather than the title element itself.
    """

    container_selector: str = ""
    base_origin: str = ""
    link_from_ancestor: bool = False

    def resolve_container(self, title_el: Tag) -> Optional[Tag]:
        """Closest element (self or ancestor) matching the card selector."""
        if not self.container_selector:
            return None
        return sv.closest(self.container_selector, title_el)

    def resolve_field(self, container: Optional[Tag], selector: Optional[str]) -> str:
        if container is None or not selector:
            return ""
        el = container.select_one(selector)
        return el.get_text(" ", strip=True) if el else ""

    def resolve_url(self, title_el: Tag, link_selector: str) -> str:
        anchor = self._find_anchor(title_el, link_selector)
        href = str(anchor.get("href") or "").strip() if anchor is not None else ""
        if not href:
            return self.base_origin
        return urljoin(self.base_origin + "/", href) if self.base_origin else href

    def _find_anchor(self, title_el: Tag, link_selector: str) -> Optional[Tag]:
        if title_el.has_attr("href"):
            return title_el
        if self.link_from_ancestor:
            return title_el.find_parent("a") or title_el.select_one(link_selector)
        return title_el.select_one(link_selector) or title_el.find_parent("a")


class SeekStrategy(SiteExtractionStrategy):
    container_selector = '[data-automation="jobCard"]'
    base_origin = "https://www.seek.com.au"


class IndeedStrategy(SiteExtractionStrategy):
    container_selector = ".job_seen_beacon"
    base_origin = "https://www.indeed.com"
    link_from_ancestor = True


class LinkedInStrategy(SiteExtractionStrategy):
    container_selector = ".job-card-container"
    base_origin = "https://www.linkedin.com"


class GlassdoorStrategy(SiteExtractionStrategy):
    container_selector = '[data-test="jobListing"], li.react-job-listing'
    base_origin = "https://www.glassdoor.com"


class MonsterStrategy(SiteExtractionStrategy):
    container_selector = ".card-content, [data-testid='svx-job-card']"
    base_origin = "https://www.monster.com"


class ZipRecruiterStrategy(SiteExtractionStrategy):
    container_selector = ".job_content, article.job_result"
    base_origin = "https://www.ziprecruiter.com"


class SimplyHiredStrategy(SiteExtractionStrategy):
    container_selector = "[data-testid='searchSerpJob'], .SerpJob"
    base_origin = "https://www.simplyhired.com"


class DiceStrategy(SiteExtractionStrategy):
    container_selector = ".card, dhi-search-card"
    base_origin = "https://www.dice.com"


@dataclass(frozen=True)
class SiteProfile:
    """Immutable description of one supported job board."""

    site_id: str
    search_url_template: str
    selectors: SelectorSet
    strategy: SiteExtractionStrategy
    location_query_param: Optional[str] = None

    def build_search_url(self, term: str, location: Optional[str] = None) -> str:
        """Template + URL-encoded term, then the location parameter if both exist."""
        url = f"{self.search_url_template}{quote_plus(term)}"
        if self.location_query_param and location:
            url += f"{self.location_query_param}{quote_plus(location)}"
        return url


# =================================================================================
# PROFILES
# =================================================================================

# TODO: re-verify glassdoor/monster/ziprecruiter/simplyhired/dice card and
# pagination selectors against the live DOM; only the title/company/description
# selectors come from a working scraper.
_PROFILES: List[SiteProfile] = [
    SiteProfile(
        site_id="seek",
        search_url_template="https://www.seek.com.au/jobs?keywords=",
        location_query_param="&where=",
        selectors=SelectorSet(
            title='[data-automation="jobTitle"]',
            company='[data-automation="jobCompany"]',
            description='[data-automation="jobShortDescription"]',
            link='[data-automation="jobTitle"]',
            location='[data-automation="jobLocation"]',
            salary='[data-automation="jobSalary"]',
            date_posted='[data-automation="jobListingDate"]',
            next_page_button='[data-automation="pagination-next"]',
        ),
        strategy=SeekStrategy(),
    ),
    SiteProfile(
        site_id="indeed",
        search_url_template="https://www.indeed.com/jobs?q=",
        location_query_param="&l=",
        selectors=SelectorSet(
            title=".jobTitle",
            company=".companyName",
            description=".job-snippet",
            link=".jcs-JobTitle",
            location=".companyLocation",
            date_posted=".date",
            next_page_button='[data-testid="pagination-page-next"]',
        ),
        strategy=IndeedStrategy(),
    ),
    SiteProfile(
        site_id="linkedin",
        search_url_template="https://www.linkedin.com/jobs/search/?keywords=",
        location_query_param="&location=",
        selectors=SelectorSet(
            title=".job-card-list__title",
            company=".job-card-container__company-name",
            description=".job-card-list__description",
            link=".job-card-list__title",
            location=".job-card-container__metadata-item",
            date_posted=".job-card-container__posted-date",
            next_page_button=(
                ".artdeco-pagination__button--next"
                ":not(.artdeco-pagination__button--disabled)"
            ),
        ),
        strategy=LinkedInStrategy(),
    ),
    SiteProfile(
        site_id="glassdoor",
        search_url_template="https://www.glassdoor.com/Job/jobs.htm?sc.keyword=",
        location_query_param="&locKeyword=",
        selectors=SelectorSet(
            title=".jobLink",
            company=".employer-name",
            description=".jobDescriptionContent",
            link=".jobLink",
            location=".location",
            salary=".salary",
            date_posted=".jobDate",
            next_page_button='[data-test="pagination-next"]',
        ),
        strategy=GlassdoorStrategy(),
    ),
    SiteProfile(
        site_id="monster",
        search_url_template="https://www.monster.com/jobs/search/?q=",
        location_query_param="&where=",
        selectors=SelectorSet(
            title=".title",
            company=".company",
            description=".summary",
            link=".title a",
            location=".location",
            date_posted=".meta time",
            next_page_button='[data-testid="load-more-button"]',
        ),
        strategy=MonsterStrategy(),
    ),
    SiteProfile(
        site_id="ziprecruiter",
        search_url_template="https://www.ziprecruiter.com/jobs/search?q=",
        location_query_param="&l=",
        selectors=SelectorSet(
            title=".job_title",
            company=".hiring_company",
            description=".job_description",
            link=".job_link",
            location=".location",
            salary=".salary",
            date_posted=".posted_date",
            next_page_button='a[title="Next Page"]',
        ),
        strategy=ZipRecruiterStrategy(),
    ),
    SiteProfile(
        site_id="simplyhired",
        search_url_template="https://www.simplyhired.com/search?q=",
        location_query_param="&l=",
        selectors=SelectorSet(
            title=".card-title",
            company=".company",
            description=".card-description",
            link=".card-link",
            location=".location",
            salary=".salary",
            date_posted=".date-posted",
            next_page_button='[data-testid="paginationBlock"] a[aria-label="Next page"]',
        ),
        strategy=SimplyHiredStrategy(),
    ),
    SiteProfile(
        site_id="dice",
        search_url_template="https://www.dice.com/jobs?q=",
        location_query_param="&location=",
        selectors=SelectorSet(
            title=".card-title-link",
            company=".card-company",
            description=".card-description",
            link=".card-title-link",
            location=".location",
            date_posted=".posted-date",
            next_page_button="li.pagination-next:not(.disabled) a",
        ),
        strategy=DiceStrategy(),
    ),
]

# =================================================================================
# REGISTRY
# =================================================================================


class SiteRegistry:
    """Read-only lookup of site profiles by identifier."""

    def __init__(self, profiles: List[SiteProfile]) -> None:
        table: Dict[str, SiteProfile] = {}
        for profile in profiles:
            if profile.site_id in table:
                raise ConfigurationError(f"Duplicate site profile: {profile.site_id}")
            missing = [name for name, sel in profile.selectors.required().items() if not sel]
            if missing:
                raise ConfigurationError(
                    f"Site profile '{profile.site_id}' is missing selectors: {', '.join(missing)}"
                )
            table[profile.site_id] = profile
        self._profiles: Mapping[str, SiteProfile] = MappingProxyType(table)

    def lookup(self, site_id: str) -> SiteProfile:
        """
        Return the profile for ``site_id``.

        Raises:
            UnknownSiteError: ``site_id`` is not a configured site.
        """
        try:
            return self._profiles[site_id]
        except (KeyError, TypeError):
            raise UnknownSiteError(str(site_id), self.site_ids()) from None

    def site_ids(self) -> List[str]:
        return list(self._profiles)

    def __contains__(self, site_id: object) -> bool:
        return site_id in self._profiles


SITE_REGISTRY = SiteRegistry(_PROFILES)
LOG.debug("Site registry ready: %s", ", ".join(SITE_REGISTRY.site_ids()))
