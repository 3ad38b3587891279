"""
scrapers/extractor.py

RECORD EXTRACTOR
================

Turns a rendered search-results snapshot into ``JobRecord`` objects using a
site profile's selectors and extraction strategy. Pure function of its
inputs: no browser, no network.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from Utils.normalise_dedupe import clean_text

from .errors import ExtractionError
from .models import JobRecord
from .site_profiles import SiteProfile

LOG = logging.getLogger("extractor")

__all__ = ["extract_jobs"]


def _optional(value: str) -> Optional[str]:
    return value or None


def _extract_card(title_el: Tag, profile: SiteProfile, site_id: str) -> Optional[JobRecord]:
    strategy = profile.strategy
    selectors = profile.selectors

    title = title_el.get_text(" ", strip=True)
    container = strategy.resolve_container(title_el)
    company = strategy.resolve_field(container, selectors.company)

    if not title or not company:
        return None

    return JobRecord(
        title=title,
        company=company,
        description=clean_text(strategy.resolve_field(container, selectors.description)),
        url=strategy.resolve_url(title_el, selectors.link),
        location=_optional(strategy.resolve_field(container, selectors.location)),
        salary=_optional(strategy.resolve_field(container, selectors.salary)),
        date_posted=_optional(strategy.resolve_field(container, selectors.date_posted)),
        site=site_id,
    )


def extract_jobs(html: str, profile: SiteProfile, site_id: str) -> List[JobRecord]:
    """
    Extract every well-formed job card from ``html``.

    Cards missing a title or company, or that fail while being read, are
    skipped individually. A snapshot with no title matches yields ``[]``.

    Raises:
        ExtractionError: The snapshot could not be parsed at all.
    """
    if html is None:
        raise ExtractionError(f"{site_id}: no page content to extract")

    try:
        soup = BeautifulSoup(html, "lxml")
        title_elements = soup.select(profile.selectors.title)
    except Exception as exc:  # noqa: BLE001
        raise ExtractionError(f"{site_id}: could not parse page content: {exc}") from exc

    LOG.info("%s: found %d job elements on page", site_id, len(title_elements))

    jobs: List[JobRecord] = []
    skipped = 0
    for title_el in title_elements:
        try:
            job = _extract_card(title_el, profile, site_id)
        except Exception as exc:  # noqa: BLE001
            LOG.debug("%s: skipping malformed card: %s", site_id, exc)
            job = None
        if job is None:
            skipped += 1
            continue
        jobs.append(job)

    if skipped:
        LOG.info("%s: skipped %d cards without title/company", site_id, skipped)
    return jobs
