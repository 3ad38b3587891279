"""Job record and scrape request types shared across the scraping core."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from config.settings import scrape_config

__all__ = ["JobRecord", "ScrapeRequest", "new_job_id"]


def new_job_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class JobRecord:
    """
    One scraped job posting.

    ``id`` is assigned when the record is extracted and never reused.
    ``title`` and ``company`` are always non-empty; the extractor drops
    cards where either is blank.
    """

    title: str
    company: str
    description: str
    url: str
    location: Optional[str] = None
    salary: Optional[str] = None
    date_posted: Optional[str] = None
    site: str = ""
    id: str = field(default_factory=new_job_id)

    @property
    def dedup_key(self) -> str:
        return f"{self.title}-{self.company}"

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys, absent optionals omitted)."""
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "description": self.description,
            "url": self.url,
        }
        if self.location:
            payload["location"] = self.location
        if self.salary:
            payload["salary"] = self.salary
        if self.date_posted:
            payload["datePosted"] = self.date_posted
        if self.site:
            payload["site"] = self.site
        return payload


@dataclass(frozen=True)
class ScrapeRequest:
    """A single (site, term) scrape; built once per session invocation."""

    site_id: str
    term: str
    location: str = field(default_factory=lambda: scrape_config.default_location)
    page_limit: int = 1

    def __post_init__(self) -> None:
        if self.page_limit < 1:
            raise ValueError(f"page_limit must be >= 1, got {self.page_limit}")
