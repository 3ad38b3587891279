"""Utility functions for scraped job text cleanup and deduplication.
Called by the record extractor and the multi-site orchestrator."""

import re
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scrapers.models import JobRecord

logger = logging.getLogger(__name__)

__all__ = ["clean_text", "dedup_key", "deduplicate_jobs"]

MAX_DESCRIPTION_CHARS = 5000


def clean_text(text: str, limit: int = MAX_DESCRIPTION_CHARS) -> str:
    """Strip stray tags, collapse whitespace/newlines, strip and truncate."""
    if not text:
        return ""
    text = re.sub(r'<[^>]+>', '', str(text))
    text = re.sub(r'\s+', ' ', text)
    text = text.strip()
    return text[:limit]


def dedup_key(job: "JobRecord") -> str:
    """``"<title>-<company>"``; two records with the same key are the same posting."""
    return job.dedup_key


def deduplicate_jobs(jobs: "list[JobRecord]") -> "list[JobRecord]":
    """Collapse records sharing a dedup key.

    The last record seen for a key wins, placed where that key first
    appeared. Applying this twice gives the same result as applying it once.
    """
    by_key: "dict[str, JobRecord]" = {}
    for job in jobs:
        by_key[dedup_key(job)] = job

    result = list(by_key.values())
    removed = len(jobs) - len(result)
    logger.info(f"deduplicate_jobs: {len(jobs)} input -> {len(result)} after dedup ({removed} removed)")
    return result
