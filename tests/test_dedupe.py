# tests/test_dedupe.py

from scrapers.models import JobRecord
from Utils.normalise_dedupe import clean_text, dedup_key, deduplicate_jobs


def _job(title, company, url="https://example.com", site="seek"):
    return JobRecord(title=title, company=company, description="", url=url, site=site)


def test_title_company_collision_gives_one_record():
    first = _job("Frontend Developer", "Acme", "https://seek/1", "seek")
    second = _job("Frontend Developer", "Acme", "https://indeed/1", "indeed")
    result = deduplicate_jobs([first, second])
    assert len(result) == 1
    # later record wins
    assert result[0] is second


def test_first_position_is_kept():
    a1, b, a2 = _job("A", "X"), _job("B", "X"), _job("A", "X", "https://other")
    assert deduplicate_jobs([a1, b, a2]) == [a2, b]


def test_dedup_is_idempotent():
    jobs = [_job("A", "X"), _job("B", "Y"), _job("A", "X"), _job("C", "Z"), _job("B", "Y")]
    once = deduplicate_jobs(jobs)
    assert deduplicate_jobs(once) == once
    assert len({dedup_key(j) for j in once}) == len(once) == 3


def test_same_title_different_company_kept():
    assert len(deduplicate_jobs([_job("Dev", "A"), _job("Dev", "B")])) == 2


def test_empty_input():
    assert deduplicate_jobs([]) == []


def test_clean_text():
    assert clean_text("  <b>Senior</b>\n\n Engineer \t ") == "Senior Engineer"
    assert clean_text("") == ""
    assert len(clean_text("x" * 6000)) == 5000


def test_dedup_key_matches_record_property():
    job = _job("Frontend Developer", "Acme")
    assert dedup_key(job) == job.dedup_key == "Frontend Developer-Acme"
