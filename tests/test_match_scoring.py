# tests/test_match_scoring.py

import asyncio
import json
from types import SimpleNamespace

import pytest

from config.settings import LLMConfig
from integrations import match_scoring
from integrations.match_scoring import MatchScorer, heuristic_keywords, heuristic_score

RESUME = (
    "Frontend developer with five years of React, TypeScript and CSS experience. "
    "Built responsive design systems, REST API integrations and agile testing pipelines with git."
)

JOB = {
    "id": "job-1",
    "title": "Frontend Developer",
    "company": "Acme",
    "description": "React and TypeScript role building responsive UI against a REST API.",
    "url": "https://www.seek.com.au/job/1",
}


def _response(payload):
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def enabled_scorer():
    return MatchScorer(LLMConfig(api_key="sk-test"))


def _patch_completion(monkeypatch, payload, calls=None):
    async def fake_acompletion(**kwargs):
        if calls is not None:
            calls.append(kwargs)
        if isinstance(payload, Exception):
            raise payload
        return _response(payload)

    monkeypatch.setattr(match_scoring.litellm, "acompletion", fake_acompletion)


def test_heuristic_score_counts_shared_keywords_and_title_boost():
    # shared: react, typescript, frontend, responsive, api (+25), title boost +15
    assert heuristic_score(JOB, RESUME) == 90.0


def test_heuristic_score_base_and_clamp():
    bare = {"title": "Chef", "company": "Diner", "description": "Cook food"}
    assert heuristic_score(bare, "I like cooking pasta and other things") == 50.0
    everything = " ".join(match_scoring._MATCH_KEYWORDS)
    job = {"title": "Frontend Developer", "company": "", "description": everything}
    assert heuristic_score(job, everything) == 100.0


def test_heuristic_keywords_rules_and_cap():
    terms = heuristic_keywords(RESUME)
    assert terms[:3] == ["Frontend Developer", "React Developer", "JavaScript Developer"]
    assert len(terms) == 10


def test_heuristic_keywords_pads_with_defaults():
    terms = heuristic_keywords("Accountant with payroll and audit experience")
    assert terms == ["Web Developer", "Software Engineer", "JavaScript", "HTML/CSS", "Git"]


def test_score_uses_model_when_configured(monkeypatch, enabled_scorer):
    calls = []
    _patch_completion(monkeypatch, {"score": 72}, calls)

    assert asyncio.run(enabled_scorer.score(JOB, RESUME)) == 72.0
    assert calls[0]["model"] == "gpt-4o-mini"
    assert calls[0]["response_format"] == {"type": "json_object"}
    assert calls[0]["temperature"] == 0.3


def test_score_falls_back_on_malformed_output(monkeypatch, enabled_scorer):
    _patch_completion(monkeypatch, "not json at all")
    assert asyncio.run(enabled_scorer.score(JOB, RESUME)) == heuristic_score(JOB, RESUME)


def test_score_falls_back_on_upstream_failure(monkeypatch, enabled_scorer):
    _patch_completion(monkeypatch, RuntimeError("rate limited"))
    assert asyncio.run(enabled_scorer.score(JOB, RESUME)) == heuristic_score(JOB, RESUME)


def test_score_without_api_key_never_calls_model(monkeypatch):
    calls = []
    _patch_completion(monkeypatch, {"score": 1}, calls)
    scorer = MatchScorer(LLMConfig(api_key=""))

    assert asyncio.run(scorer.score(JOB, RESUME)) == heuristic_score(JOB, RESUME)
    assert calls == []


def test_keywords_from_model(monkeypatch, enabled_scorer):
    calls = []
    _patch_completion(monkeypatch, {"searchTerms": ["Frontend Developer", "React Developer"]}, calls)

    assert asyncio.run(enabled_scorer.keywords(RESUME)) == ["Frontend Developer", "React Developer"]
    assert calls[0]["model"] == "gpt-4o"


def test_keywords_accepts_alternate_array_field(monkeypatch, enabled_scorer):
    _patch_completion(monkeypatch, {"terms": ["UI Engineer"]})
    assert asyncio.run(enabled_scorer.keywords(RESUME)) == ["UI Engineer"]


def test_keywords_rejects_short_resume(enabled_scorer):
    with pytest.raises(ValueError):
        asyncio.run(enabled_scorer.keywords("React dev"))


def test_score_many_marks_failures_with_zero(monkeypatch):
    scorer = MatchScorer(LLMConfig(api_key=""))
    real_score = scorer.score

    async def flaky(job, resume_text):
        if job["id"] == "bad":
            raise RuntimeError("boom")
        return await real_score(job, resume_text)

    monkeypatch.setattr(scorer, "score", flaky)
    jobs = [JOB, {**JOB, "id": "bad", "title": "Broken"}]

    results = asyncio.run(scorer.score_many(jobs, RESUME))

    assert results[0] == {"id": "job-1", "matchScore": heuristic_score(JOB, RESUME)}
    assert results[1]["id"] == "bad"
    assert results[1]["matchScore"] == 0
    assert "boom" in results[1]["error"]
