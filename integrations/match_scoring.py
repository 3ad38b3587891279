# integrations/match_scoring.py
"""
Match Scoring: Resume/Job Fit and Search-Term Generation

Thin async wrapper over ``litellm.acompletion`` in JSON mode:
  - score(job, resume_text)        -> float in [0, 100]
  - keywords(resume_text)          -> list[str] of job-search terms
  - score_many(jobs, resume_text)  -> per-job results, failures scored 0

When no API key is configured, or the model call fails or returns
malformed JSON, the call raises ``UpstreamServiceError`` internally and the
scorer answers with a local keyword heuristic instead.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping, Optional, Sequence, Union

import litellm

from config.settings import LLMConfig, llm_config
from scrapers.errors import UpstreamServiceError
from scrapers.models import JobRecord

__all__ = [
    "MatchScorer",
    "MIN_RESUME_CHARS",
    "heuristic_score",
    "heuristic_keywords",
]

logger = logging.getLogger(__name__)

JobLike = Union[JobRecord, Mapping[str, Any]]

# Shorter resume text cannot be analysed meaningfully.
MIN_RESUME_CHARS = 100

MAX_CONCURRENT_SCORES = 5

# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_KEYWORD_SYSTEM_PROMPT = (
    "You extract job search terms from resumes. Use only titles, skills and "
    "technologies that appear in the resume text; never invent or infer roles."
)

_KEYWORD_USER_TEMPLATE = """RESUME CONTENT START
{resume}
RESUME CONTENT END

From the resume above only:
1. Find the most prominent skills, technologies, job titles and industry keywords.
2. Choose 5-8 job titles that would work well as job-board search terms for this resume.
3. Prefer terms that appear often or in job-title / key-skills sections.
4. Reply with a JSON object with one field "searchTerms" holding an array of strings, and nothing else."""

_SCORE_SYSTEM_PROMPT = (
    "You rate how well a job listing matches a candidate's resume on a scale "
    'from 0 to 100. Reply with only a JSON object with one numeric field "score".'
)

_SCORE_USER_TEMPLATE = "Resume:\n{resume}\n\nJob:\nTitle: {title}\nCompany: {company}\nDescription: {description}"

# ---------------------------------------------------------------------------
# Local heuristics
# ---------------------------------------------------------------------------

_MATCH_KEYWORDS = (
    "react", "javascript", "typescript", "html", "css", "node", "express",
    "frontend", "backend", "fullstack", "full stack", "responsive", "api",
    "database", "mongodb", "sql", "design", "agile", "git", "testing",
)

# (resume triggers, terms added)
_TERM_RULES: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("frontend", "react"), ("Frontend Developer", "React Developer", "JavaScript Developer")),
    (("backend", "node"), ("Backend Developer", "Node.js Developer", "Full Stack Developer")),
    (("typescript",), ("TypeScript", "TypeScript Developer")),
    (("react",), ("React", "React.js", "Frontend Framework")),
    (("responsive", "css"), ("UI/UX", "CSS", "Responsive Design")),
)

_DEFAULT_TERMS = ("Web Developer", "Software Engineer", "JavaScript", "HTML/CSS", "Git")
_MIN_TERMS = 5
_MAX_TERMS = 10


def _job_fields(job: JobLike) -> tuple[str, str, str, Optional[str]]:
    if isinstance(job, JobRecord):
        return job.title, job.company, job.description, job.id
    return (
        str(job.get("title") or ""),
        str(job.get("company") or ""),
        str(job.get("description") or ""),
        job.get("id"),
    )


def heuristic_score(job: JobLike, resume_text: str) -> float:
    """Keyword-overlap score: 50 base, +5 per shared keyword, +15 for a title family match."""
    title, company, description, _ = _job_fields(job)
    resume = resume_text.lower()
    job_text = " ".join((title, company, description)).lower()

    score = 50
    for keyword in _MATCH_KEYWORDS:
        if keyword in resume and keyword in job_text:
            score += 5

    title_lower = title.lower()
    if "frontend" in title_lower and "frontend" in resume:
        score += 15
    elif "backend" in title_lower and "backend" in resume:
        score += 15
    elif "full stack" in title_lower and ("full stack" in resume or "fullstack" in resume):
        score += 15

    return float(min(100, max(0, score)))


def heuristic_keywords(resume_text: str) -> list[str]:
    content = resume_text.lower()
    terms: list[str] = []
    for triggers, added in _TERM_RULES:
        if any(trigger in content for trigger in triggers):
            terms.extend(added)
    if len(terms) < _MIN_TERMS:
        terms.extend(_DEFAULT_TERMS)
    return terms[:_MAX_TERMS]


def _validate_resume(resume_text: str) -> None:
    if not resume_text or len(resume_text.strip()) < MIN_RESUME_CHARS:
        raise ValueError(
            f"Resume content is empty or shorter than {MIN_RESUME_CHARS} characters"
        )


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------


class MatchScorer:
    """LLM-backed job match scoring with a deterministic local fallback."""

    def __init__(self, config: Optional[LLMConfig] = None) -> None:
        self.config = config or llm_config
        if not self.config.enabled:
            logger.warning("OPENAI_API_KEY is not set; match scoring uses the local heuristic")

    async def _complete_json(self, model: str, messages: list[dict[str, str]], temperature: float) -> dict[str, Any]:
        if not self.config.enabled:
            raise UpstreamServiceError("LLM API key is not configured")
        try:
            response = await litellm.acompletion(
                model=model,
                messages=messages,
                temperature=temperature,
                response_format={"type": "json_object"},
                api_key=self.config.api_key.strip(),
                timeout=self.config.timeout_s,
            )
            content = response.choices[0].message.content
        except Exception as e:  # noqa: BLE001
            raise UpstreamServiceError(f"{model} request failed: {e}") from e

        if not content:
            raise UpstreamServiceError(f"{model} returned an empty response")
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            raise UpstreamServiceError(f"{model} returned invalid JSON: {content[:200]}") from e
        if not isinstance(payload, dict):
            raise UpstreamServiceError(f"{model} returned a non-object JSON payload")
        return payload

    async def _remote_score(self, job: JobLike, resume_text: str) -> float:
        title, company, description, _ = _job_fields(job)
        payload = await self._complete_json(
            self.config.scoring_model,
            [
                {"role": "system", "content": _SCORE_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": _SCORE_USER_TEMPLATE.format(
                        resume=resume_text, title=title, company=company, description=description
                    ),
                },
            ],
            temperature=0.3,
        )
        score = payload.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise UpstreamServiceError(f"No numeric score in model response: {payload}")
        return float(min(100.0, max(0.0, score)))

    async def _remote_keywords(self, resume_text: str) -> list[str]:
        payload = await self._complete_json(
            self.config.keyword_model,
            [
                {"role": "system", "content": _KEYWORD_SYSTEM_PROMPT},
                {"role": "user", "content": _KEYWORD_USER_TEMPLATE.format(resume=resume_text)},
            ],
            temperature=0.1,
        )
        terms = payload.get("searchTerms")
        if not isinstance(terms, list):
            # Accept the first array field the model chose to use instead.
            terms = next((v for v in payload.values() if isinstance(v, list)), None)
            if terms is None:
                raise UpstreamServiceError(f"No search-term array in model response: {payload}")
            logger.warning("Search terms found under a non-standard field")
        cleaned = [str(t).strip() for t in terms if str(t).strip()]
        if not cleaned:
            raise UpstreamServiceError("Model returned no search terms")
        return cleaned

    async def score(self, job: JobLike, resume_text: str) -> float:
        """Match score in ``[0, 100]`` for one job against the resume."""
        title = _job_fields(job)[0]
        try:
            return await self._remote_score(job, resume_text)
        except UpstreamServiceError as e:
            logger.warning("Scoring '%s' with local heuristic: %s", title, e)
            return heuristic_score(job, resume_text)

    async def keywords(self, resume_text: str) -> list[str]:
        """Job-search terms drawn from the resume.

        Raises:
            ValueError: The resume has fewer than ``MIN_RESUME_CHARS``
                non-blank characters.
        """
        _validate_resume(resume_text)
        logger.info("Generating search terms (resume length %d)", len(resume_text))
        try:
            terms = await self._remote_keywords(resume_text)
        except UpstreamServiceError as e:
            logger.warning("Generating search terms with local heuristic: %s", e)
            terms = heuristic_keywords(resume_text)
        logger.info("Search terms: %s", terms)
        return terms

    async def score_many(self, jobs: Sequence[JobLike], resume_text: str) -> list[dict[str, Any]]:
        """Score every job; a job that fails gets ``matchScore`` 0 and an ``error``."""
        semaphore = asyncio.Semaphore(MAX_CONCURRENT_SCORES)

        async def _one(job: JobLike) -> dict[str, Any]:
            title, _, _, job_id = _job_fields(job)
            async with semaphore:
                try:
                    return {"id": job_id, "matchScore": await self.score(job, resume_text)}
                except Exception as e:  # noqa: BLE001
                    logger.error("Error evaluating job '%s': %s", title, e)
                    return {"id": job_id, "matchScore": 0, "error": str(e)}

        logger.info("Processing bulk evaluation for %d jobs", len(jobs))
        return list(await asyncio.gather(*[_one(job) for job in jobs]))
