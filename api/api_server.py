"""
FastAPI server for the multi-site job scraper.

Stateless HTTP boundary in front of the scraping orchestrator and the match
scorer. Every response, success or failure, uses the envelope
``{"error": bool, "message": str, "data": ...}``.

Runs on FASTAPI_PORT (default 5000).
"""

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, List, Literal, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
import uvicorn

from config.settings import scrape_config, server_config
from integrations.match_scoring import MIN_RESUME_CHARS, MatchScorer
from scrapers.errors import ConfigurationError, JobScraperError
from scrapers.orchestrator import MultiSiteOrchestrator
from scrapers.site_profiles import SITE_REGISTRY

logger = logging.getLogger(__name__)

__all__ = ["app", "main", "get_orchestrator", "get_scorer"]


def envelope(error: bool, message: str, data: Any = None) -> dict[str, Any]:
    return {"error": error, "message": message, "data": data}


# ---------------------------------------------------------------------------
# Pydantic Models
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ScrapeSiteRequest(_CamelModel):
    """Request payload for POST /api/scrape/site.

    Attributes:
        site: Registered site id (``seek``, ``indeed``, ``linkedin``, ...).
        search_terms: A single search phrase.
        page_limit: Result pages to walk; defaults to 1.
        location: Region string; defaults to ``DEFAULT_LOCATION``.
    """

    site: str = Field(..., min_length=1)
    search_terms: str = Field(..., alias="searchTerms", min_length=1)
    page_limit: Optional[int] = Field(default=None, alias="pageLimit", ge=1)
    location: Optional[str] = None

    @field_validator("page_limit")
    @classmethod
    def validate_page_limit(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > scrape_config.max_page_limit:
            raise ValueError(f"pageLimit must be <= {scrape_config.max_page_limit}")
        return v


class ScrapeJobsRequest(_CamelModel):
    """Request payload for POST /api/scrape/jobs.

    Attributes:
        search_terms: Search phrases; each is tried on every site.
        sites: Site ids; defaults to ``DEFAULT_SITES``.
        page_limit: Result pages per (term, site); defaults to 1.
        location: Region string; defaults to ``DEFAULT_LOCATION``.
    """

    search_terms: List[str] = Field(..., alias="searchTerms")
    sites: Optional[List[str]] = None
    page_limit: Optional[int] = Field(default=None, alias="pageLimit", ge=1)
    location: Optional[str] = None

    @field_validator("page_limit")
    @classmethod
    def validate_page_limit(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > scrape_config.max_page_limit:
            raise ValueError(f"pageLimit must be <= {scrape_config.max_page_limit}")
        return v


class ResumePayload(_CamelModel):
    id: str
    file_name: str = Field(..., alias="fileName")
    file_type: Literal["pdf", "docx"] = Field(..., alias="fileType")
    content: str


class JobPayload(_CamelModel):
    id: str
    title: str
    company: str
    description: str
    url: str
    location: Optional[str] = None
    salary: Optional[str] = None
    date_posted: Optional[str] = Field(default=None, alias="datePosted")


class GenerateSearchTermsRequest(_CamelModel):
    resume: ResumePayload

    @field_validator("resume")
    @classmethod
    def validate_content(cls, v: ResumePayload) -> ResumePayload:
        if len(v.content.strip()) < MIN_RESUME_CHARS:
            raise ValueError(
                "Resume content is empty or too short to be analyzed effectively."
            )
        return v


class EvaluateJobMatchRequest(_CamelModel):
    job: JobPayload
    resume: ResumePayload


class EvaluateJobMatchesBulkRequest(_CamelModel):
    jobs: List[JobPayload]
    resume: ResumePayload


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_orchestrator() -> MultiSiteOrchestrator:
    return MultiSiteOrchestrator()


@lru_cache(maxsize=1)
def get_scorer() -> MatchScorer:
    return MatchScorer()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[type-arg]
    """Log startup configuration and shutdown."""
    logger.info(
        "FastAPI server starting | port=%s | sites=%s",
        server_config.port,
        ", ".join(SITE_REGISTRY.site_ids()),
    )
    yield
    logger.info("FastAPI server shutting down")


# ---------------------------------------------------------------------------
# App Setup
# ---------------------------------------------------------------------------


app = FastAPI(
    title="Job Scraper API",
    description="Human-paced multi-site job scraping and resume match scoring",
    version="1.0.0",
    docs_url="/docs",
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=server_config.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Scraping endpoints
# ---------------------------------------------------------------------------


@app.post("/api/scrape/site", tags=["scrape"])
async def scrape_job_site(
    request: ScrapeSiteRequest,
    orchestrator: MultiSiteOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Scrape a single site for one search phrase."""
    location = request.location or scrape_config.default_location
    jobs = await orchestrator.scrape_site(
        request.site,
        request.search_terms,
        location=location,
        page_limit=request.page_limit,
    )
    return JSONResponse(
        content=envelope(
            False,
            f"Successfully scraped {len(jobs)} jobs from {request.site} in {location}",
            [job.to_dict() for job in jobs],
        )
    )


@app.post("/api/scrape/jobs", tags=["scrape"])
async def scrape_jobs(
    request: ScrapeJobsRequest,
    orchestrator: MultiSiteOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Scrape every search term on every requested site."""
    location = request.location or scrape_config.default_location
    jobs = await orchestrator.scrape_all(
        request.search_terms,
        sites=request.sites,
        page_limit=request.page_limit,
        location=location,
    )
    return JSONResponse(
        content=envelope(
            False,
            f"Successfully scraped {len(jobs)} jobs in {location}",
            [job.to_dict() for job in jobs],
        )
    )


# ---------------------------------------------------------------------------
# Match scoring endpoints
# ---------------------------------------------------------------------------


@app.post("/api/openai/generate-search-terms", tags=["scoring"])
async def generate_search_terms(
    request: GenerateSearchTermsRequest,
    scorer: MatchScorer = Depends(get_scorer),
) -> JSONResponse:
    terms = await scorer.keywords(request.resume.content)
    return JSONResponse(content=envelope(False, "Search terms generated successfully", terms))


@app.post("/api/openai/evaluate-job-match", tags=["scoring"])
async def evaluate_job_match(
    request: EvaluateJobMatchRequest,
    scorer: MatchScorer = Depends(get_scorer),
) -> JSONResponse:
    job = request.job.model_dump(by_alias=True, exclude_none=True)
    score = await scorer.score(job, request.resume.content)
    return JSONResponse(
        content=envelope(
            False,
            "Job match evaluated successfully",
            {"job": job, "matchScore": score},
        )
    )


@app.post("/api/openai/evaluate-job-matches-bulk", tags=["scoring"])
async def evaluate_job_matches_bulk(
    request: EvaluateJobMatchesBulkRequest,
    scorer: MatchScorer = Depends(get_scorer),
) -> JSONResponse:
    jobs = [job.model_dump(by_alias=True, exclude_none=True) for job in request.jobs]
    results = await scorer.score_many(jobs, request.resume.content)
    return JSONResponse(
        content=envelope(False, f"Successfully evaluated {len(results)} jobs", results)
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["health"])
async def health_check() -> JSONResponse:
    """Liveness probe; no scraping or model calls."""
    return JSONResponse(
        content=envelope(
            False,
            "Server is running",
            {"status": "ok", "sites": SITE_REGISTRY.site_ids()},
        )
    )


# ---------------------------------------------------------------------------
# Exception Handlers
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.warning("Invalid request | path=%s | %s", request.url.path, details)
    return JSONResponse(
        status_code=400,
        content=envelope(True, f"Invalid request: {details}"),
    )


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.warning("Rejected request | path=%s | %s", request.url.path, exc)
    return JSONResponse(status_code=400, content=envelope(True, str(exc)))


@app.exception_handler(JobScraperError)
async def scraper_exception_handler(request: Request, exc: JobScraperError) -> JSONResponse:
    logger.error("Scraper error: %s | path=%s", exc, request.url.path)
    return JSONResponse(status_code=500, content=envelope(True, str(exc)))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions; always answers with a 500 envelope."""
    logger.error("Unhandled exception: %s | path=%s", exc, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=envelope(True, str(exc) or "An unknown error occurred"),
    )


# ---------------------------------------------------------------------------
# Main Runner
# ---------------------------------------------------------------------------


def main(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Start the uvicorn ASGI server for the FastAPI application.

    Single worker: the per-site locks are process-local.
    """
    uvicorn.run(
        "api.api_server:app",
        host=host or server_config.host,
        port=port or server_config.port,
        log_level=server_config.log_level.lower(),
        reload=False,
        workers=1,
    )


if __name__ == "__main__":
    main()
