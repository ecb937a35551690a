"""FastAPI application exposing the HTML cleaner to collaborators.

Exports ``app`` for use with ``uvicorn main:app``.
"""

import logging
import os
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Load .env next to this file so LOG_LEVEL / FETCH_* settings are set
load_dotenv(Path(__file__).resolve().parent / ".env")

from cleaner.jsonld import extract_json_ld_recipes_from_string
from cleaner.reducer import clean_html_for_llm
from fetching import FetchError, PageFetcher
from logs import configure_logging
from models import (
    CleanRequest,
    FetchRequest,
    FetchResponse,
    PageCleaningResult,
    RecipesRequest,
    RecipesResponse,
)

configure_logging()
logger = logging.getLogger("service")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

MAX_CONCURRENT_FETCHES = int(os.getenv("MAX_CONCURRENT_FETCHES", "4"))

# Sync endpoints run in the threadpool, so a thread semaphore bounds fetches
_fetch_slots = threading.BoundedSemaphore(MAX_CONCURRENT_FETCHES)
_fetcher: PageFetcher | None = None


def get_fetcher() -> PageFetcher:
    """Lazily create the shared fetch client."""
    global _fetcher
    if _fetcher is None:
        _fetcher = PageFetcher()
    return _fetcher


def close_fetcher() -> None:
    global _fetcher
    if _fetcher is not None:
        _fetcher.close()
        _fetcher = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Close the shared fetch client when the server stops."""
    yield
    close_fetcher()


app = FastAPI(title="LLM Page Cleaner", lifespan=lifespan)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(FetchError)
async def fetch_error_handler(request: Request, exc: FetchError) -> JSONResponse:
    """Upstream page could not be fetched."""
    logger.warning("fetch failed: %s", exc, extra={"url": exc.url})
    return JSONResponse(status_code=502, content={"error": str(exc)})


@app.exception_handler(Exception)
async def catch_all_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unhandled exceptions with traceback and return a JSON 500."""
    logger.error(
        "Unhandled exception: %s: %s",
        type(exc).__name__,
        exc,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": str(exc)})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
async def health() -> dict:
    """Liveness check."""
    return {"ok": True}


@app.post("/clean", response_model=PageCleaningResult, response_model_by_alias=True)
def clean(request: CleanRequest) -> PageCleaningResult:
    """Reduce an HTML document for LLM ingestion."""
    return clean_html_for_llm(request.html, request.options)


@app.post("/recipes", response_model=RecipesResponse, response_model_by_alias=True)
def recipes(request: RecipesRequest) -> RecipesResponse:
    """Extract Schema.org recipes from the document's JSON-LD."""
    return RecipesResponse(recipes=extract_json_ld_recipes_from_string(request.html))


@app.post(
    "/fetch",
    response_model=FetchResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
def fetch(request: FetchRequest) -> FetchResponse:
    """Fetch a page statically; optionally clean it and pull its recipes.

    Scripts on the page are never executed.  At most
    ``MAX_CONCURRENT_FETCHES`` fetches run at once; further requests wait.
    """
    logger.info("fetch request", extra={"url": request.url})
    timeout = request.timeout / 1000 if request.timeout else None

    with _fetch_slots:
        page = get_fetcher().fetch(request.url, timeout=timeout)

    if not request.clean:
        return FetchResponse(html=page.html, final_url=page.final_url)
    return FetchResponse(
        html=page.html,
        final_url=page.final_url,
        cleaned=clean_html_for_llm(page.html, request.options),
        recipes=extract_json_ld_recipes_from_string(page.html),
    )
