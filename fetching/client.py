"""HTTP page fetcher with retry logic.

Fetches raw page HTML for the cleaning pipeline.  Uses httpx for HTTP and
tenacity for retry-on-error.  This is a static fetch: page scripts are
never executed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import httpx
from tenacity import (
    RetryError,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger("fetching")

DEFAULT_USER_AGENT = "llm-page-cleaner/0.1 (+https://schema.org/Recipe)"


class FetchError(Exception):
    """Raised when a page cannot be fetched (after retries, if any)."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Error fetching {url}: {message}")
        self.url = url


def _is_retryable(exc: BaseException) -> bool:
    """Return True for transient errors that should be retried."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in (429, 500, 502, 503)
    if isinstance(exc, (httpx.ConnectError, httpx.ReadTimeout)):
        return True
    return False


@dataclass
class FetchedPage:
    """Raw HTML of a fetched page and the URL it finally resolved to."""

    html: str
    final_url: str
    status_code: int


class PageFetcher:
    """Synchronous page fetcher.

    Reads ``FETCH_TIMEOUT_SECONDS`` and ``FETCH_USER_AGENT`` from the
    environment.  Follows redirects and retries on 429 / 5xx and transient
    connection errors with exponential backoff.
    """

    def __init__(
        self,
        timeout: float | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout: float = timeout or float(os.getenv("FETCH_TIMEOUT_SECONDS", "15"))
        self.user_agent: str = os.getenv("FETCH_USER_AGENT", DEFAULT_USER_AGENT)
        self._client: httpx.Client = httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2.0),
        retry=retry_if_exception(_is_retryable),
    )
    def _get(self, url: str, timeout: float | None) -> httpx.Response:
        resp = self._client.get(url, timeout=timeout or self.timeout)
        resp.raise_for_status()
        return resp

    def fetch(self, url: str, *, timeout: float | None = None) -> FetchedPage:
        """Fetch *url* and return its HTML.

        Args:
            url: Absolute http(s) URL.
            timeout: Per-request timeout in seconds (defaults to the
                client timeout).

        Raises:
            FetchError: On invalid URLs, non-retryable HTTP errors and
                exhausted retries.
        """
        if not url or not url.strip():
            raise FetchError("<NO URL>", "Invalid or empty url")
        try:
            resp = self._get(url.strip(), timeout)
        except RetryError as exc:
            last = exc.last_attempt.exception()
            raise FetchError(url, str(last)) from last
        except httpx.HTTPError as exc:
            raise FetchError(url, str(exc)) from exc

        logger.info(
            "page fetched",
            extra={"url": str(resp.url), "status_code": resp.status_code},
        )
        return FetchedPage(html=resp.text, final_url=str(resp.url), status_code=resp.status_code)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None:
            self._client.close()

    def __enter__(self) -> PageFetcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
