"""Input resolution shared by the command-line wrappers."""

import logging
import os
import re
from pathlib import Path

from fetching import PageFetcher

logger = logging.getLogger("cli")

TEST_DIR_ENV = "DW_RENDERER_TEST_DIR"

# Numbered renderer fixtures: 001.html, 042b.html ...
_FIXTURE_NAME_RE = re.compile(r"^[0-9]{3}[a-z]?\.html$")
_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def resolve_input_path(raw: str) -> Path:
    """Map a fixture name into ``$DW_RENDERER_TEST_DIR`` when that is set."""
    test_dir = os.getenv(TEST_DIR_ENV)
    if test_dir and _FIXTURE_NAME_RE.match(raw):
        return Path(test_dir) / raw
    return Path(raw)


def read_source(raw: str) -> str:
    """Return the HTML behind *raw*: an http(s) URL or a file path.

    Raises:
        OSError: When the file cannot be read.
        fetching.FetchError: When the URL cannot be fetched.
    """
    if _URL_RE.match(raw):
        with PageFetcher() as fetcher:
            return fetcher.fetch(raw).html

    path = resolve_input_path(raw)
    logger.debug("reading input file", extra={"path": str(path)})
    return path.read_text(encoding="utf-8")
