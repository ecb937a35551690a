"""Static page fetch client."""

from fetching.client import FetchedPage, FetchError, PageFetcher

__all__ = ["FetchError", "FetchedPage", "PageFetcher"]
