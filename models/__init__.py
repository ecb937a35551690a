"""Public re-exports of all model types."""

from models.options import DEFAULT_MAX_DEPTH, CleanOptions, MinimalTextOptions
from models.recipe import Recipe
from models.request import CleanRequest, FetchRequest, RecipesRequest
from models.response import FetchResponse, RecipesResponse
from models.result import STAT_COUNTERS, PageCleaningResult, new_stats

__all__ = [
    # Options
    "CleanOptions",
    "MinimalTextOptions",
    "DEFAULT_MAX_DEPTH",
    # Results
    "PageCleaningResult",
    "Recipe",
    "STAT_COUNTERS",
    "new_stats",
    # Request/Response
    "CleanRequest",
    "RecipesRequest",
    "FetchRequest",
    "RecipesResponse",
    "FetchResponse",
]
