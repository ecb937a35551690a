"""PageCleaningResult model and the fixed statistics counters."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

STAT_COUNTERS: tuple[str, ...] = (
    "removedNodes",
    "unwrappedNodes",
    "removedAttrs",
    "strippedLinks",
    "emptyNodes",
    "removedComments",
)


def new_stats() -> dict[str, int]:
    """Fresh zeroed counters; stats never accumulate across calls."""
    return {name: 0 for name in STAT_COUNTERS}


class PageCleaningResult(BaseModel):
    """Output of one reduction.

    ``output`` is either the reduced HTML fragment or the minimal text,
    depending on ``CleanOptions.output_minimal_text``.  ``text_length`` is
    an approximation of visible reading length (tags stripped, whitespace
    collapsed), not a precise metric.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    output: str
    text_length: int
    stats: dict[str, int]
