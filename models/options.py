"""Cleaning and rendering options as frozen Pydantic v2 models.

Options are immutable for one invocation.  Field names are snake_case;
the camelCase wire names (``allowedTags``, ``maxDepth`` ...) are accepted
as aliases so HTTP and CLI payloads map straight onto them.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from cleaner.tags import ANCHOR_TAGS, DEFAULT_ALLOWED_TAGS, TABLE_TAGS, parse_allowed_tags

# Node-processing budget for the unwrap/attribute pass (nodes, not depth).
DEFAULT_MAX_DEPTH = 200_000


class CleanOptions(BaseModel):
    """Options for one ``clean_document_for_llm`` call."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    allowed_tags: frozenset[str] = DEFAULT_ALLOWED_TAGS
    drop_media: bool = True
    strict_urls: bool = True
    keep_tables: bool = False
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, gt=0)
    apply_consent_ui_heuristics: bool = True
    output_minimal_text: bool = False

    @field_validator("allowed_tags", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        """Accept a preset keyword, a comma list or any iterable of names."""
        if isinstance(v, str):
            return parse_allowed_tags(v)
        return frozenset(str(t).strip().lower() for t in v if str(t).strip())

    def effective_allowed_tags(self) -> frozenset[str]:
        """Allowed tags for this call: always html/body, tables if kept.

        Returns a fresh set; ``allowed_tags`` itself is never mutated.
        """
        tags = self.allowed_tags | ANCHOR_TAGS
        if self.keep_tables:
            tags |= frozenset(TABLE_TAGS)
        return tags


class MinimalTextOptions(BaseModel):
    """Formatting knobs for the minimal-text renderer."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    heading_style: Literal["hash", "prefix"] = "hash"
    heading_prefix: str = "#"
    list_marker: str = "-"
    table_cell_separator: str = "\t"
