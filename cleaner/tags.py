"""Tag-set constants shared by the reducer and the minimal-text renderer.

All sets are ``frozenset`` instances so no single invocation can leak
option merging (e.g. adding table tags) into another.
"""

from __future__ import annotations

DEFAULT_ALLOWED_TAGS: frozenset[str] = frozenset({
    # Headings & paragraphs
    "h1", "h2", "h3", "h4", "h5", "h6", "p",
    # Lists (ingredients/instructions live here)
    "ul", "ol", "li",
    # Emphasis
    "strong", "em", "b", "i", "u", "sup", "sub",
    # Line breaks & time
    "br", "time",
    # Links (href sanitized by the reducer)
    "a",
})

# Narrower preset for recipe-content extraction.
RECIPE_MINIMAL_TAGS: frozenset[str] = frozenset({
    "h1", "h2", "h3", "p", "ul", "ol", "li", "a", "strong", "em", "br", "time",
})

TABLE_TAGS: tuple[str, ...] = (
    "table", "thead", "tbody", "tfoot", "tr", "th", "td", "caption", "colgroup", "col",
)

# Never unwrapped, whatever the caller allows.
ANCHOR_TAGS: frozenset[str] = frozenset({"html", "body"})

NOISE_SELECTOR = (
    "script, style, noscript, template, iframe, frame, frameset, object, embed, "
    "form, input, textarea, select, button, svg, canvas, picture, source, meta, link, "
    "header, footer, nav, aside, share, ads, [aria-hidden='true']"
)

MEDIA_TAGS: tuple[str, ...] = ("img", "video", "audio", "figure")

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")

LIST_TAGS: frozenset[str] = frozenset({"ul", "ol"})

# Block-level tags that get newline padding before serialization.
BLOCK_TAGS: tuple[str, ...] = (
    "p", "ul", "ol", "li", *HEADING_TAGS, "table", "thead", "tbody", "tr", "th", "td",
)

PRESETS: dict[str, frozenset[str]] = {
    "default": DEFAULT_ALLOWED_TAGS,
    "recipe-minimal": RECIPE_MINIMAL_TAGS,
}


def parse_allowed_tags(raw: str) -> frozenset[str]:
    """Resolve a preset keyword or a comma-separated tag list.

    Raises:
        ValueError: If the list contains no tag names.
    """
    keyword = raw.strip().lower()
    if keyword in PRESETS:
        return PRESETS[keyword]
    tags = frozenset(t.strip().lower() for t in raw.split(",") if t.strip())
    if not tags:
        raise ValueError("allowed-tags must not be empty")
    return tags
