"""Schema.org Recipe extraction from embedded JSON-LD.

Independent of the reduction pipeline: it reads every
``<script type="application/ld+json">`` block (parameterized content types
included), walks the parsed JSON for Recipe nodes and flattens their
ingredients and instructions into plain string lists.

Recipe nodes are searched through arrays and the structural keys in
``NESTED_KEYS``.  A node only counts when its Schema.org context is
allowed -- declared on the node, inherited from an ancestor, or simply
absent.  Nodes sharing an ``@id`` are kept once (first occurrence wins).
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from cleaner.dom import HtmlToDocumentAdapter, parse_html
from models.recipe import Recipe

logger = logging.getLogger("cleaner")

JSON_LD_TYPE = "application/ld+json"

NESTED_KEYS: tuple[str, ...] = (
    "@graph",
    "mainEntity",
    "mainEntityOfPage",
    "hasPart",
    "subjectOf",
    "about",
    "itemListElement",
    "itemList",
    "isPartOf",
)

_SCHEMA_ORG_CONTEXTS = frozenset({
    "https://schema.org",
    "https://schema.org/",
    "http://schema.org",
    "http://schema.org/",
})

_ZERO_WIDTH_RE = re.compile(r"[\u200b\u200c\u200d]")
_WS_RE = re.compile(r"\s+")
_LEADING_BULLET_RE = re.compile(r"^[-\u2013\u2022\s]+")


def clean_text(text: str) -> str:
    """Drop zero-width chars, collapse whitespace, strip leading bullets."""
    text = _ZERO_WIDTH_RE.sub("", text)
    text = _WS_RE.sub(" ", text)
    return _LEADING_BULLET_RE.sub("", text).strip()


def _to_str(value: Any) -> str:
    """String coercion in the spirit of JavaScript's ``String(value)``."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join("" if v is None else _to_str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _normalize_type(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [_to_str(v) for v in value]
    return [_to_str(value)]


def _is_schema_org(value: Any) -> bool:
    return isinstance(value, str) and value in _SCHEMA_ORG_CONTEXTS


def is_schema_org_context(context: Any) -> bool:
    """True for a Schema.org ``@context`` (or none at all, i.e. inherited)."""
    if not context:
        return True
    if _is_schema_org(context):
        return True
    if isinstance(context, list):
        return any(
            _is_schema_org(entry)
            or (isinstance(entry, dict) and _is_schema_org(entry.get("@vocab")))
            for entry in context
        )
    if isinstance(context, dict):
        return _is_schema_org(context.get("@vocab"))
    return False


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def _json_ld_scripts(doc: BeautifulSoup) -> list[Tag]:
    return [
        script
        for script in doc.find_all("script")
        if str(script.get("type") or "").strip().lower().startswith(JSON_LD_TYPE)
    ]


class _RecipeCollector:
    def __init__(self) -> None:
        self.recipes: list[dict] = []
        self._seen_ids: set[str] = set()

    def add(self, node: dict) -> None:
        node_id = node.get("@id")
        if isinstance(node_id, str) and node_id:
            if node_id in self._seen_ids:
                return
            self._seen_ids.add(node_id)
        self.recipes.append(node)

    def walk(self, root: Any) -> None:
        """Depth-first, document-order search using an explicit stack."""
        stack: list[tuple[Any, bool]] = [(root, False)]
        while stack:
            node, context_allowed = stack.pop()
            if isinstance(node, list):
                stack.extend((entry, context_allowed) for entry in reversed(node))
                continue
            if not isinstance(node, dict):
                continue

            allowed = context_allowed or is_schema_org_context(node.get("@context"))
            if allowed and "Recipe" in _normalize_type(node.get("@type")):
                self.add(node)

            for key in reversed(NESTED_KEYS):
                value = node.get(key)
                if isinstance(value, (list, dict)):
                    stack.append((value, allowed))


def find_json_ld_recipes(doc: BeautifulSoup) -> list[dict]:
    """Return the raw Recipe nodes from every JSON-LD block of *doc*.

    A block that fails to parse is skipped; it never aborts the others.
    """
    collector = _RecipeCollector()
    for script in _json_ld_scripts(doc):
        text = (script.string or script.get_text() or "").strip()
        if not text:
            continue
        try:
            data = json.loads(text)
        except (ValueError, RecursionError):
            logger.debug("skipping malformed JSON-LD block", extra={"chars": len(text)})
            continue
        collector.walk(data)
    return collector.recipes


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _ingredient_text(entry: Any) -> str:
    """Text of one ingredient entry; nested ``Role`` wrappers are flattened."""
    parts: list[str] = []
    stack: list[Any] = [entry]
    while stack:
        item = stack.pop()
        if item is None:
            continue
        if not isinstance(item, dict):
            parts.append(_to_str(item))
            continue
        if "Role" in _normalize_type(item.get("@type")):
            inner = item.get("recipeIngredient")
            if isinstance(inner, list):
                stack.extend(reversed(inner))
            else:
                stack.append(inner)
            continue
        parts.append(_plain_ingredient_text(item))
    return " ".join(p for p in parts if p)


def _plain_ingredient_text(entry: dict) -> str:
    for key in ("text", "name"):
        value = entry.get(key)
        if isinstance(value, str) and value:
            return value
    node_id = entry.get("@id")
    if isinstance(node_id, str) and node_id:
        return node_id
    return json.dumps(entry, ensure_ascii=False)


def normalize_ingredients(node: dict) -> list[str]:
    """Flatten ``recipeIngredient`` (or legacy ``ingredients``) to strings."""
    raw = node.get("recipeIngredient")
    if not raw:
        raw = node.get("ingredients")
    if not raw:
        return []
    entries = raw if isinstance(raw, list) else [raw]
    cleaned = (clean_text(_ingredient_text(entry)) for entry in entries)
    return [text for text in cleaned if text]


def _sub_item_text(item: Any) -> str:
    if isinstance(item, dict):
        return _to_str(item.get("text") or item.get("name") or "")
    return "" if item is None else _to_str(item)


def flatten_instructions(instructions: Any) -> list[str]:
    """Flatten ``recipeInstructions`` (strings, steps, sections, lists)."""
    out: list[str] = []

    def push(value: str) -> None:
        text = clean_text(value)
        if text:
            out.append(text)

    stack: list[Any] = [instructions]
    while stack:
        node = stack.pop()
        if node is None:
            continue
        if isinstance(node, str):
            push(node)
            continue
        if isinstance(node, list):
            stack.extend(reversed(node))
            continue
        if not isinstance(node, dict):
            continue

        types = _normalize_type(node.get("@type"))
        items = node.get("itemListElement")
        if items is not None and (
            not types or "HowToSection" in types or "ItemList" in types
        ):
            stack.append(items)
            continue
        text = node.get("text")
        if isinstance(text, str):
            push(text)
            continue
        name = node.get("name")
        if "HowToStep" in types and name and items:
            joined = (
                " ".join(_sub_item_text(item) for item in items)
                if isinstance(items, list)
                else _sub_item_text(items)
            )
            push(f"{_to_str(name)}: {joined}")
            continue
        if isinstance(name, str):
            push(name)

    return out


def normalize_recipe(node: dict) -> Recipe:
    """Turn a raw Schema.org Recipe node into a ``Recipe``."""
    name = node.get("name")
    recipe_yield = node.get("recipeYield")
    return Recipe(
        name=None if name is None else _to_str(name),
        recipe_yield=None if recipe_yield is None else _to_str(recipe_yield),
        recipe_ingredients=normalize_ingredients(node),
        recipe_instructions=flatten_instructions(node.get("recipeInstructions")),
    )


def extract_json_ld_recipes(doc: BeautifulSoup) -> list[Recipe]:
    """Find and normalize every Schema.org Recipe embedded in *doc*."""
    recipes = [normalize_recipe(node) for node in find_json_ld_recipes(doc)]
    logger.info("json-ld recipes extracted", extra={"recipes": len(recipes)})
    return recipes


def extract_json_ld_recipes_from_string(
    html: str, adapter: HtmlToDocumentAdapter | None = None
) -> list[Recipe]:
    """Parse *html* and extract its JSON-LD recipes."""
    return extract_json_ld_recipes(parse_html(html, adapter))
