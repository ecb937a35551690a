"""Aggressive, deterministic HTML minimizer for LLM ingestion.

Pipeline (order matters -- later passes assume earlier ones ran):

    0. Optional consent-UI removal (``cleaner.consent``).
    1. Comment removal.
    2. Noise removal -- scripts, embeds, form controls, chrome regions,
       hidden elements, media (per ``drop_media``).
    3. Breadth-first unwrap of non-whitelisted elements plus attribute
       stripping, bounded by the ``max_depth`` node budget.  Only
       ``<a href>`` and ``<img src>`` survive, both URL-sanitized.
    4. Empty-node pruning in reverse document order, then comments again.
    5. Whitespace normalization and serialization; newlines come back as
       ``<br>`` markers.
    6. ``textLength`` -- rough visible length of the serialized output.

The document is mutated destructively; re-parse the original HTML for
every call.
"""

from __future__ import annotations

import logging
import re
from collections import deque

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from cleaner.consent import remove_consent_ui
from cleaner.dom import (
    HtmlToDocumentAdapter,
    detach_all,
    get_body_element,
    is_text,
    iter_elements,
    parse_html,
    tag_name,
)
from cleaner.minimal_text import document_to_minimal_text
from cleaner.tags import BLOCK_TAGS, LIST_TAGS, MEDIA_TAGS, NOISE_SELECTOR, RECIPE_MINIMAL_TAGS
from cleaner.urls import sanitize_url
from models.options import CleanOptions
from models.result import PageCleaningResult, new_stats

logger = logging.getLogger("cleaner")

# innerHTML-style serialization: minimal escaping, ``<br>`` not ``<br/>``.
_SERIALIZER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

_ZERO_WIDTH_RE = re.compile(r"[\u200b\u200c\u200d]")
_LINE_START_WS_RE = re.compile(r"\n\s*")
_INLINE_WS_RE = re.compile(r"[\t\r ]+")
_MULTI_NL_RE = re.compile(r"\n{2,}")
_EMPTY_PAIRS_RE = (
    re.compile(r"<(ul|ol)>\s*</(ul|ol)>"),
    re.compile(r"<li>\s*</li>"),
    re.compile(r"<p>\s*</p>"),
    re.compile(r"<h[1-6]>\s*</h[1-6]>"),
)
_TAG_RE = re.compile(r"<[^>]+>")
_TEXT_WS_RE = re.compile(r"[\s\u200b\u200c\u200d]+")


def remove_comments(root: Tag) -> int:
    """Delete every comment node under *root*; return how many."""
    comments = root.find_all(string=lambda text: isinstance(text, Comment))
    for comment in comments:
        comment.extract()
    return len(comments)


class _Reduction:
    """State for one reduction: the body, effective tags and counters."""

    def __init__(self, doc: BeautifulSoup, options: CleanOptions) -> None:
        self.doc = doc
        self.options = options
        self.body = get_body_element(doc)
        self.root = doc.find("html")
        self.allowed = options.effective_allowed_tags()
        self.stats = new_stats()

    # -- pass 2 -------------------------------------------------------------

    def remove_noise(self) -> None:
        body = self.body
        self.stats["removedNodes"] += detach_all(body.select(NOISE_SELECTOR), body)

        if self.options.drop_media:
            media = body.find_all(list(MEDIA_TAGS))
        else:
            # img is decided later by the attribute logic
            media = [
                el for el in body.find_all(["video", "audio", "figure"])
                if tag_name(el) not in self.allowed
            ]
        self.stats["removedNodes"] += detach_all(media, body)

    # -- pass 3 -------------------------------------------------------------

    def _is_anchor(self, el: Tag) -> bool:
        return el is self.body or el.parent is None or el is self.root

    def _unwrap_if_needed(self, el: Tag) -> list | None:
        """Replace a non-whitelisted element by its children.

        Returns the moved children, or ``None`` when *el* stays.
        """
        tag = tag_name(el)
        if tag in self.allowed or self._is_anchor(el):
            return None
        if not self.options.keep_tables:
            # keep row/cell text from gluing together
            if tag == "tr":
                el.insert_after(NavigableString("\n"))
            elif tag in ("td", "th"):
                el.insert_after(NavigableString(" "))
        moved = list(el.contents)
        el.unwrap()
        self.stats["unwrappedNodes"] += 1
        return moved

    def _strip_attributes(self, el: Tag) -> tuple[bool, bool]:
        """Drop every attribute except sanitized ``a[href]``/``img[src]``.

        Returns ``(kept_href, kept_src)``.
        """
        tag = tag_name(el)
        kept_href = False
        kept_src = False
        for key, value in list(el.attrs.items()):
            name = key.lower()
            if tag == "a" and name == "href":
                safe = sanitize_url(value, self.options.strict_urls)
                if safe:
                    el["href"] = safe
                    kept_href = True
                else:
                    del el[key]
                    kept_href = False
                continue
            if tag == "img" and name == "src":
                safe = sanitize_url(value, self.options.strict_urls)
                if safe:
                    el["src"] = safe
                    kept_src = True
                else:
                    del el[key]
                    kept_src = False
                continue
            del el[key]
            self.stats["removedAttrs"] += 1
        return kept_href, kept_src

    def unwrap_and_strip(self) -> None:
        """Breadth-first unwrap/attribute pass under the node budget."""
        queue: deque = deque([self.body])
        processed = 0
        budget = self.options.max_depth
        while queue and processed < budget:
            processed += 1
            node = queue.popleft()
            if not isinstance(node, Tag):
                continue

            moved = self._unwrap_if_needed(node)
            if moved is not None:
                queue.extend(moved)
                continue

            tag = tag_name(node)
            kept_href, kept_src = self._strip_attributes(node)

            if tag == "a" and not kept_href and node.parent is not None:
                moved = list(node.contents)
                node.unwrap()
                self.stats["strippedLinks"] += 1
                queue.extend(moved)
                continue
            # reaching here means img is whitelisted
            if tag == "img" and not kept_src:
                node.extract()
                self.stats["removedNodes"] += 1
                continue

            queue.extend(node.contents)

        if queue:
            logger.debug(
                "node budget exhausted, leaving remaining nodes as-is",
                extra={"max_depth": budget, "pending": len(queue)},
            )

    # -- pass 4 -------------------------------------------------------------

    def _is_meaningful(self, el: Tag) -> bool:
        tag = tag_name(el)
        if tag == "br":
            return True
        if tag in LIST_TAGS:
            return el.find("li") is not None
        if tag == "img":
            return "img" in self.allowed and bool(el.get("src"))
        return bool(_ZERO_WIDTH_RE.sub("", el.get_text()).strip())

    def prune_empty(self) -> None:
        # reverse pre-order: children are judged before their parents
        elements = list(iter_elements(self.body, self.options.max_depth))
        for el in reversed(elements):
            if tag_name(el) not in self.allowed:
                continue  # beyond the budget, never unwrapped
            if not self._is_meaningful(el):
                el.extract()
                self.stats["emptyNodes"] += 1

    # -- pass 5 -------------------------------------------------------------

    def serialize(self) -> str:
        body = self.body
        for br in body.find_all("br"):
            br.replace_with(NavigableString("\n"))

        # newline padding lets collapsing keep block boundaries
        for tag in BLOCK_TAGS:
            for el in body.find_all(tag):
                if el.contents and not is_text(el.contents[0]):
                    el.insert(0, NavigableString("\n"))
                if el.contents and not is_text(el.contents[-1]):
                    el.append(NavigableString("\n"))

        out = body.decode_contents(formatter=_SERIALIZER)
        out = _LINE_START_WS_RE.sub("\n", out)
        out = _INLINE_WS_RE.sub(" ", out)
        out = _MULTI_NL_RE.sub("\n", out)
        out = out.strip()

        out = out.replace("\n", "<br>")
        for pattern in _EMPTY_PAIRS_RE:
            out = pattern.sub("", out)
        # each list item on its own line
        return out.replace("<li>", "\n<li>").strip()


def text_length(html: str) -> int:
    """Rough visible-text length of an HTML fragment.

    Tags are stripped and whitespace (zero-width characters included)
    collapsed; entities are not decoded, so this is an approximation.
    """
    text = _TAG_RE.sub("", html)
    return len(_TEXT_WS_RE.sub(" ", text).strip())


def clean_document_for_llm(
    doc: BeautifulSoup, options: CleanOptions | None = None
) -> PageCleaningResult:
    """Reduce *doc* in place and return the cleaned output with statistics.

    Args:
        doc: A freshly parsed document.  It is mutated destructively and
            must not be reduced twice.
        options: Cleaning options; defaults apply when omitted.

    Returns:
        A ``PageCleaningResult`` with either the HTML fragment or, when
        ``output_minimal_text`` is set, the minimal-text rendering of the
        reduced tree.
    """
    opts = options or CleanOptions()
    run = _Reduction(doc, opts)

    if opts.apply_consent_ui_heuristics:
        run.stats["removedNodes"] += remove_consent_ui(doc)

    run.stats["removedComments"] += remove_comments(run.body)
    run.remove_noise()
    run.unwrap_and_strip()
    run.prune_empty()
    run.stats["removedComments"] += remove_comments(run.body)

    minimal_text = document_to_minimal_text(doc) if opts.output_minimal_text else None
    html = run.serialize()
    result = PageCleaningResult(
        output=minimal_text if minimal_text is not None else html,
        text_length=text_length(html),
        stats=run.stats,
    )

    logger.info(
        "page cleaned",
        extra={
            "output_chars": len(result.output),
            "text_length": result.text_length,
            "stats": result.stats,
        },
    )
    return result


def clean_html_for_llm(
    html: str,
    options: CleanOptions | None = None,
    adapter: HtmlToDocumentAdapter | None = None,
) -> PageCleaningResult:
    """Parse *html* with *adapter* and reduce it."""
    return clean_document_for_llm(parse_html(html, adapter), options)


def clean_html_minimal(html: str) -> PageCleaningResult:
    """Reduce with the recipe-minimal whitelist, no tables, no media."""
    return clean_html_for_llm(
        html,
        CleanOptions(allowed_tags=RECIPE_MINIMAL_TAGS, keep_tables=False, drop_media=True),
    )
