"""Structured plain-text rendering of an already-reduced document.

Walks the body's children and emits one text group per block:

    # Heading
    (blank)
    Paragraph text
    (blank)
    - list item
    - nested item          <- nested lists stay flat, not indented
    (blank)
    cell<TAB>cell

Runs of inline siblings between blocks form their own group.  Exactly one
blank line separates groups; there are never leading or trailing blanks.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag
from bs4.element import PageElement

from cleaner.dom import (
    HtmlToDocumentAdapter,
    get_body_element,
    is_text,
    parse_html,
    tag_name,
)
from cleaner.tags import HEADING_TAGS, LIST_TAGS
from models.options import MinimalTextOptions

MINIMAL_BLOCK_TAGS: frozenset[str] = frozenset({
    *HEADING_TAGS, "p", "ul", "ol", "li",
    "table", "thead", "tbody", "tfoot", "tr", "th", "td",
})

_WS_RE = re.compile(r"\s+")


def _normalize_inline(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _split_and_normalize(text: str) -> list[str]:
    lines = (_normalize_inline(line) for line in text.split("\n"))
    return [line for line in lines if line]


def _is_block(node: PageElement) -> bool:
    return isinstance(node, Tag) and tag_name(node) in MINIMAL_BLOCK_TAGS


def _is_list(node: PageElement) -> bool:
    return isinstance(node, Tag) and tag_name(node) in LIST_TAGS


def text_from_inline(node: PageElement) -> str:
    """Concatenated text of *node*; ``<br>`` becomes a newline.

    Walks descendants iteratively, so nesting depth is unbounded.
    """
    if is_text(node):
        return str(node)
    if not isinstance(node, Tag):
        return ""
    if tag_name(node) == "br":
        return "\n"
    parts: list[str] = []
    for desc in node.descendants:
        if is_text(desc):
            parts.append(str(desc))
        elif isinstance(desc, Tag) and tag_name(desc) == "br":
            parts.append("\n")
    return "".join(parts)


def _collapse_blank_lines(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if line == "" and (not out or out[-1] == ""):
            continue
        out.append(line)
    return out


class _Renderer:
    def __init__(self, options: MinimalTextOptions) -> None:
        self.options = options
        self.lines: list[str] = []

    def push_separator(self) -> None:
        if self.lines and self.lines[-1] != "":
            self.lines.append("")

    def append_text_lines(self, text: str, prefix: str = "") -> None:
        for i, part in enumerate(_split_and_normalize(text)):
            self.lines.append(f"{prefix}{part}" if i == 0 else part)

    def heading(self, level: int, text: str) -> None:
        cleaned = _normalize_inline(text)
        if not cleaned:
            return
        if self.options.heading_style == "prefix":
            self.lines.append(f"{self.options.heading_prefix} {cleaned}")
        else:
            self.lines.append(f"{'#' * min(max(level, 1), 6)} {cleaned}")

    def list_(self, list_el: Tag) -> None:
        for li in list_el.find_all("li", recursive=False):
            self.list_item(li)

    def list_item(self, li: Tag) -> None:
        inline = "".join(
            text_from_inline(child) for child in li.children if not _is_list(child)
        )
        self.append_text_lines(inline, f"{self.options.list_marker} ")
        for child in li.find_all(list(LIST_TAGS), recursive=False):
            self.list_(child)

    def table(self, table_el: Tag) -> None:
        for row in table_el.find_all("tr"):
            cells = (
                _normalize_inline(text_from_inline(cell))
                for cell in row.find_all(["th", "td"])
            )
            line = self.options.table_cell_separator.join(c for c in cells if c)
            if line:
                self.lines.append(line)

    def block(self, el: Tag) -> None:
        tag = tag_name(el)
        if tag in HEADING_TAGS:
            self.heading(int(tag[1]), text_from_inline(el))
        elif tag == "p":
            self.append_text_lines(text_from_inline(el))
        elif tag in LIST_TAGS:
            self.list_(el)
        elif tag == "li":
            self.list_item(el)
        elif tag == "table":
            self.table(el)
        else:
            self.append_text_lines(text_from_inline(el))

    def children_as_blocks(self, parent: Tag) -> None:
        inline_buffer = ""
        for child in parent.children:
            if _is_block(child):
                if inline_buffer.strip():
                    self.append_text_lines(inline_buffer)
                    self.push_separator()
                inline_buffer = ""
                self.block(child)
                self.push_separator()
                continue
            inline_buffer += text_from_inline(child)
        if inline_buffer.strip():
            self.append_text_lines(inline_buffer)

    def render(self, body: Tag) -> str:
        self.children_as_blocks(body)
        return "\n".join(_collapse_blank_lines(self.lines)).strip()


def document_to_minimal_text(
    doc: BeautifulSoup, options: MinimalTextOptions | None = None
) -> str:
    """Render the body of *doc* as heading/list/table-aware plain text."""
    return _Renderer(options or MinimalTextOptions()).render(get_body_element(doc))


def html_to_minimal_text(
    html: str,
    options: MinimalTextOptions | None = None,
    adapter: HtmlToDocumentAdapter | None = None,
) -> str:
    """Parse *html* and render it with ``document_to_minimal_text``."""
    return document_to_minimal_text(parse_html(html, adapter), options)
