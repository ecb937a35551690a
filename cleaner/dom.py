"""Document adapters and small tree helpers shared by the cleaning passes.

The core never parses HTML itself: a ``HtmlToDocumentAdapter`` turns a raw
string into a ``BeautifulSoup`` document, which every pass then mutates in
place.  Two adapters are provided:

    ``LxmlDocumentAdapter`` -- lxml backend (default).  Lenient, fast and
    always synthesizes ``<html>``/``<body>``.

    ``HtmlParserDocumentAdapter`` -- stdlib ``html.parser`` backend.  Keeps
    fragments as-is, so documents may have no ``<body>`` at all.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from itertools import islice
from typing import Protocol

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement, PreformattedString


class HtmlToDocumentAdapter(Protocol):
    """Anything that can turn an HTML string into a document tree."""

    def parse(self, html: str) -> BeautifulSoup: ...


class LxmlDocumentAdapter:
    """Parse with BeautifulSoup's lxml builder."""

    features = "lxml"

    def parse(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html or "", self.features)


class HtmlParserDocumentAdapter(LxmlDocumentAdapter):
    """Parse with the standard library ``html.parser`` builder."""

    features = "html.parser"


DEFAULT_ADAPTER: HtmlToDocumentAdapter = LxmlDocumentAdapter()


def parse_html(html: str, adapter: HtmlToDocumentAdapter | None = None) -> BeautifulSoup:
    """Parse *html* into a fresh document using *adapter* (lxml by default)."""
    return (adapter or DEFAULT_ADAPTER).parse(html)


def get_body_element(doc: BeautifulSoup) -> Tag:
    """Return the element the cleaning passes operate on.

    Prefers the first ``<body>`` found by query, then the ``<html>`` root,
    and finally the document object itself for bare fragments.
    """
    body = doc.find("body")
    if body is not None:
        return body
    root = doc.find("html")
    if root is not None:
        return root
    return doc


def is_text(node: PageElement) -> bool:
    """True for plain text nodes (comments, doctypes and CDATA excluded)."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def is_attached(el: PageElement, root: Tag) -> bool:
    """True if *el* still hangs below *root* in the live tree."""
    node = el.parent
    while node is not None:
        if node is root:
            return True
        node = node.parent
    return False


def detach_all(elements: Iterable[Tag], root: Tag) -> int:
    """Extract every element still attached under *root*; return how many."""
    removed = 0
    for el in elements:
        if is_attached(el, root):
            el.extract()
            removed += 1
    return removed


def iter_elements(root: Tag, limit: int | None = None) -> Iterator[Tag]:
    """Yield descendant elements of *root* in document order, at most *limit*."""
    elements = (d for d in root.descendants if isinstance(d, Tag))
    if limit is None:
        return elements
    return islice(elements, limit)


def tag_name(el: Tag) -> str:
    return (el.name or "").lower()


def attr_text(el: Tag, name: str) -> str:
    """Return an attribute as a flat string (bs4 keeps ``class`` as a list)."""
    value = el.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(str(v) for v in value)
    return str(value)
