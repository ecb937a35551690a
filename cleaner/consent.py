"""Cookie/consent banner removal.

Heuristic pre-pass run before the reducer: it deletes subtrees that are
almost certainly consent-management-platform UI (OneTrust, Didomi,
Quantcast, Cookiebot, Iubenda, Osano and generic cookie/GDPR dialogs)
plus the empty or consent-flavoured overlays they leave behind.

False negatives (a banner survives) and false positives (real content is
removed) are an accepted risk of the heuristic.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag

from cleaner.dom import attr_text, get_body_element, is_attached

logger = logging.getLogger("cleaner")

CONSENT_SELECTORS: tuple[str, ...] = (
    # OneTrust
    "#onetrust-banner-sdk",
    "#onetrust-consent-sdk",
    ".ot-sdk-container",
    ".otFloatingRoundedCorner",
    # Didomi
    "#didomi-host",
    ".didomi-popup",
    ".didomi-notice",
    # Quantcast
    ".qc-cmp2-container",
    "#qc-cmp2-ui",
    ".qc-cmp2-main",
    # Cookiebot
    "#CybotCookiebotDialog",
    "#CookiebotWidget",
    # Iubenda
    ".iubenda-cs-container",
    ".iubenda-cs-overlay",
    '[class*="iubenda" i]',
    # Osano / generic
    '[class*="osano" i]',
    '[id*="osano" i]',
    '[class*="cookie-consent" i]',
    '[class*="cookiebanner" i]',
    '[class*="cookie-banner" i]',
    '[class*="cookie-notice" i]',
    '[id*="cookie" i][id*="banner" i]',
    '[class*="gdpr" i]',
    '[class*="consent" i]',
    '[id*="consent" i]',
    # Generic modals
    '[role="dialog"]',
    '[aria-modal="true"]',
)

OVERLAY_SELECTOR = (
    '[class*="overlay" i], [class*="backdrop" i], [id*="overlay" i], [id*="backdrop" i]'
)

VENDOR_MARKERS: tuple[str, ...] = (
    "onetrust", "didomi", "qc-cmp", "cookiebot", "iubenda", "osano",
)

CONSENT_TEXT_RE = re.compile(
    r"(cookie|cookies|consent|gdpr|tcf|iab|legitimate interest|vendor|vendors"
    r"|purposes|preferences|privacy policy|personal data)",
    re.IGNORECASE,
)

_WS_RE = re.compile(r"\s+")


def _element_text(el: Tag) -> str:
    return _WS_RE.sub(" ", el.get_text()).strip()


def score_consent(text: str) -> int:
    """Score how consent-like a block of visible text reads."""
    t = text.lower()
    score = 0
    if "cookie" in t:
        score += 3
    if "consent" in t:
        score += 2
    if "preferences" in t or "settings" in t or "manage" in t:
        score += 2
    if "vendors" in t or "purposes" in t:
        score += 2
    if "iab" in t or "tcf" in t or "legitimate interest" in t:
        score += 2
    if "privacy" in t:
        score += 1
    if "accept" in t or "reject" in t:
        score += 1
    return score


def _is_vendor_hit(el: Tag) -> bool:
    idc = f"{attr_text(el, 'id')} {attr_text(el, 'class')}".lower()
    return any(marker in idc for marker in VENDOR_MARKERS)


def looks_like_consent(el: Tag) -> bool:
    """Decide whether a selector candidate is consent UI."""
    if _is_vendor_hit(el):
        return True
    text = _element_text(el)
    return bool(CONSENT_TEXT_RE.search(text)) or score_consent(text) >= 5


def remove_consent_ui(doc: BeautifulSoup) -> int:
    """Remove cookie/consent UI subtrees from *doc* in place.

    Returns:
        The number of subtrees removed.  Candidates nested inside an
        already removed subtree are not counted again.
    """
    body = get_body_element(doc)

    matched = {id(el) for selector in CONSENT_SELECTORS for el in body.select(selector)}
    # document order: an outer banner goes before anything nested in it
    candidates = [el for el in body.find_all(True) if id(el) in matched]

    removed = 0
    for el in candidates:
        if is_attached(el, body) and looks_like_consent(el):
            el.extract()
            removed += 1

    for el in body.select(OVERLAY_SELECTOR):
        if not is_attached(el, body):
            continue
        text = _element_text(el)
        if not text or CONSENT_TEXT_RE.search(text):
            el.extract()
            removed += 1

    if removed:
        logger.debug("consent ui removed", extra={"consent_removed": removed})
    return removed
