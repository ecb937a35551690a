"""HTML reduction core: consent removal, whitelist reduction, minimal-text
rendering and JSON-LD recipe extraction.

Entry points live in their modules (``cleaner.reducer``,
``cleaner.minimal_text``, ``cleaner.jsonld``); this package stays
import-light because ``models`` depends on ``cleaner.tags``.
"""
