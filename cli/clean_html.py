"""``clean-html-for-llm``: reduce an HTML file (or URL) and print the result.

Examples::

    clean-html-for-llm ./page.html
    clean-html-for-llm ./page.html --allowed-tags recipe-minimal
    clean-html-for-llm ./page.html --keep-tables --no-drop-media
"""

import argparse
import json
import sys

from cleaner.reducer import clean_html_for_llm
from cleaner.tags import parse_allowed_tags
from cli.sources import read_source
from fetching import FetchError
from logs import configure_logging
from models import CleanOptions

_FLAGS: tuple[tuple[str, str], ...] = (
    ("drop_media", "Drop media elements (default: true)"),
    ("strict_urls", "Keep only http/https and relative URLs (default: true)"),
    ("keep_tables", "Preserve minimal table tags (default: false)"),
    ("apply_consent_ui_heuristics", "Try to remove consent UI (default: true)"),
    ("output_minimal_text", "Output minimal text, not HTML (default: false)"),
)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid max depth: {value}") from None
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Invalid max depth: {value}")
    return parsed


def _allowed_tags(value: str) -> frozenset[str]:
    try:
        return parse_allowed_tags(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="clean-html-for-llm",
        description="Reduce an HTML document to a compact, LLM-friendly fragment.",
    )
    p.add_argument("path", help="HTML file, numbered test fixture or http(s) URL")
    p.add_argument(
        "--allowed-tags",
        type=_allowed_tags,
        default=None,
        help="Comma-separated tag list or keyword: default, recipe-minimal",
    )
    for name, help_text in _FLAGS:
        p.add_argument(
            "--" + name.replace("_", "-"),
            dest=name,
            action=argparse.BooleanOptionalAction,
            default=None,
            help=help_text,
        )
    p.add_argument(
        "--max-depth",
        type=_positive_int,
        default=None,
        help="Max nodes to process (default: 200000)",
    )
    return p


def options_from_args(args: argparse.Namespace) -> CleanOptions:
    """Build ``CleanOptions`` from the flags actually given on the command line."""
    names = ["allowed_tags", "max_depth", *(name for name, _ in _FLAGS)]
    given = {name: getattr(args, name) for name in names if getattr(args, name) is not None}
    return CleanOptions(**given)


def main(argv: list[str] | None = None) -> int:
    args = build_argparser().parse_args(argv)
    configure_logging()
    options = options_from_args(args)

    try:
        html = read_source(args.path)
    except (OSError, FetchError) as exc:
        print(exc, file=sys.stderr)
        return 1

    result = clean_html_for_llm(html, options)
    print(json.dumps(result.model_dump(by_alias=True), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
