"""``extract-jsonld-recipes``: print the Schema.org recipes embedded in a page."""

import argparse
import json
import sys

from cleaner.jsonld import extract_json_ld_recipes_from_string
from cli.sources import read_source
from fetching import FetchError
from logs import configure_logging


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="extract-jsonld-recipes",
        description="Extract JSON-LD Schema.org recipes from an HTML document.",
    )
    p.add_argument("path", help="HTML file, numbered test fixture or http(s) URL")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_argparser().parse_args(argv)
    configure_logging()

    try:
        html = read_source(args.path)
    except (OSError, FetchError) as exc:
        print(exc, file=sys.stderr)
        return 1

    recipes = extract_json_ld_recipes_from_string(html)
    payload = [recipe.model_dump(by_alias=True) for recipe in recipes]
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
