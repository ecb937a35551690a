"""``validate-cleaning``: check cleaned fixtures against a control file.

The control file (``<testdata>/_control.csv``) is tab-separated, one row
per fixture::

    # file<TAB>url<TAB>expected snippet<TAB>expected snippet ...
    001.html	https://site/recipe	"2 cups flour"	Preheat the oven

Every fixture is reduced twice, once per output mode, and each expected
snippet must appear in both outputs.  Spaces in a snippet match any run
of whitespace.  Prints a JSON report; exits 1 when any row fails.
"""

import argparse
import json
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

from cleaner.reducer import clean_html_for_llm
from logs import configure_logging
from models import CleanOptions

CONTROL_FILE = "_control.csv"


@dataclass
class ControlRow:
    file_name: str
    url: str
    expected: list[str]


@dataclass
class ValidationResult:
    filename: str
    url: str
    outcome: str
    mismatches_html: list[str] = field(default_factory=list)
    mismatches_text: list[str] = field(default_factory=list)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_control_file(contents: str) -> list[ControlRow]:
    """Parse control rows; blank lines, ``#`` comments and short rows are skipped."""
    rows: list[ControlRow] = []
    for raw_line in contents.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        cols = line.split("\t")
        if len(cols) < 3:
            continue
        expected = [text for text in (_unquote(c) for c in cols[2:]) if text]
        rows.append(ControlRow(file_name=cols[0].strip(), url=cols[1].strip(), expected=expected))
    return rows


def whitespace_pattern(snippet: str) -> re.Pattern:
    """Literal *snippet* where each space matches any whitespace run."""
    return re.compile(r"\s+".join(re.escape(part) for part in snippet.split()))


def validate_row(row: ControlRow, html: str) -> ValidationResult:
    html_output = clean_html_for_llm(html, CleanOptions(output_minimal_text=False)).output
    text_output = clean_html_for_llm(html, CleanOptions(output_minimal_text=True)).output

    result = ValidationResult(filename=row.file_name, url=row.url, outcome="PASS")
    for snippet in row.expected:
        pattern = whitespace_pattern(snippet)
        if not pattern.search(html_output):
            result.mismatches_html.append(snippet)
        if not pattern.search(text_output):
            result.mismatches_text.append(snippet)
    if result.mismatches_html or result.mismatches_text:
        result.outcome = "FAIL"
    return result


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="validate-cleaning",
        description="Validate cleaned fixtures against expected snippets.",
    )
    p.add_argument(
        "--testdata",
        type=Path,
        default=Path("testdata"),
        help=f"Directory holding the fixtures and {CONTROL_FILE} (default: ./testdata)",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_argparser().parse_args(argv)
    configure_logging()

    try:
        rows = parse_control_file((args.testdata / CONTROL_FILE).read_text(encoding="utf-8"))
        results = [
            validate_row(row, (args.testdata / row.file_name).read_text(encoding="utf-8"))
            for row in rows
        ]
    except OSError as exc:
        print(exc, file=sys.stderr)
        return 1

    report = [
        {
            "filename": r.filename,
            "url": r.url,
            "outcome": r.outcome,
            "mismatchesHtml": r.mismatches_html,
            "mismatchesText": r.mismatches_text,
        }
        for r in results
    ]
    print(json.dumps(report, indent=2, ensure_ascii=False))
    return 1 if any(r.outcome == "FAIL" for r in results) else 0


if __name__ == "__main__":
    sys.exit(main())
