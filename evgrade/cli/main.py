# evgrade — rule-based evidence strength classification for study texts
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Command-line interface: classify a study abstract from a file, a
string, or standard input and print a report and/or JSON.

Usage::

    evgrade --file study.txt
    evgrade --text "Abstract text here..."
    cat study.txt | evgrade --json-only --pretty
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from evgrade.rubric import ClassificationResult, ClassifierSettings, classify
from evgrade.templates import TemplateEngine, render_summary

logger = logging.getLogger(__name__)

SEPARATOR = "─" * 63

USAGE_EXAMPLES = """\
Usage:
  evgrade --file study.txt
  evgrade --text "Abstract text here..."
  cat study.txt | evgrade"""


class InputError(ValueError):
    """Input could not be read or is not usable for classification."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="evgrade",
        description="Classify study evidence quality using causal inference best practices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=USAGE_EXAMPLES,
    )
    parser.add_argument(
        "-f", "--file", type=Path,
        help="Path to text file containing study abstract/excerpt",
    )
    parser.add_argument(
        "-t", "--text",
        help="Study abstract/excerpt as a string",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "-j", "--json-only", action="store_true",
        help="Output only JSON (no summary)",
    )
    output.add_argument(
        "-s", "--summary-only", action="store_true",
        help="Output only human-readable summary (no JSON)",
    )
    parser.add_argument(
        "-p", "--pretty", action="store_true",
        help="Pretty-print JSON output",
    )
    parser.add_argument(
        "--template-dir", type=Path,
        help="Directory with a customised summary.txt report template",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log pipeline decisions to stderr",
    )
    return parser


def read_input(
    file: Optional[Path],
    text: Optional[str],
    stdin: TextIO,
    *,
    min_length: int,
) -> str:
    """Resolve the input text: file first, then ``--text``, then stdin.

    Raises :class:`InputError` when nothing usable was supplied.
    """
    if file is not None:
        try:
            input_text = file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"Error reading file: {file}") from e
    elif text is not None:
        input_text = text
    else:
        input_text = "" if stdin.isatty() else stdin.read().strip()
        if not input_text:
            raise InputError(
                "Error: No input provided. Use --file, --text, or pipe text to stdin.\n\n"
                + USAGE_EXAMPLES
            )

    if len(input_text.strip()) < min_length:
        raise InputError(
            "Error: Input text too short. Please provide a study abstract or "
            f"excerpt (min {min_length} characters)."
        )
    return input_text


def format_output(
    result: ClassificationResult,
    *,
    json_only: bool,
    summary_only: bool,
    pretty: bool,
    settings: ClassifierSettings,
    engine: TemplateEngine,
) -> str:
    if json_only:
        return result.to_json(pretty=pretty)

    summary = render_summary(result, settings=settings, engine=engine)
    if summary_only:
        return summary

    return "\n".join([
        summary,
        "",
        SEPARATOR,
        "  FULL JSON OUTPUT",
        SEPARATOR,
        result.to_json(pretty=True),
    ])


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    settings = ClassifierSettings()
    try:
        text = read_input(
            args.file, args.text, sys.stdin, min_length=settings.min_text_length,
        )
    except InputError as e:
        print(str(e), file=sys.stderr)
        return 1

    logger.debug("Classifying %d characters of input", len(text))
    result = classify(text, settings)
    engine = TemplateEngine(user_dir=args.template_dir)
    print(format_output(
        result,
        json_only=args.json_only,
        summary_only=args.summary_only,
        pretty=args.pretty,
        settings=settings,
        engine=engine,
    ))
    return 0


if __name__ == "__main__":
    sys.exit(main())
