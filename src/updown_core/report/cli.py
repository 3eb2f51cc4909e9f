"""Pattern statistics CLI.

Run: python -m updown_core.report [--root logs/raw] [--date YYYY-MM-DD ...] [--json]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import NoReturn, Sequence

from updown_core.config import ConfigError, load_config
from updown_core.logging import setup_logging
from updown_core.patterns.config import load_pattern_config
from updown_core.report.render import render_text
from updown_core.report.stats import build_report
from updown_core.windows import WarningTracker
from updown_core.windows.layout import is_date_name


class _ArgumentParser(argparse.ArgumentParser):
    """Exit with status 1 (not argparse's 2) on bad arguments."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def _date_arg(value: str) -> str:
    if not is_date_name(value):
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD")
    return value


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer {value!r}") from None
    if n <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="python -m updown_core.report",
        description="Count up/down market windows matching each pattern",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--root", default=None, help="Log root (default: storage.log_root)")
    parser.add_argument(
        "--date",
        dest="dates",
        action="append",
        type=_date_arg,
        default=[],
        help="Limit to one date; repeatable",
    )
    parser.add_argument("--pattern-config", default=None, help="Pattern config JSON")
    parser.add_argument("--include-incomplete", action="store_true", help="Include incomplete windows")
    parser.add_argument("--minutes", type=_positive_int, default=None, help="Only windows of this duration")
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("--log-level", default=None, help="Override logging.level")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    setup_logging(level=args.log_level or config.logging.level, log_format=config.logging.format)

    root = Path(args.root or config.storage.log_root).resolve()
    if not root.is_dir():
        print(f"Error: root does not exist: {root}", file=sys.stderr)
        return 1

    warnings = WarningTracker()
    pattern_config = load_pattern_config(
        args.pattern_config or config.patterns.config_path,
        warnings,
    )
    report = build_report(
        root,
        dates=args.dates,
        include_incomplete=args.include_incomplete,
        pattern_config=pattern_config,
        minutes=args.minutes or config.patterns.minutes,
        warnings=warnings,
    )

    if args.json:
        sys.stdout.write(json.dumps(report, indent=2) + "\n")
    else:
        sys.stdout.write(render_text(report))
    return 0
