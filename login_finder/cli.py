# login_finder/cli.py
# Defines the command-line interface using argparse.

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import IO, Sequence

from login_finder import __version__
from login_finder.api import find_login_pages
from login_finder.config import load_config
from login_finder.indicators import DEFAULT_INDICATORS
from login_finder.report import LoginFinderError
from login_finder.scoring import calculate_score
from login_finder.ui import render_check_result, render_crawl_header, render_summary

log = logging.getLogger(__name__)

EXIT_NOT_LOGIN = 100


def _configure_logging(verbose: bool, debug: bool) -> None:
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl a site and report which pages are login pages.",
        prog="login_finder",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging output to stderr.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every processed URL and selector hit.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- crawl ---
    crawl_parser = subparsers.add_parser(
        "crawl", help="Crawl a URL, classify every page and write a JSON report."
    )
    crawl_parser.add_argument("url", help="The URL to start crawling from.")
    crawl_parser.add_argument(
        "--dynamic",
        action="store_true",
        help="Render each page in headless Chromium and probe its form fields.",
    )
    crawl_parser.add_argument(
        "--max-depth", type=int, default=None, help="Maximum crawl depth."
    )
    crawl_parser.add_argument(
        "--results-dir",
        metavar="PATH",
        default=None,
        help="Directory for the JSON report (default: results).",
    )
    crawl_parser.add_argument(
        "--no-write",
        action="store_true",
        help="Print the summary only; do not write a report file.",
    )

    # --- check ---
    check_parser = subparsers.add_parser(
        "check", help="Score a local HTML file with the static login heuristic."
    )
    check_parser.add_argument("file", help="Path to an HTML file.")
    check_parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Minimum score for a login page (default from config: 6).",
    )
    return parser


def _run_check(path: str, threshold: int | None, stdout: IO[str]) -> int:
    p = Path(path)
    if not p.exists():
        log.error("Error: The file specified could not be found: %s", path)
        return 1
    config = load_config()
    if threshold is None:
        threshold = int(config["score_threshold"])
    indicators = DEFAULT_INDICATORS.extended(config.get("indicators"))

    body = p.read_text(encoding="utf-8", errors="replace")
    score = calculate_score(body, indicators)
    is_login = score >= threshold
    render_check_result(path, score, is_login, file=stdout)
    return 0 if is_login else EXIT_NOT_LOGIN


async def async_main(
    argv: Sequence[str] | None = None, stdout: IO[str] | None = None
) -> int:
    """Async entry point for the command-line interface."""
    stdout = stdout or sys.stdout
    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose, args.debug)

    if args.command == "check":
        return _run_check(args.file, args.threshold, stdout)

    # args.command == "crawl"
    mode = "dynamic" if args.dynamic else None
    render_crawl_header(args.url, mode or "configured", file=stdout)
    try:
        summary = await find_login_pages(
            args.url,
            mode=mode,
            max_depth=args.max_depth,
            results_dir=args.results_dir,
            write=not args.no_write,
        )
    except LoginFinderError as e:
        log.error("%s", e)
        return 1

    render_summary(summary, file=stdout)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Synchronous wrapper for the CLI entry point."""
    return asyncio.run(async_main(argv))


if __name__ == "__main__":
    sys.exit(main())
