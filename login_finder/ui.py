# login_finder/ui.py
# Presentation-only utilities for CLI output.
from __future__ import annotations

from typing import IO, Mapping

from login_finder.models import Result, RunSummary


def _writeln(text: str = "", *, file: IO[str]) -> None:
    file.write(text + "\n")


def render_crawl_header(url: str, mode: str, *, file: IO[str]) -> None:
    _writeln(f"Looking for login pages from: {url} ({mode} mode)...", file=file)


def render_hosts_section(results: Mapping[str, Result], *, file: IO[str]) -> None:
    if not results:
        _writeln("\nNo pages discovered.", file=file)
        return
    _writeln("\n--- Hosts ---", file=file)
    for host in sorted(results):
        result = results[host]
        _writeln(
            f"- {host}: {result.count} url(s), {len(result.login_urls)} login page(s)",
            file=file,
        )
        for url in result.login_urls:
            _writeln(f"  └─ {url}", file=file)


def render_outcomes_line(outcomes: Mapping[str, int], *, file: IO[str]) -> None:
    if not outcomes:
        return
    parts = ", ".join(f"{k}={v}" for k, v in sorted(outcomes.items()))
    _writeln(f"\nDetection outcomes: {parts}", file=file)


def render_summary(summary: RunSummary, *, file: IO[str]) -> None:
    render_hosts_section(summary.results, file=file)
    render_outcomes_line(summary.outcomes, file=file)
    if summary.report_path is not None:
        _writeln(f"\nResults written to {summary.report_path}", file=file)


def render_check_result(path: str, score: int, is_login: bool, *, file: IO[str]) -> None:
    verdict = "login page" if is_login else "not a login page"
    _writeln(f"{path}: score {score} -> {verdict}", file=file)
