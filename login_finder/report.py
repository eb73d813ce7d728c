# login_finder/report.py
"""
Writes the final per-host results to ``<results_dir>/<host>_<YYYYMMDDHHMMSS>.json``.

The document maps hostname -> {"url": [...], "login_url": [...], "count": n}.
Any failure is raised as ReportWriteError; a half-written file is never left
behind because the JSON is written to a temp file and only then linked under its
final name. Linking fails instead of overwriting, so concurrent runs in the
same second each get their own file.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping
from urllib.parse import urlparse

from login_finder.models import Result

log = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


class LoginFinderError(Exception):
    """Base class for errors that abort a run."""


class ReportWriteError(LoginFinderError):
    """The results could not be serialized or saved."""


def report_filename(start_url: str, captured_at: datetime) -> str:
    try:
        host = urlparse(start_url).hostname
    except ValueError:
        host = None
    stamp = captured_at.strftime(TIMESTAMP_FORMAT)
    return f"{host or 'default'}_{stamp}.json"


def _claim(tmp_name: str, path: Path) -> Path:
    """
    Hard-link the finished temp file under ``path``, or under ``stem_1``,
    ``stem_2``, ... when a run in the same second already took the name.
    """
    candidate, n = path, 0
    while True:
        try:
            os.link(tmp_name, candidate)
            return candidate
        except FileExistsError:
            n += 1
            candidate = path.with_name(f"{path.stem}_{n}{path.suffix}")


def to_document(results: Mapping[str, Result]) -> Dict[str, Any]:
    return {host: result.to_dict() for host, result in results.items()}


def write_report(
    results: Mapping[str, Result],
    start_url: str,
    results_dir: str | os.PathLike[str] = "results",
    *,
    captured_at: datetime | None = None,
) -> Path:
    """Serialize ``results`` and persist them; returns the written path."""
    captured_at = captured_at or datetime.now()
    try:
        text = json.dumps(to_document(results), indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ReportWriteError(f"Failed to serialize results: {e}") from e

    directory = Path(results_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".report-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            path = _claim(tmp_name, directory / report_filename(start_url, captured_at))
        finally:
            Path(tmp_name).unlink(missing_ok=True)
    except OSError as e:
        raise ReportWriteError(f"Failed to write results to {directory}: {e}") from e

    log.info("Crawl results saved to: %s", path)
    return path


def load_report(path: str | os.PathLike[str]) -> Dict[str, Result]:
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)
    return {host: Result.from_dict(entry) for host, entry in data.items()}
