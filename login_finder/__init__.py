# Entrypoint for the login_finder package.
# This file makes the public API available to programmers.

from __future__ import annotations

from login_finder.__about__ import __version__
from login_finder.api import find_login_pages
from login_finder.dispatcher import DetectionDispatcher, DetectionSettings
from login_finder.models import CrawlEvent, Result, RunSummary
from login_finder.probe import is_login_page_dynamic
from login_finder.report import ReportWriteError, write_report
from login_finder.scoring import calculate_score, is_login_page
from login_finder.store import ResultStore

# The __all__ variable defines the public API of the package.
# When a user writes `from login_finder import *`, only these names will be imported.
__all__ = [
    "find_login_pages",
    "CrawlEvent",
    "DetectionDispatcher",
    "DetectionSettings",
    "Result",
    "ResultStore",
    "ReportWriteError",
    "RunSummary",
    "calculate_score",
    "is_login_page",
    "is_login_page_dynamic",
    "write_report",
    "__version__",
]
