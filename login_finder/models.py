# Data structures shared by the store, the classifiers and the dispatcher.

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

# Terminal (and admission) states a discovered URL can end in.
Outcome = Literal[
    "malformed",
    "dropped",
    "classified",
    "timed-out",
    "failed",
    "no-artifact",
]
Mode = Literal["static", "dynamic"]


@dataclass
class Result:
    """Per-hostname aggregate. ``count`` always equals ``len(urls)``."""

    urls: List[str] = field(default_factory=list)
    login_urls: List[str] = field(default_factory=list)
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the key names used in report files."""
        return {
            "url": list(self.urls),
            "login_url": list(self.login_urls),
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Result":
        return cls(
            urls=list(data.get("url", [])),
            login_urls=list(data.get("login_url", [])),
            count=int(data.get("count", 0)),
        )


@dataclass
class CrawlEvent:
    """
    One discovered URL as delivered by the crawl engine.

    Exactly one artifact decides which classifier runs: a live ``page`` handle
    selects the DOM probe, a ``body`` selects the static scorer. With neither,
    the dispatcher may open a page itself when it has a page opener.
    """

    url: str
    body: Optional[str] = None
    page: Any = None
    depth: int = 0


@dataclass
class RunSummary:
    """What a full crawl-and-detect run produced."""

    start_url: str
    results: Dict[str, Result]
    report_path: Optional[Path] = None
    outcomes: Dict[str, int] = field(default_factory=dict)

    @property
    def login_urls(self) -> List[str]:
        found: List[str] = []
        for result in self.results.values():
            found.extend(result.login_urls)
        return found
