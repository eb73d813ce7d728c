# login_finder/store.py
"""
Per-host aggregation of discovered and login URLs.

The store is the only mutable state shared between the crawl callback and the
detection tasks. Every public method holds the same lock for its whole body,
so admission checks and appends never interleave, whether callers are
coroutines on one loop or threads.
"""
from __future__ import annotations

import copy
import logging
import threading
from typing import Dict, Iterator, Set

from login_finder.models import Result

log = logging.getLogger(__name__)

DEFAULT_HOST_CAP = 500


class ResultStore:
    def __init__(self, cap: int = DEFAULT_HOST_CAP):
        if cap < 0:
            raise ValueError(f"cap must be >= 0, got {cap}")
        self.cap = cap
        self._lock = threading.Lock()
        self._results: Dict[str, Result] = {}
        self._seen: Dict[str, Set[str]] = {}

    def _entry(self, hostname: str) -> Result:
        # caller holds the lock
        result = self._results.get(hostname)
        if result is None:
            result = Result()
            self._results[hostname] = result
            self._seen[hostname] = set()
        return result

    def record_discovery(self, hostname: str, url: str) -> bool:
        """
        Admit ``url`` for ``hostname`` unless the host is full or already has it.

        Returns True only when the URL was appended; that is the signal to
        launch a detection task for it.
        """
        with self._lock:
            result = self._entry(hostname)
            if result.count >= self.cap:
                return False
            seen = self._seen[hostname]
            if url in seen:
                return False
            seen.add(url)
            result.urls.append(url)
            result.count += 1
            if result.count == self.cap:
                log.info("Host %s reached the cap of %d URLs", hostname, self.cap)
            return True

    def record_login_url(self, hostname: str, url: str) -> None:
        """
        Append a classified login URL.

        Not cap-gated: a task admitted just before the cap was hit may still
        land here after the host is full. A URL that was never admitted is
        refused so login URLs stay a subset of discovered URLs.
        """
        with self._lock:
            result = self._entry(hostname)
            if url not in self._seen[hostname]:
                log.warning("Login URL %s was never admitted for %s", url, hostname)
                return
            result.login_urls.append(url)

    def snapshot(self) -> Dict[str, Result]:
        """Deep copy of every host entry, safe to serialize."""
        with self._lock:
            return copy.deepcopy(self._results)

    def get(self, hostname: str) -> Result | None:
        with self._lock:
            result = self._results.get(hostname)
            return copy.deepcopy(result) if result is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._results))

    def __contains__(self, hostname: object) -> bool:
        with self._lock:
            return hostname in self._results
