# login_finder/dispatcher.py
"""
Fans crawl events out to login detection tasks.

Flow per event:
  parse host -> store.record_discovery() -> (admitted) spawn one task
  task: wait for a concurrency slot -> classify within the deadline
        -> store.record_login_url() on a positive verdict

Events arrive through a bounded queue (``submit``) so a fast crawl engine is
slowed down instead of piling up work. ``join`` is the completion barrier: it
returns once the queue is drained and every spawned task has finished.
"""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set
from urllib.parse import urlparse

from login_finder.indicators import DEFAULT_INDICATORS, LoginIndicators
from login_finder.models import CrawlEvent
from login_finder.probe import is_login_page_dynamic
from login_finder.scoring import DEFAULT_THRESHOLD, is_login_page
from login_finder.store import ResultStore

log = logging.getLogger(__name__)

PageOpener = Callable[[str], Awaitable[Any]]


@dataclass(frozen=True)
class DetectionSettings:
    task_timeout: float = 30.0
    settle_delay: float = 2.0
    load_timeout: float = 30.0
    max_concurrent: int = 32
    queue_size: int = 1000
    score_threshold: int = DEFAULT_THRESHOLD

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DetectionSettings":
        return cls(
            task_timeout=float(config.get("task_timeout", 30.0)),
            settle_delay=float(config.get("settle_delay", 2.0)),
            load_timeout=float(config.get("load_timeout", 30.0)),
            max_concurrent=int(config.get("max_concurrent_detections", 32)),
            queue_size=int(config.get("event_queue_size", 1000)),
            score_threshold=int(config.get("score_threshold", DEFAULT_THRESHOLD)),
        )


def hostname_of(url: str) -> str | None:
    """Aggregation key for a URL, or None when the URL has no usable host."""
    try:
        host = urlparse(url).hostname
    except (ValueError, AttributeError):
        return None
    return host or None


class DetectionDispatcher:
    def __init__(
        self,
        store: ResultStore,
        settings: DetectionSettings | None = None,
        *,
        indicators: LoginIndicators = DEFAULT_INDICATORS,
        page_opener: Optional[PageOpener] = None,
    ):
        self.store = store
        self.settings = settings or DetectionSettings()
        self.indicators = indicators
        self.page_opener = page_opener
        self.outcomes: Counter[str] = Counter()

        if self.settings.max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._semaphore = asyncio.Semaphore(self.settings.max_concurrent)
        self._queue: asyncio.Queue[CrawlEvent] = asyncio.Queue(
            maxsize=self.settings.queue_size
        )
        self._tasks: Set[asyncio.Task] = set()
        self._consumer: asyncio.Task | None = None

    async def __aenter__(self) -> "DetectionDispatcher":
        self._consumer = asyncio.create_task(self._consume(), name="detection-consumer")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._consumer is not None:
            self._consumer.cancel()
            await asyncio.gather(self._consumer, return_exceptions=True)
            self._consumer = None
        # Anything still running here was abandoned without join().
        if self._tasks:
            log.warning("Cancelling %d unfinished detection task(s)", len(self._tasks))
            for task in list(self._tasks):
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)

    @property
    def pending(self) -> int:
        """Number of detection tasks launched and not yet finished."""
        return len(self._tasks)

    async def submit(self, event: CrawlEvent) -> None:
        """Producer side: blocks while the event queue is full."""
        if self._consumer is None:
            raise RuntimeError("dispatcher is not running; use 'async with'")
        await self._queue.put(event)

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self.handle(event)
            except Exception:
                log.exception("Unexpected error while handling %s", event.url)
            finally:
                self._queue.task_done()

    def handle(self, event: CrawlEvent) -> asyncio.Task | None:
        """
        Admit one event and launch its detection task.

        Returns the task, or None when the URL was malformed, a duplicate, or
        its host is already at the cap. Must be called from the event loop.
        """
        log.debug("Processing URL: %s", event.url)
        hostname = hostname_of(event.url)
        if hostname is None:
            self.outcomes["malformed"] += 1
            log.debug("Discarding URL without a host: %r", event.url)
            return None

        if not self.store.record_discovery(hostname, event.url):
            self.outcomes["dropped"] += 1
            return None

        task = asyncio.create_task(self._detect(event, hostname))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _detect(self, event: CrawlEvent, hostname: str) -> None:
        async with self._semaphore:
            try:
                found = await asyncio.wait_for(
                    self._classify(event), timeout=self.settings.task_timeout
                )
            except asyncio.TimeoutError:
                self.outcomes["timed-out"] += 1
                log.debug("Page detection timed out: %s", event.url)
                return
            except Exception as e:
                self.outcomes["failed"] += 1
                log.debug("Page detection failed for %s: %s", event.url, e)
                return

        if found is None:
            self.outcomes["no-artifact"] += 1
            log.debug("Nothing to classify for %s", event.url)
            return

        self.outcomes["classified"] += 1
        if found:
            self.store.record_login_url(hostname, event.url)
            log.info("Found login page: %s", event.url)

    async def _classify(self, event: CrawlEvent) -> bool | None:
        if event.page is not None:
            return await self._probe(event.page)
        if event.body is not None:
            return is_login_page(
                event.body, self.indicators, self.settings.score_threshold
            )
        if self.page_opener is None:
            return None

        page = await self.page_opener(event.url)
        try:
            return await self._probe(page)
        finally:
            await page.close()

    async def _probe(self, page: Any) -> bool:
        return await is_login_page_dynamic(
            page,
            settle_delay=self.settings.settle_delay,
            load_timeout=self.settings.load_timeout,
        )

    async def join(self) -> None:
        """
        Block until every submitted event is handled and every task finished.

        Call only after the crawl engine has returned; events submitted during
        the wait are drained as well.
        """
        while True:
            await self._queue.join()
            if not self._tasks:
                break
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        log.info("All login page detection finished: %s", dict(self.outcomes))
