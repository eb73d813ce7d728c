# login_finder/crawler.py
"""
HTTPX-based crawl engine.

Responsibilities:
- Fetch pages over HTTP(S) with redirects and timeouts.
- Breadth-first traversal up to a depth limit with a fixed pool of workers.
- Keep the crawl inside the start URL's scope (same registrable domain or
  same host) and skip static assets.
- Hand every successfully fetched URL to an async callback as a CrawlEvent;
  4xx/5xx responses are logged and skipped.

This engine only discovers pages. Login detection happens downstream of the
callback; returning from ``crawl()`` means traversal is complete.
"""
from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Protocol, Set
from urllib.parse import urljoin, urlparse

import httpx
import tldextract
from bs4 import BeautifulSoup

from login_finder.models import CrawlEvent

log = logging.getLogger(__name__)

ResultCallback = Callable[[CrawlEvent], Awaitable[None]]


class CrawlEngine(Protocol):
    """
    What the orchestration layer needs from a crawl engine: an async context
    manager whose ``crawl(on_result)`` returns once traversal is complete.
    """

    async def __aenter__(self) -> "CrawlEngine": ...

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> Any: ...

    async def crawl(self, on_result: ResultCallback) -> None: ...


ALLOWED_SCHEMES = {"http", "https"}

# (tag, attribute) pairs that point at other pages.
LINK_ATTRIBUTES = (
    ("a", "href"),
    ("area", "href"),
    ("link", "href"),
    ("form", "action"),
    ("iframe", "src"),
    ("frame", "src"),
)

# Offline extractor: uses the public suffix snapshot bundled with tldextract.
_extract = tldextract.TLDExtract(suffix_list_urls=())


def registrable_domain(host: str) -> str:
    """
    Returns eTLD+1 for ``host``; falls back to the host itself (minus a
    leading 'www.') when it has no public suffix, e.g. 'intranet' or 'x.test'.
    """
    host = host.lower()
    ext = _extract(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return host[4:] if host.startswith("www.") else host


def scope_key(url: str, scope: str) -> str:
    host = urlparse(url).hostname or ""
    if scope == "fqdn":
        return host
    return registrable_domain(host) if host else ""


def normalize_url(url: str, ignore_query_params: bool = True) -> str:
    """
    Lowercase scheme and host, drop the fragment and, optionally, the query.
    Robust to malformed URLs (returns input on failure).
    """
    try:
        p = urlparse(url)
        return p._replace(
            scheme=(p.scheme or "").lower(),
            netloc=(p.netloc or "").lower(),
            path=p.path or "/",
            query="" if ignore_query_params else p.query,
            fragment="",
        ).geturl()
    except ValueError:
        return url


def is_crawlable(
    url: str,
    extension_filter: Iterable[str] = (),
    out_of_scope: Iterable[str] = (),
) -> bool:
    """http(s) only, no denied file extension, no out-of-scope pattern in the path."""
    try:
        p = urlparse(url)
    except ValueError:
        return False
    if p.scheme.lower() not in ALLOWED_SCHEMES or not p.hostname:
        return False
    path = p.path.lower()
    _, ext = os.path.splitext(path)
    if ext and ext in {e.lower() for e in extension_filter}:
        return False
    return not any(re.search(pattern, path) for pattern in out_of_scope)


def extract_links(html: str, base_url: str) -> List[str]:
    """Absolute URLs referenced by links, forms and frames, in document order."""
    soup = BeautifulSoup(html, "html.parser")
    links: List[str] = []
    for tag_name, attr in LINK_ATTRIBUTES:
        for tag in soup.find_all(tag_name):
            value = tag.get(attr)
            if not isinstance(value, str):
                continue
            value = value.strip()
            if not value or value.startswith(("javascript:", "mailto:", "tel:", "data:", "#")):
                continue
            links.append(urljoin(base_url, value))
    return links


def _is_textual(content_type: str) -> bool:
    return "html" in content_type or content_type.startswith("text/")


@dataclass
class Crawler:
    """
    Crawl starting from ``start_url`` using httpx (no JS execution).

    Config keys consumed:
      - user_agent: str
      - crawl.max_depth: int
      - crawl.concurrency: int
      - crawl.timeout: float (seconds)
      - crawl.scope: "rdn" | "fqdn"
      - crawl.ignore_query_params: bool
      - crawl.max_pages: int (0 = unlimited)
      - crawl.extension_filter: list[str]
      - crawl.out_of_scope: list[str] (regular expressions on the path)
    """

    start_url: str
    config: Dict[str, Any]
    transport: httpx.AsyncBaseTransport | None = None

    visited_urls: Set[str] = field(default_factory=set)
    errors: List[str] = field(default_factory=list)

    _client: httpx.AsyncClient = field(init=False, repr=False)
    _crawl_cfg: Dict[str, Any] = field(init=False, repr=False)
    _scope: str = field(init=False, default="")

    async def __aenter__(self) -> "Crawler":
        self._crawl_cfg = dict(self.config.get("crawl", {}))
        headers = {"User-Agent": self.config.get("user_agent", "login_finder")}
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=self._crawl_cfg.get("timeout", 30.0),
            headers=headers,
            transport=self.transport,
        )
        self._scope = scope_key(self.start_url, self._crawl_cfg.get("scope", "rdn"))
        log.info("httpx session initialized. Start: %s (scope %s)", self.start_url, self._scope)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self._client.aclose()
        log.info("httpx session closed.")

    def _in_scope(self, url: str) -> bool:
        if not is_crawlable(
            url,
            self._crawl_cfg.get("extension_filter", []),
            self._crawl_cfg.get("out_of_scope", []),
        ):
            return False
        return scope_key(url, self._crawl_cfg.get("scope", "rdn")) == self._scope

    async def _fetch(self, url: str) -> httpx.Response | None:
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            msg = f"HTTP error for {url}: {e}"
            log.warning(msg)
            self.errors.append(msg)
            return None
        except httpx.RequestError as e:
            msg = f"Network error fetching {url}: {e}"
            log.warning(msg)
            self.errors.append(msg)
            return None
        return resp

    async def crawl(self, on_result: ResultCallback) -> None:
        """
        Breadth-first crawl; ``on_result`` is awaited once per fetched URL.
        Returns when every reachable in-scope URL has been processed.
        """
        max_depth = int(self._crawl_cfg.get("max_depth", 3))
        max_pages = int(self._crawl_cfg.get("max_pages", 0))
        ignore_query = bool(self._crawl_cfg.get("ignore_query_params", True))
        workers = max(1, int(self._crawl_cfg.get("concurrency", 10)))

        queue: asyncio.Queue[tuple[str, int]] = asyncio.Queue()

        def enqueue(url: str, depth: int) -> None:
            url = normalize_url(url, ignore_query)
            if url in self.visited_urls or not self._in_scope(url):
                return
            if max_pages and len(self.visited_urls) >= max_pages:
                return
            self.visited_urls.add(url)
            queue.put_nowait((url, depth))

        async def process(url: str, depth: int) -> None:
            resp = await self._fetch(url)
            if resp is None:
                return
            ctype = resp.headers.get("content-type", "").lower()
            body = resp.text if _is_textual(ctype) else None
            await on_result(CrawlEvent(url=url, body=body, depth=depth))

            if body is None or "html" not in ctype or depth >= max_depth:
                return
            for link in extract_links(body, str(resp.url)):
                enqueue(link, depth + 1)

        async def worker() -> None:
            while True:
                url, depth = await queue.get()
                try:
                    await process(url, depth)
                except Exception as e:
                    msg = f"Error processing {url}: {e}"
                    log.error(msg, exc_info=True)
                    self.errors.append(msg)
                finally:
                    queue.task_done()

        log.info("Crawl start. max_depth=%d, workers=%d", max_depth, workers)
        enqueue(self.start_url, 0)
        if queue.empty():
            log.warning("Start URL is not crawlable: %s", self.start_url)
            return

        tasks = [asyncio.create_task(worker()) for _ in range(workers)]
        try:
            await queue.join()
        finally:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        log.info(
            "Crawl finished. Visited=%d, Errors=%d.",
            len(self.visited_urls),
            len(self.errors),
        )
