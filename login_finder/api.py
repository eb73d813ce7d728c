# login_finder/api.py
# The primary, programmer-facing API for the library.

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict

import httpx

from login_finder.browser import BrowserSession
from login_finder.config import load_config
from login_finder.crawler import CrawlEngine, Crawler
from login_finder.dispatcher import DetectionDispatcher, DetectionSettings
from login_finder.indicators import DEFAULT_INDICATORS
from login_finder.models import CrawlEvent, Mode, RunSummary
from login_finder.report import write_report
from login_finder.store import ResultStore

log = logging.getLogger(__name__)


async def find_login_pages(
    start_url: str,
    *,
    mode: Mode | None = None,
    max_depth: int | None = None,
    host_cap: int | None = None,
    results_dir: str | Path | None = None,
    write: bool = True,
    pyproject_path: Path | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    engine: CrawlEngine | None = None,
) -> RunSummary:
    """
    Crawl from ``start_url``, classify every discovered page and save the results.

    Args:
        start_url: Where the crawl begins; also names the report file.
        mode: "static" scores fetched HTML, "dynamic" probes pages in Chromium.
        max_depth: Override the crawl depth.
        host_cap: Override the per-host URL cap.
        results_dir: Override the report directory.
        write: When False, skip writing the report file.
        pyproject_path: Alternate pyproject.toml to read settings from.
        transport: Custom httpx transport for the crawl engine.
        engine: Crawl engine to use instead of the built-in httpx Crawler. Any
            async context manager whose `crawl(on_result)` returns once
            traversal is complete; `transport` is ignored when given.

    Returns:
        A RunSummary with the per-host results and the report path.

    Raises:
        ReportWriteError: the report could not be written.
    """
    log.info("Starting login page discovery for: %s", start_url)

    overrides: Dict[str, Any] = {
        "mode": mode,
        "host_cap": host_cap,
        "results_dir": str(results_dir) if results_dir is not None else None,
    }
    if max_depth is not None:
        overrides["crawl"] = {"max_depth": max_depth}
    config = load_config(pyproject_path, overrides)

    dynamic = config["mode"] == "dynamic"
    store = ResultStore(cap=int(config["host_cap"]))
    settings = DetectionSettings.from_config(config)
    indicators = DEFAULT_INDICATORS.extended(config.get("indicators"))

    async with AsyncExitStack() as stack:
        page_opener = None
        if dynamic:
            browser = await stack.enter_async_context(BrowserSession(config))
            page_opener = browser.open_page

        dispatcher = await stack.enter_async_context(
            DetectionDispatcher(
                store, settings, indicators=indicators, page_opener=page_opener
            )
        )

        async def on_result(event: CrawlEvent) -> None:
            if dynamic:
                # the rendered page is the artifact, not the fetched body
                event = replace(event, body=None)
            await dispatcher.submit(event)

        if engine is None:
            engine = Crawler(start_url, config, transport=transport)
        async with engine as crawler:
            try:
                await crawler.crawl(on_result)
            except httpx.HTTPError as e:
                log.warning("Could not crawl %s: %s", start_url, e)

        log.info("Crawl returned; waiting for %d detection task(s)", dispatcher.pending)
        await dispatcher.join()
        outcomes = dict(dispatcher.outcomes)

    results = store.snapshot()
    report_path = None
    if write:
        report_path = write_report(results, start_url, config["results_dir"])

    return RunSummary(
        start_url=start_url,
        results=results,
        report_path=report_path,
        outcomes=outcomes,
    )
