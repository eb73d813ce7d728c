# login_finder/probe.py
"""
DOM probe for rendered pages.

Waits for the page to finish loading, lets client-side frameworks settle, then
looks for a password input followed by a username-like input. Works with a
Playwright ``Page`` or anything exposing the same three members:
``wait_for_load_state``, ``query_selector_all`` and ``url``.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Protocol, Sequence

from playwright.async_api import Error as PlaywrightError

log = logging.getLogger(__name__)

PASSWORD_SELECTORS = (
    "input[type='password']",
    "input[name*='pass']",
    "input[id*='pass']",
    "input[name*='pwd']",
    "input[id*='pwd']",
)

USERNAME_SELECTORS = (
    "input[type='text']",
    "input[type='email']",
    "input[name*='username']",
    "input[id*='username']",
    "input[name*='userid']",
    "input[id*='userid']",
    "input[name*='email']",
    "input[id*='email']",
    "input[name*='account']",
    "input[id*='account']",
)


class ProbePage(Protocol):
    @property
    def url(self) -> str: ...

    async def wait_for_load_state(self, state: Any = ..., **kwargs: Any) -> None: ...

    async def query_selector_all(self, selector: str) -> List[Any]: ...


async def first_matching_selector(page: ProbePage, selectors: Sequence[str]) -> str | None:
    """
    Return the first selector matching at least one element.

    A selector that raises counts as no match; the next one is tried.
    """
    for selector in selectors:
        try:
            elements = await page.query_selector_all(selector)
        except Exception as e:
            log.debug("Selector %s failed: %s", selector, e)
            continue
        if elements:
            return selector
    return None


async def is_login_page_dynamic(
    page: ProbePage,
    *,
    settle_delay: float = 2.0,
    load_timeout: float = 30.0,
) -> bool:
    """True when the rendered page has both a password and a username field."""
    try:
        await asyncio.wait_for(page.wait_for_load_state("load"), timeout=load_timeout)
    except asyncio.TimeoutError:
        log.debug("Page did not finish loading within %.1fs", load_timeout)
        return False
    except PlaywrightError as e:
        log.debug("Waiting for page load failed: %s", e)
        return False

    if settle_delay > 0:
        await asyncio.sleep(settle_delay)

    password = await first_matching_selector(page, PASSWORD_SELECTORS)
    if password is None:
        return False
    log.debug("Found password field: %s", password)

    username = await first_matching_selector(page, USERNAME_SELECTORS)
    if username is None:
        return False
    log.debug("Found username field: %s", username)

    log.debug("Complete login form at %s", page.url)
    return True
