from __future__ import annotations

import asyncio
import time

import pytest
from playwright.async_api import Error as PlaywrightError

from login_finder.probe import (
    PASSWORD_SELECTORS,
    USERNAME_SELECTORS,
    first_matching_selector,
    is_login_page_dynamic,
)


class FakePage:
    """Minimal stand-in for a Playwright page."""

    def __init__(self, matches=(), failing=(), load_error=None, hang=False):
        self.url = "https://example.test/login"
        self.matches = set(matches)
        self.failing = set(failing)
        self.load_error = load_error
        self.hang = hang
        self.queried: list[str] = []

    async def wait_for_load_state(self, state="load", **kwargs):
        if self.hang:
            await asyncio.Event().wait()
        if self.load_error is not None:
            raise self.load_error

    async def query_selector_all(self, selector):
        self.queried.append(selector)
        if selector in self.failing:
            raise PlaywrightError(f"bad selector {selector}")
        return [object()] if selector in self.matches else []


def _probe(page, **kwargs):
    kwargs.setdefault("settle_delay", 0)
    return asyncio.run(is_login_page_dynamic(page, **kwargs))


def test_password_and_username_fields_make_a_login_page():
    page = FakePage(matches={"input[type='password']", "input[type='email']"})
    assert _probe(page) is True


def test_password_only_is_not_a_login_page():
    page = FakePage(matches={"input[id*='pwd']"})
    assert _probe(page) is False
    # every username selector was tried before giving up
    assert page.queried[-len(USERNAME_SELECTORS):] == list(USERNAME_SELECTORS)


def test_missing_password_short_circuits_username_probe():
    page = FakePage(matches={"input[type='text']"})
    assert _probe(page) is False
    assert page.queried == list(PASSWORD_SELECTORS)


def test_probe_stops_at_first_password_match():
    page = FakePage(matches={"input[type='password']", "input[name*='account']"})
    assert _probe(page) is True
    assert page.queried[0] == "input[type='password']"
    assert "input[name*='pass']" not in page.queried


def test_failing_selector_is_treated_as_no_match():
    page = FakePage(
        matches={"input[name*='pass']", "input[id*='userid']"},
        failing={"input[type='password']", "input[type='text']"},
    )
    assert _probe(page) is True


class StrictDriverPage(FakePage):
    """Page whose driver rejects some selectors with a non-Playwright error."""

    async def query_selector_all(self, selector):
        self.queried.append(selector)
        if selector in self.failing:
            raise ValueError(f"driver rejected selector {selector}")
        return [object()] if selector in self.matches else []


def test_any_selector_error_is_treated_as_no_match():
    page = StrictDriverPage(
        matches={"input[name*='pass']", "input[type='text']"},
        failing={"input[type='password']"},
    )
    assert _probe(page) is True
    assert page.queried[:2] == ["input[type='password']", "input[name*='pass']"]


def test_all_selectors_failing_is_not_a_login_page():
    page = FakePage(failing=set(PASSWORD_SELECTORS))
    assert _probe(page) is False


def test_load_failure_fails_closed():
    page = FakePage(
        matches={"input[type='password']", "input[type='text']"},
        load_error=PlaywrightError("net::ERR_CONNECTION_REFUSED"),
    )
    assert _probe(page) is False
    assert page.queried == []


def test_hanging_load_returns_false_within_deadline():
    page = FakePage(matches={"input[type='password']", "input[type='text']"}, hang=True)
    started = time.monotonic()
    assert _probe(page, load_timeout=0.05) is False
    assert time.monotonic() - started < 2.0
    assert page.queried == []


def test_settle_delay_is_awaited(monkeypatch):
    delays: list[float] = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay, *args, **kwargs):
        delays.append(delay)
        await real_sleep(0)

    monkeypatch.setattr("login_finder.probe.asyncio.sleep", fake_sleep)
    page = FakePage(matches={"input[type='password']", "input[type='text']"})
    assert _probe(page, settle_delay=2.0) is True
    assert delays == [2.0]


@pytest.mark.parametrize(
    "matches, expected",
    [
        (set(), None),
        ({"b"}, "b"),
        ({"a", "c"}, "a"),
    ],
)
def test_first_matching_selector(matches, expected):
    page = FakePage(matches=matches)
    assert asyncio.run(first_matching_selector(page, ["a", "b", "c"])) == expected
