from __future__ import annotations

import asyncio
import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from login_finder.store import DEFAULT_HOST_CAP, ResultStore


def _assert_invariants(store: ResultStore) -> None:
    for host, result in store.snapshot().items():
        assert result.count == len(result.urls), host
        assert result.count <= store.cap, host
        assert set(result.login_urls) <= set(result.urls), host


def test_default_cap_is_500():
    assert DEFAULT_HOST_CAP == 500
    assert ResultStore().cap == 500


def test_record_discovery_creates_host_lazily():
    store = ResultStore()
    assert "a.test" not in store
    assert store.record_discovery("a.test", "https://a.test/") is True
    assert "a.test" in store
    result = store.get("a.test")
    assert result.urls == ["https://a.test/"]
    assert result.count == 1
    assert result.login_urls == []


def test_urls_keep_discovery_order():
    store = ResultStore()
    urls = [f"https://a.test/{i}" for i in range(10)]
    for url in urls:
        store.record_discovery("a.test", url)
    assert store.get("a.test").urls == urls


def test_cap_drops_further_urls_silently():
    store = ResultStore(cap=3)
    admitted = [store.record_discovery("a.test", f"https://a.test/{i}") for i in range(5)]
    assert admitted == [True, True, True, False, False]
    result = store.get("a.test")
    assert result.count == 3
    assert result.urls == [f"https://a.test/{i}" for i in range(3)]
    # other hosts have their own budget
    assert store.record_discovery("b.test", "https://b.test/") is True
    _assert_invariants(store)


def test_duplicate_url_is_not_admitted_twice():
    store = ResultStore()
    assert store.record_discovery("a.test", "https://a.test/x") is True
    assert store.record_discovery("a.test", "https://a.test/x") is False
    assert store.get("a.test").count == 1


def test_record_login_url_appends_admitted_url():
    store = ResultStore()
    store.record_discovery("a.test", "https://a.test/login")
    store.record_login_url("a.test", "https://a.test/login")
    assert store.get("a.test").login_urls == ["https://a.test/login"]
    _assert_invariants(store)


def test_record_login_url_for_unknown_host_creates_entry_but_keeps_subset():
    store = ResultStore()
    store.record_login_url("ghost.test", "https://ghost.test/login")
    result = store.get("ghost.test")
    assert result is not None
    assert result.login_urls == []
    _assert_invariants(store)


def test_login_url_recorded_after_host_is_full():
    store = ResultStore(cap=2)
    store.record_discovery("a.test", "https://a.test/1")
    store.record_discovery("a.test", "https://a.test/2")
    assert store.record_discovery("a.test", "https://a.test/3") is False
    # task for /2 finishes after the host filled up
    store.record_login_url("a.test", "https://a.test/2")
    assert store.get("a.test").login_urls == ["https://a.test/2"]


def test_snapshot_is_a_copy():
    store = ResultStore()
    store.record_discovery("a.test", "https://a.test/")
    snap = store.snapshot()
    snap["a.test"].urls.append("https://a.test/mutated")
    snap["a.test"].count = 99
    assert store.get("a.test").urls == ["https://a.test/"]
    assert store.get("a.test").count == 1


def test_negative_cap_rejected():
    with pytest.raises(ValueError):
        ResultStore(cap=-1)


@pytest.mark.parametrize("attempts", [501, 750, 1200])
def test_concurrent_admission_from_threads_is_exact(attempts):
    store = ResultStore()
    urls = [f"https://busy.test/{i}" for i in range(attempts)]
    random.shuffle(urls)
    start = threading.Barrier(8)

    def worker(chunk):
        start.wait()
        return [store.record_discovery("busy.test", u) for u in chunk]

    chunks = [urls[i::8] for i in range(8)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = [ok for result in pool.map(worker, chunks) for ok in result]

    assert outcomes.count(True) == 500
    assert outcomes.count(False) == attempts - 500
    result = store.get("busy.test")
    assert result.count == 500
    assert len(set(result.urls)) == 500
    _assert_invariants(store)


def test_concurrent_admission_from_tasks_is_exact():
    store = ResultStore()

    async def attempt(i):
        await asyncio.sleep(random.random() / 1000)
        ok = store.record_discovery("busy.test", f"https://busy.test/{i}")
        if ok and i % 3 == 0:
            await asyncio.sleep(0)
            store.record_login_url("busy.test", f"https://busy.test/{i}")
        return ok

    async def main():
        return await asyncio.gather(*(attempt(i) for i in range(900)))

    outcomes = asyncio.run(main())
    assert sum(outcomes) == 500
    _assert_invariants(store)
