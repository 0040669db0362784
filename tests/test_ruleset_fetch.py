import json
import threading

import httpx

from outfit_guard import ruleset_fetch
from outfit_guard.ruleset import add_blacklist_entry
from outfit_guard.ruleset_fetch import RulesetStore
from outfit_guard.scan_types import Pattern, Ruleset


class DummyResponse:
    def __init__(self, text="{}", status_code=200):
        self.text = text
        self.status_code = status_code
        self.content = text.encode("utf-8")

    def json(self):
        return json.loads(self.text)


PAYLOAD = json.dumps({"whiteList": ["cute bunny"], "blackList": [{"pattern": "gun", "points": 10}]})


def test_fetch_ruleset_basic(monkeypatch):
    def fake_client_get(self, url, headers=None):
        return DummyResponse(PAYLOAD)

    monkeypatch.setattr(ruleset_fetch.httpx.Client, "get", fake_client_get)
    rs = ruleset_fetch.fetch_ruleset("https://example.com/rules.json")
    assert rs.whitelist == ("cute bunny",)
    assert rs.blacklist == (Pattern("gun", 10),)


def test_fetch_ruleset_http_error(monkeypatch):
    monkeypatch.setattr(
        ruleset_fetch.httpx.Client, "get", lambda self, url, headers=None: DummyResponse("nope", 404)
    )
    assert ruleset_fetch.fetch_ruleset("https://example.com/rules.json") is None


def test_fetch_ruleset_bad_json(monkeypatch):
    monkeypatch.setattr(
        ruleset_fetch.httpx.Client, "get", lambda self, url, headers=None: DummyResponse("<html>")
    )
    assert ruleset_fetch.fetch_ruleset("https://example.com/rules.json") is None


def test_fetch_ruleset_timeout(monkeypatch):
    def boom(self, url, headers=None):
        raise httpx.ReadTimeout("too slow")

    monkeypatch.setattr(ruleset_fetch.httpx.Client, "get", boom)
    assert ruleset_fetch.fetch_ruleset("https://example.com/rules.json") is None


def test_fetch_ruleset_size_cap(monkeypatch):
    monkeypatch.setattr(ruleset_fetch, "HTTP_MAX_BYTES", 10)
    monkeypatch.setattr(
        ruleset_fetch.httpx.Client, "get", lambda self, url, headers=None: DummyResponse(PAYLOAD)
    )
    assert ruleset_fetch.fetch_ruleset("https://example.com/rules.json") is None


def test_store_fetches_once():
    calls = []

    def loader():
        calls.append(1)
        return Ruleset(blacklist=(Pattern("gun", 10),))

    store = RulesetStore(loader)
    first = store.get()
    assert store.get() is first
    assert len(calls) == 1


def test_store_retries_after_failure():
    results = [None, Ruleset()]
    store = RulesetStore(lambda: results.pop(0))
    assert store.get() is None
    assert store.get() == Ruleset()


def test_store_concurrent_first_fetch_is_shared():
    calls = []
    gate = threading.Event()

    def loader():
        calls.append(1)
        gate.wait(1.0)
        return Ruleset()

    store = RulesetStore(loader)
    seen = []
    threads = [threading.Thread(target=lambda: seen.append(store.get())) for _ in range(8)]
    for t in threads:
        t.start()
    gate.set()
    for t in threads:
        t.join()
    assert len(calls) == 1
    assert all(s is seen[0] for s in seen)


def test_store_apply_swaps_value():
    store = RulesetStore(lambda: Ruleset())
    before = store.get()
    after = store.apply(lambda rs: add_blacklist_entry(rs, "knife", 7))
    assert before == Ruleset()
    assert after.blacklist == (Pattern("knife", 7),)
    assert store.get() is after

    # a change returning None leaves the value untouched
    assert store.apply(lambda rs: None) is after


def test_store_apply_without_ruleset():
    store = RulesetStore(lambda: None)
    assert store.apply(lambda rs: rs) is None


def test_store_update_replaces_without_loading():
    calls = []
    store = RulesetStore(lambda: calls.append(1) or Ruleset())
    replacement = Ruleset(blacklist=(Pattern("gun", 10),))
    store.update(replacement)
    assert store.get() is replacement
    assert calls == []
