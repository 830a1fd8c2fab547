import threading
from typing import List

import pytest
import requests

from evm_errors import SelectorResolutionFailure
from selector_cache import BUILTIN_SIGNATURES, FourByteClient, SelectorCache, selector_hex


class FakeResolver:
    def __init__(self, answers=None, error: Exception = None) -> None:
        self.answers = answers or {}
        self.error = error
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def __call__(self, sel: str) -> List[str]:
        with self._lock:
            self.calls.append(sel)
        if self.error is not None:
            raise self.error
        return list(self.answers.get(sel, []))


def test_builtin_entries_take_precedence() -> None:
    resolver = FakeResolver({"a9059cbb": ["shadow()"]})
    cache = SelectorCache(resolver=resolver)

    found = cache.resolve(bytes.fromhex("a9059cbb"))

    assert found == BUILTIN_SIGNATURES["a9059cbb"]
    assert "transfer(address,uint256)" in found
    assert resolver.calls == []
    assert cache.lookups == 0


def test_unknown_selector_is_looked_up_once() -> None:
    resolver = FakeResolver({"deadbeef": ["dead(uint256)", "beef()"]})
    cache = SelectorCache(resolver=resolver)

    first = cache.resolve("deadbeef")
    second = cache.resolve("0xDEADBEEF")

    assert first == second == ["dead(uint256)", "beef()"]
    assert resolver.calls == ["deadbeef"]
    assert cache.lookups == 1
    assert cache.snapshot() == {"deadbeef": ["dead(uint256)", "beef()"]}


def test_empty_result_is_cached() -> None:
    resolver = FakeResolver()
    cache = SelectorCache(resolver=resolver)

    assert cache.resolve("12345678") == []
    assert cache.resolve("12345678") == []
    assert resolver.calls == ["12345678"]
    assert "12345678" in cache


def test_failure_is_cached_as_empty() -> None:
    resolver = FakeResolver(error=SelectorResolutionFailure("boom"))
    cache = SelectorCache(resolver=resolver)

    assert cache.resolve("cafebabe") == []
    assert cache.resolve("cafebabe") == []
    assert resolver.calls == ["cafebabe"]


def test_no_resolver_means_offline() -> None:
    cache = SelectorCache()
    assert cache.resolve("cafebabe") == []
    assert cache.resolve("18160ddd")[-1] == "totalSupply()"
    assert cache.lookups == 1


def test_result_is_a_copy() -> None:
    cache = SelectorCache(resolver=FakeResolver({"deadbeef": ["a()"]}))
    cache.resolve("deadbeef").append("mutated()")
    cache.resolve("8da5cb5b").clear()

    assert cache.resolve("deadbeef") == ["a()"]
    assert cache.resolve("8da5cb5b")[-1] == "owner()"


def test_selector_normalization() -> None:
    assert selector_hex(b"\xa9\x05\x9c\xbb") == "a9059cbb"
    assert selector_hex(" 0xA9059CBB ") == "a9059cbb"
    with pytest.raises(ValueError):
        selector_hex(b"\x00\x01")
    with pytest.raises(ValueError):
        selector_hex("zzzzzzzz")
    assert 42 not in SelectorCache()


def test_concurrent_resolution_is_consistent() -> None:
    answers = {f"{i:08x}": [f"f{i}()"] for i in range(16)}
    resolver = FakeResolver(answers)
    cache = SelectorCache(resolver=resolver, builtins={})
    results = {}
    barrier = threading.Barrier(8)

    def worker(tid: int) -> None:
        barrier.wait()
        for i in range(16):
            results[(tid, i)] = cache.resolve(f"{i:08x}")

    threads = [threading.Thread(target=worker, args=(t,)) for t in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for (tid, i), found in results.items():
        assert found == [f"f{i}()"]
    assert len(cache) == 16
    # redundant lookups for the same cold selector are allowed, but bounded
    assert 16 <= len(resolver.calls) <= 16 * 8


class FakeResponse:
    def __init__(self, payload, status: int = 200) -> None:
        self.payload = payload
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"status {self.status}")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response=None, error: Exception = None) -> None:
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_fourbyte_client_parses_results() -> None:
    payload = {
        "count": 2,
        "results": [
            {"id": 2, "text_signature": "transfer(address,uint256)", "hex_signature": "0xa9059cbb"},
            {"id": 1, "text_signature": "many_msg_babbage(bytes1)", "hex_signature": "0xa9059cbb"},
        ],
    }
    session = FakeSession(FakeResponse(payload))
    client = FourByteClient(url="https://example.invalid/api", timeout=3, session=session)

    assert client("a9059cbb") == ["transfer(address,uint256)", "many_msg_babbage(bytes1)"]
    url, params, timeout = session.requests[0]
    assert url == "https://example.invalid/api"
    assert params["hex_signature"] == "0xa9059cbb"
    assert timeout == 3


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("down")),
        FakeSession(error=requests.Timeout("slow")),
        FakeSession(FakeResponse({}, status=502)),
        FakeSession(FakeResponse(ValueError("not json"))),
        FakeSession(FakeResponse({"detail": "throttled"})),
    ],
)
def test_fourbyte_client_failures(session) -> None:
    client = FourByteClient(session=session)
    with pytest.raises(SelectorResolutionFailure):
        client("deadbeef")


def test_cache_absorbs_client_timeout() -> None:
    session = FakeSession(error=requests.Timeout("slow"))
    cache = SelectorCache(resolver=FourByteClient(session=session))

    assert cache.resolve("deadbeef") == []
    assert cache.resolve("deadbeef") == []
    assert len(session.requests) == 1
