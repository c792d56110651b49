"""tests for the word cache, resolvers and snapshots."""

import asyncio

import pytest
import requests

from kotosume.dictionary import (
    DictionaryEntry,
    MerriamWebsterResolver,
    StaticResolver,
    WordCache,
    WordInfo,
    build_word_info,
)
from kotosume.errors import LookupFailed, NotFound


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.payload)


@pytest.mark.unit
def test_build_word_info_merges_lemmas():
    info = build_word_info("running", [DictionaryEntry("verb", ["to go fast"], ["running"])])

    assert info.word == "running"
    assert info.stems[0] == "running"
    assert "run" in info.stem_set()
    assert str(info.defs[0]) == "(verb): to go fast"


@pytest.mark.unit
def test_build_word_info_drops_empty_definitions():
    info = build_word_info(
        "cat",
        [
            DictionaryEntry("noun", [], ["cat"]),
            DictionaryEntry("verb", ["to vomit"], ["cats"]),
        ],
    )

    assert len(info.defs) == 1
    assert info.defs[0].functional_label == "verb"
    assert "cats" in info.stems


@pytest.mark.unit
def test_build_word_info_without_definitions_fails():
    with pytest.raises(LookupFailed):
        build_word_info("cat", [DictionaryEntry("noun", [], ["cat"])])
    with pytest.raises(LookupFailed):
        build_word_info("cat", [])


@pytest.mark.unit
def test_resolve_caches(cache, resolver):
    async def scenario():
        first = await cache.resolve("cat")
        second = await cache.resolve("CAT ")
        return first, second

    first, second = asyncio.run(scenario())

    assert first is second
    assert resolver.calls["cat"] == 1
    assert "cat" in cache


@pytest.mark.unit
def test_resolve_is_single_flight(index):
    resolver = StaticResolver.from_words(["cat"])
    resolver.delay = 0.01
    cache = WordCache(resolver, is_known=index.is_valid_word)

    async def scenario():
        return await asyncio.gather(*(cache.resolve("cat") for _ in range(10)))

    results = asyncio.run(scenario())

    assert resolver.calls["cat"] == 1
    assert all(r is results[0] for r in results)


@pytest.mark.unit
def test_unknown_word_never_reaches_resolver(cache, resolver):
    with pytest.raises(NotFound):
        asyncio.run(cache.resolve("zebra"))
    with pytest.raises(NotFound):
        asyncio.run(cache.resolve("   "))

    assert sum(resolver.calls.values()) == 0


@pytest.mark.unit
def test_empty_definitions_are_lookup_failures(index):
    resolver = StaticResolver({"cat": [DictionaryEntry("noun", [], ["cat"])]})
    cache = WordCache(resolver, is_known=index.is_valid_word)

    with pytest.raises(LookupFailed):
        asyncio.run(cache.resolve("cat"))

    assert "cat" not in cache


@pytest.mark.unit
def test_resolver_failure_is_lookup_failure(index):
    resolver = StaticResolver.from_words(["cat"])
    resolver.failing.add("cat")
    cache = WordCache(resolver, is_known=index.is_valid_word)

    with pytest.raises(LookupFailed):
        asyncio.run(cache.resolve("cat"))


@pytest.mark.unit
def test_lru_eviction(index, resolver):
    cache = WordCache(resolver, is_known=index.is_valid_word, capacity=2)

    async def scenario():
        await cache.resolve("cat")
        await cache.resolve("car")
        await cache.resolve("cat")  # cat becomes most recent
        await cache.resolve("dog")

    asyncio.run(scenario())

    assert len(cache) == 2
    assert "cat" in cache
    assert "dog" in cache
    assert "car" not in cache


@pytest.mark.unit
def test_snapshot_round_trip(tmp_path, index, cache):
    path = tmp_path / "cache.bin"

    async def warm():
        return [await cache.resolve(w) for w in ("cat", "running", "tree")]

    originals = asyncio.run(warm())
    assert cache.snapshot_save(path)
    assert not (tmp_path / "cache.bin.tmp").exists()

    fresh_resolver = StaticResolver()
    restored = WordCache(fresh_resolver, is_known=index.is_valid_word)
    assert restored.snapshot_load(path) == 3

    async def reread():
        return [await restored.resolve(w) for w in ("cat", "running", "tree")]

    assert asyncio.run(reread()) == originals
    assert sum(fresh_resolver.calls.values()) == 0


@pytest.mark.unit
def test_snapshot_missing_file(tmp_path, cache):
    assert cache.snapshot_load(tmp_path / "missing.bin") == 0
    assert len(cache) == 0


@pytest.mark.unit
def test_snapshot_corrupt_file(tmp_path, cache):
    path = tmp_path / "cache.bin"
    path.write_bytes(b"definitely not a pickle")

    assert cache.snapshot_load(path) == 0
    assert len(cache) == 0


@pytest.mark.unit
def test_snapshot_save_failure_is_swallowed(tmp_path, cache):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    assert cache.snapshot_save(blocker / "cache.bin") is False


@pytest.mark.unit
def test_merriam_webster_parses_entries():
    payload = [
        {"meta": {"stems": ["cat", "cats"]}, "fl": "noun", "shortdef": ["a small feline"]},
        {"meta": {"stems": ["cat"]}, "fl": "verb", "shortdef": []},
        "catalog",
    ]
    session = FakeSession(payload)
    resolver = MerriamWebsterResolver("secret", session=session, timeout=3.0)

    entries = asyncio.run(resolver.lookup("cat"))

    assert entries == [
        DictionaryEntry("noun", ["a small feline"], ["cat", "cats"]),
        DictionaryEntry("verb", [], ["cat"]),
    ]
    url, params, timeout = session.requests[0]
    assert url.endswith("/cat")
    assert params == {"key": "secret"}
    assert timeout == 3.0


@pytest.mark.unit
def test_merriam_webster_transport_error():
    session = FakeSession(error=requests.ConnectionError("down"))
    resolver = MerriamWebsterResolver("secret", session=session)

    with pytest.raises(LookupFailed):
        asyncio.run(resolver.lookup("cat"))


@pytest.mark.unit
def test_merriam_webster_suggestions_only(index):
    resolver = MerriamWebsterResolver("secret", session=FakeSession(["cart", "cast"]))
    cache = WordCache(resolver, is_known=index.is_valid_word)

    with pytest.raises(LookupFailed):
        asyncio.run(cache.resolve("cat"))


@pytest.mark.unit
def test_word_info_str():
    info = build_word_info("tea", [DictionaryEntry("noun", ["a hot drink"], ["tea", "teas"])])

    assert str(info) == "Word: tea\nStems: tea, teas\nDefinitions:\n(noun): a hot drink"
    assert isinstance(info, WordInfo)


@pytest.mark.unit
def test_get_and_clear(cache, resolver):
    assert cache.get("cat") is None

    info = asyncio.run(cache.resolve("cat"))

    assert cache.get("Cat") is info
    assert cache.items() == [("cat", info)]
    cache.clear()
    assert len(cache) == 0
    assert resolver.calls["cat"] == 1


@pytest.mark.unit
def test_failed_lookup_reaches_every_waiter(index):
    resolver = StaticResolver.from_words(["cat"])
    resolver.failing.add("cat")
    resolver.delay = 0.01
    cache = WordCache(resolver, is_known=index.is_valid_word)

    async def scenario():
        return await asyncio.gather(
            *(cache.resolve("cat") for _ in range(5)), return_exceptions=True
        )

    results = asyncio.run(scenario())

    assert resolver.calls["cat"] == 1
    assert len(results) == 5
    assert all(isinstance(r, LookupFailed) for r in results)
    assert "cat" not in cache


@pytest.mark.unit
def test_snapshot_drops_words_missing_from_index(tmp_path, index, cache, resolver):
    path = tmp_path / "cache.bin"
    other = WordCache(StaticResolver.from_words(["tiger", "cat"]), is_known=lambda _: True)

    async def warm():
        await other.resolve("tiger")
        await other.resolve("cat")

    asyncio.run(warm())
    assert other.snapshot_save(path)

    assert cache.snapshot_load(path) == 1
    assert "tiger" not in cache
    with pytest.raises(NotFound):
        asyncio.run(cache.resolve("tiger"))
    assert resolver.calls["tiger"] == 0


@pytest.mark.unit
def test_cached_word_still_needs_the_index(index, resolver):
    allowed = set(index.vocabulary())
    cache = WordCache(resolver, is_known=lambda w: w in allowed)

    asyncio.run(cache.resolve("cat"))
    allowed.discard("cat")

    with pytest.raises(NotFound):
        asyncio.run(cache.resolve("cat"))


@pytest.mark.unit
def test_snapshot_failures_are_logged(tmp_path, cache, caplog):
    corrupt = tmp_path / "corrupt.bin"
    corrupt.write_bytes(b"definitely not a pickle")
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    with caplog.at_level("WARNING", logger="kotosume.dictionary"):
        assert cache.snapshot_load(corrupt) == 0
        assert cache.snapshot_save(blocker / "cache.bin") is False

    assert "unreadable" in caplog.text
    assert "cannot save cache snapshot" in caplog.text
