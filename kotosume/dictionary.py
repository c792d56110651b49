"""
word definitions: resolved word metadata, resolvers and the shared cache.

the dictionary api is the slowest and least reliable thing a turn touches, so
every resolution goes through `WordCache`: lru-bounded, single-flight per word,
and snapshotted to disk on shutdown so a restart doesn't start cold.
"""

from __future__ import annotations

import asyncio
import logging
import os
import pickle
from collections import Counter, OrderedDict
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple, Protocol

import requests

from .errors import LookupFailed, NotFound, StoreFailed
from .lemmatization import merge_stems

logger = logging.getLogger(__name__)

MERRIAM_WEBSTER_URL = "https://www.dictionaryapi.com/api/v3/references/collegiate/json/{word}"


# -----------------------------------------------------------------------------
# data model
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Definition:
    """short definitions sharing one functional label (noun, verb, ...)."""

    functional_label: str
    definitions: tuple[str, ...]

    def __str__(self) -> str:
        return "\n".join(f"({self.functional_label}): {d}" for d in self.definitions)


@dataclass(frozen=True)
class WordInfo:
    """a resolved word: lemma/inflection stems plus structured definitions."""

    word: str
    stems: tuple[str, ...] = ()
    defs: tuple[Definition, ...] = ()

    def stem_set(self) -> frozenset[str]:
        """lowercase stems, always including the word itself."""
        return frozenset(s.lower() for s in self.stems) | {self.word.lower()}

    def __str__(self) -> str:
        lines = [
            f"Word: {self.word}",
            f"Stems: {', '.join(self.stems)}",
            "Definitions:",
        ]
        lines.extend(str(d) for d in self.defs)
        return "\n".join(lines)


class DictionaryEntry(NamedTuple):
    """one record from a resolver: (label, short definitions, stems)."""

    functional_label: str
    definitions: list[str]
    stems: list[str]


def build_word_info(word: str, entries: Iterable[DictionaryEntry]) -> WordInfo:
    """
    fold resolver records into a WordInfo.

    records without definitions are dropped; if nothing usable is left the
    lookup counts as failed.
    """
    defs: list[Definition] = []
    stems: list[str] = []

    for entry in entries:
        stems.extend(entry.stems)
        definitions = tuple(d for d in entry.definitions if d)
        if definitions:
            defs.append(Definition(entry.functional_label or "", definitions))

    if not defs:
        raise LookupFailed(word)

    return WordInfo(word=word, stems=merge_stems(word, stems), defs=tuple(defs))


# -----------------------------------------------------------------------------
# resolvers
# -----------------------------------------------------------------------------


class Resolver(Protocol):
    """external lookup: lowercase word -> dictionary records."""

    async def lookup(self, word: str) -> list[DictionaryEntry]:
        """return zero or more records; raise LookupFailed on transport errors."""
        ...


class MerriamWebsterResolver:
    """Merriam-Webster collegiate dictionary api client."""

    def __init__(
        self,
        api_key: str,
        session: requests.Session | None = None,
        timeout: float = 10.0,
        url: str = MERRIAM_WEBSTER_URL,
    ):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout
        self.url = url

    def _fetch(self, word: str) -> list:
        response = self.session.get(
            self.url.format(word=word),
            params={"key": self.api_key},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def lookup(self, word: str) -> list[DictionaryEntry]:
        try:
            payload = await asyncio.to_thread(self._fetch, word)
        except (requests.RequestException, ValueError) as e:
            raise LookupFailed(word, f"dictionary request failed ({e})") from e

        if not isinstance(payload, list):
            raise LookupFailed(word, "unexpected dictionary response")

        entries: list[DictionaryEntry] = []
        for item in payload:
            # a bare string is a spelling suggestion, not an entry
            if not isinstance(item, dict):
                continue
            meta = item.get("meta") or {}
            entries.append(
                DictionaryEntry(
                    functional_label=item.get("fl") or "",
                    definitions=list(item.get("shortdef") or []),
                    stems=list(meta.get("stems") or []),
                )
            )
        return entries


def _placeholder_entry(word: str, label: str = "word") -> DictionaryEntry:
    return DictionaryEntry(label, [f"the word '{word}'"], [word])


class StaticResolver:
    """
    in-memory resolver for tests and offline play.

    words listed in `failing` raise LookupFailed. unknown words get no records,
    or a placeholder definition when `placeholder` is set (offline play).
    """

    def __init__(
        self,
        entries: Mapping[str, list[DictionaryEntry]] | None = None,
        failing: Iterable[str] = (),
        delay: float = 0.0,
        placeholder: bool = False,
    ):
        self.entries = dict(entries or {})
        self.placeholder = placeholder
        self.failing = set(failing)
        self.delay = delay
        self.calls: Counter[str] = Counter()

    @classmethod
    def from_words(cls, words: Iterable[str], label: str = "word") -> StaticResolver:
        """every word resolves to a placeholder definition with itself as stem."""
        return cls({w: [_placeholder_entry(w, label)] for w in words})

    async def lookup(self, word: str) -> list[DictionaryEntry]:
        self.calls[word] += 1
        await asyncio.sleep(self.delay)
        if word in self.failing:
            raise LookupFailed(word, "resolver unavailable")
        if word not in self.entries and self.placeholder:
            return [_placeholder_entry(word)]
        return list(self.entries.get(word, []))


# -----------------------------------------------------------------------------
# cache
# -----------------------------------------------------------------------------


def normalize(word: str) -> str:
    return word.strip().lower()


@dataclass
class WordCache:
    """
    async, lru-bounded memo of word -> WordInfo.

    args:
        resolver: external lookup used on a miss
        is_known: dictionary of record; unknown words fail with NotFound
                  before any external call
        capacity: max entries before least-recently-used ones are evicted
    """

    resolver: Resolver
    is_known: Callable[[str], bool] = lambda _: True
    capacity: int = 10_000
    _entries: OrderedDict[str, WordInfo] = field(default_factory=OrderedDict, init=False, repr=False)
    _inflight: dict[str, asyncio.Future] = field(default_factory=dict, init=False, repr=False)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and normalize(word) in self._entries

    def get(self, word: str) -> WordInfo | None:
        """cached value without touching the resolver or the lru order."""
        return self._entries.get(normalize(word))

    def items(self) -> list[tuple[str, WordInfo]]:
        """(key, WordInfo) pairs, least recently used first."""
        return list(self._entries.items())

    def clear(self) -> None:
        self._entries.clear()

    def _store(self, key: str, info: WordInfo) -> None:
        self._entries[key] = info
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("evicted '%s' from word cache", evicted)

    async def _lookup(self, key: str) -> WordInfo:
        entries = await self.resolver.lookup(key)
        info = build_word_info(key, entries)
        self._store(key, info)
        return info

    async def resolve(self, word: str) -> WordInfo:
        """
        resolve a word, hitting the external resolver at most once per key.

        concurrent callers for the same uncached word share one lookup.

        raises:
            NotFound: word isn't in the index of valid words
            LookupFailed: resolver errored or returned no usable definition
        """
        key = normalize(word)

        # the index stays the dictionary of record, even for cached words
        if not key or not self.is_known(key):
            raise NotFound(key)

        cached = self._entries.get(key)
        if cached is not None:
            self._entries.move_to_end(key)
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._lookup(key))
            self._inflight[key] = task
            task.add_done_callback(lambda _t, k=key: self._inflight.pop(k, None))

        # shield: one caller being cancelled must not cancel the shared lookup
        return await asyncio.shield(task)

    # -------------------------------------------------------------------------
    # snapshot persistence
    # -------------------------------------------------------------------------

    def _read_snapshot(self, path: Path) -> list[tuple[str, WordInfo]]:
        try:
            with open(path, "rb") as f:
                pairs = pickle.load(f)
            return [
                (str(key), info)
                for key, info in pairs
                if isinstance(info, WordInfo)
            ]
        except (OSError, EOFError, pickle.UnpicklingError, AttributeError,
                ImportError, IndexError, TypeError, ValueError) as e:
            raise StoreFailed(f"cache snapshot {path} unreadable: {e}") from e

    def _write_snapshot(self, path: Path, pairs: list[tuple[str, WordInfo]]) -> None:
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "wb") as f:
                pickle.dump(pairs, f, protocol=pickle.HIGHEST_PROTOCOL)
            os.replace(tmp_path, path)
        except (OSError, pickle.PicklingError) as e:
            raise StoreFailed(f"cannot save cache snapshot to {path}: {e}") from e

    def snapshot_load(self, path: Path | str) -> int:
        """
        populate the cache from a snapshot written by `snapshot_save`.

        a missing or corrupt file is logged and leaves the cache empty.
        entries for words the index doesn't know (a snapshot from another
        vector file) are dropped.

        returns:
            number of entries loaded
        """
        path = Path(path)
        if not path.exists():
            logger.info("no cache snapshot at %s, starting empty", path)
            return 0

        try:
            loaded = self._read_snapshot(path)
        except StoreFailed as e:
            logger.warning("%s", e)
            return 0

        self._entries.clear()
        dropped = 0
        for key, info in loaded:
            if not self.is_known(key):
                dropped += 1
                continue
            self._store(key, info)

        if dropped:
            logger.info("dropped %d cached words missing from the index", dropped)
        logger.info("loaded %d cached words from %s", len(self._entries), path)
        return len(self._entries)

    def snapshot_save(self, path: Path | str) -> bool:
        """
        write the whole cache to disk (temp file + atomic rename).

        failures are logged, never raised.

        returns:
            True if the snapshot was written
        """
        path = Path(path)
        pairs = self.items()

        try:
            self._write_snapshot(path, pairs)
        except StoreFailed as e:
            logger.error("%s", e)
            return False

        logger.info("saved %d cached words to %s", len(pairs), path)
        return True
