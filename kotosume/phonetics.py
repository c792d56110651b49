"""
pronunciations for rhyme checks, loaded from a CMU pronouncing dictionary.

file format (cmudict.txt):
    ;;; comment lines
    WORD  W ER1 D
    WORD(2)  ...      alternate pronunciations (we keep the first one)
"""

import logging
import re
from pathlib import Path
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)

# "READ(2)" -> "READ"
ALTERNATE_SUFFIX = re.compile(r"\(\d+\)$")


class PhoneticDictionary:
    """word -> phoneme sequence lookups."""

    def __init__(self, pronunciations: Mapping[str, Iterable[str]] | None = None):
        self._phones: dict[str, tuple[str, ...]] = {
            word.lower(): tuple(phones) for word, phones in (pronunciations or {}).items()
        }

    @classmethod
    def load(cls, path: Path | str) -> "PhoneticDictionary":
        """
        parse a cmudict-style file.

        unreadable lines are skipped; a missing file raises OSError.
        """
        pronunciations: dict[str, tuple[str, ...]] = {}
        with open(path, "r", encoding="latin-1") as f:
            for line in f:
                if line.startswith(";;;") or not line.strip():
                    continue
                parts = line.split()
                if len(parts) < 2:
                    continue
                word = ALTERNATE_SUFFIX.sub("", parts[0].lower())
                # first pronunciation wins
                pronunciations.setdefault(word, tuple(parts[1:]))

        logger.info("loaded %d pronunciations from %s", len(pronunciations), path)
        return cls(pronunciations)

    def __len__(self) -> int:
        return len(self._phones)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.lower() in self._phones

    def phones(self, word: str) -> tuple[str, ...] | None:
        return self._phones.get(word.lower())

    def rhyme_tail(self, word: str, length: int = 3) -> tuple[str, ...] | None:
        """last `length` phonemes of the word, or None if it has no entry."""
        phones = self.phones(word)
        if phones is None:
            return None
        return phones[-length:]

    def rhymes(self, a: str, b: str, length: int = 3) -> bool:
        """
        True if both words end in the same `length` phonemes.

        a word without an entry can't be evaluated and never rhymes.
        """
        tail_a = self.rhyme_tail(a, length)
        tail_b = self.rhyme_tail(b, length)
        if tail_a is None or tail_b is None:
            return False
        return tail_a == tail_b
