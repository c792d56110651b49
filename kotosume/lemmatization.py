"""
lemmatization utilities for duplicate detection.

the dictionary api already hands back stems for every word it resolves, but
machine candidates come straight out of the embedding index and have no stems
until they're looked up. LemmInflect gives us the base forms of a bare word
(ran -> run, mice -> mouse, running -> run) so we can skip inflected repeats
before spending an api call on them.
"""

from functools import lru_cache
from typing import Iterable

from lemminflect import getAllLemmas


@lru_cache(maxsize=50_000)
def lemmas(word: str) -> tuple[str, ...]:
    """
    all base forms LemmInflect knows for `word`, across parts of speech.

    args:
        word: input word (any case)

    returns:
        lowercase lemmas in first-seen order; empty if the word is unknown
    """
    w = word.lower()
    found: list[str] = []

    # getAllLemmas returns dict like {'NOUN': ('lemma1',), 'VERB': ('lemma2',)}
    for lemma_tuple in getAllLemmas(w).values():
        for lemma in lemma_tuple:
            lemma = lemma.lower()
            if lemma not in found:
                found.append(lemma)

    return tuple(found)


def stem_forms(word: str) -> frozenset[str]:
    """the word itself plus its lemmas, lowercase."""
    w = word.lower()
    return frozenset((w, *lemmas(w)))


def merge_stems(word: str, stems: Iterable[str]) -> tuple[str, ...]:
    """
    combine dictionary stems with the word and its lemmas.

    keeps the dictionary's order first, dedupes case-insensitively.
    """
    merged: list[str] = []
    for s in (*stems, word.lower(), *lemmas(word)):
        s = s.lower()
        if s and s not in merged:
            merged.append(s)
    return tuple(merged)
