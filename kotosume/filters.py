"""
word-quality filters for words the machine picks on its own.

starter words and hints should be words a player actually knows, so they go
through the cleanup a crawled vector vocab needs: no stopwords, no
internet garbage, no "yesss"-style repeats, alphabetic only, and common
enough according to wordfreq's zipf scale.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

from wordfreq import zipf_frequency

# function words: legal in the dictionary but dull as a machine move
STOPWORDS = frozenset("""
    a about above after against all also although am an and any are as at
    be because been before being below between both but by can could did do
    does doing during each ever every few for from had has have having he
    her here hers herself him himself his how i if in into is it its itself
    just many me might more most much must my myself never no not now of off
    on once only onto or other ought our ours ourselves out over own same
    shall she should since so some such than that the their theirs them
    themselves then there these they this those though through to too under
    unless until up very was we were what when where which while who whom
    why will with would you your yours yourself yourselves
""".split())

# 3+ of the same character in a row ("yesss", "zzz")
REPEATED_CHARS = re.compile(r"(.)\1{2,}")

# web fragments and chat slang that show up in crawled vectors
INTERNET_GARBAGE = frozenset("""
    af btw com div fml fomo gif href htm html http https idk img imo irl jpg
    lmao lol mfw net omg org pdf php png rofl smh src tbh tfw url wtf www yolo
""".split())


def is_alpha_word(word: str) -> bool:
    """letters only, no digits / punctuation / spaces."""
    return bool(word) and word.isalpha()


def is_playable_word(word: str, *, min_length: int = 2) -> bool:
    """check if a word is clean enough for the machine to offer.

    returns True if the word should be kept, False if filtered out.
    """
    if len(word) < min_length:
        return False

    # ascii alphabetic only (the dictionary api is english)
    if not word.isalpha() or not word.isascii():
        return False

    w = word.lower()

    if w in STOPWORDS or w in INTERNET_GARBAGE:
        return False

    # 3+ repeated characters (likely misspellings/slang)
    if REPEATED_CHARS.search(w):
        return False

    return True


@lru_cache(maxsize=100_000)
def zipf(word: str, lang: str = "en") -> float:
    """zipf frequency of a word (0.0 if wordfreq has never seen it)."""
    return float(zipf_frequency(word, lang))


def is_common_word(word: str, *, min_zipf: float = 3.0, min_length: int = 2) -> bool:
    """playable and at least `min_zipf` on wordfreq's zipf scale."""
    return is_playable_word(word, min_length=min_length) and zipf(word) >= min_zipf


@dataclass
class ScoredWord:
    word: str
    zipf: float


def score_vocab(
    vocab: Iterable[str],
    *,
    min_zipf: float = 3.0,
) -> list[ScoredWord]:
    """score each playable word with its zipf frequency, most common first.

    only keeps words with zipf >= min_zipf.
    """
    scored = [
        ScoredWord(word=w, zipf=zipf(w))
        for w in vocab
        if is_playable_word(w)
    ]
    scored = [s for s in scored if s.zipf >= min_zipf]
    scored.sort(key=lambda s: s.zipf, reverse=True)
    return scored
