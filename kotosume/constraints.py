"""
the turn engine: constraint checks for the player's word and the bounded
search for the machine's answer.

every game variant reduces to a `Constraints` bundle. the same bundle is used
twice per round: as a validator for the player's submission and as a
predicate over an embedding bucket when the machine looks for a reply.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .dictionary import WordCache, WordInfo
from .embeddings import EmbeddingIndex
from .errors import (
    AlreadyUsed,
    ConstraintViolation,
    InvalidInput,
    InvalidWord,
    LookupFailed,
    NoMatch,
    NotFound,
    NoValidWord,
)
from .filters import is_alpha_word, is_common_word, is_playable_word
from .lemmatization import stem_forms
from .phonetics import PhoneticDictionary

logger = logging.getLogger(__name__)


def shared_chars(a: str, b: str) -> set[str]:
    """distinct characters two words have in common (set, not multiset)."""
    return set(a) & set(b)


def has_forbidden(word: str, forbidden: Iterable[str]) -> bool:
    return not set(word).isdisjoint(forbidden)


def used_stems(chain: Iterable[WordInfo]) -> frozenset[str]:
    """every stem (and word) already played in a chain."""
    stems: set[str] = set()
    for info in chain:
        stems |= info.stem_set()
    return frozenset(stems)


@dataclass(frozen=True)
class Constraints:
    """
    structural rules a word has to satisfy on one turn.

    unset fields (None / empty) don't constrain anything. rules that compare
    against the previous word (shared letters, similarity) are skipped when
    there is no previous word yet.
    """

    starting_char: str | None = None
    forbidden_chars: frozenset[str] = field(default_factory=frozenset)
    min_shared_chars: int | None = None
    required_length: int | None = None
    rhyme_with: str | None = None
    similarity_floor: float | None = None

    def violation(
        self,
        word: str,
        previous: str | None,
        index: EmbeddingIndex,
        phonetics: PhoneticDictionary | None = None,
        rhyme_tail: int = 3,
    ) -> ConstraintViolation | None:
        """return the first rule `word` breaks, or None if it passes."""
        if self.starting_char and not word.startswith(self.starting_char):
            return ConstraintViolation(
                "starting_char", f"Your word must start with '{self.starting_char}'"
            )

        if self.required_length is not None and len(word) != self.required_length:
            return ConstraintViolation(
                "required_length", f"Your word must be {self.required_length} letters long"
            )

        if self.forbidden_chars and has_forbidden(word, self.forbidden_chars):
            banned = ", ".join(sorted(self.forbidden_chars))
            return ConstraintViolation(
                "forbidden_chars", f"Your word contains forbidden letters: {banned}"
            )

        if self.min_shared_chars is not None and previous:
            if len(shared_chars(word, previous)) < self.min_shared_chars:
                return ConstraintViolation(
                    "min_shared_chars",
                    f"Your word must contain at least {self.min_shared_chars} "
                    f"letter(s) from '{previous}'",
                )

        if self.rhyme_with is not None:
            if phonetics is None or not phonetics.rhymes(word, self.rhyme_with, rhyme_tail):
                return ConstraintViolation(
                    "rhyme", f"Your word must rhyme with '{self.rhyme_with}'"
                )

        if self.similarity_floor is not None and previous:
            try:
                score = index.similarity(word, previous)
            except InvalidWord:
                score = 0.0
            # floor is inclusive
            if score < self.similarity_floor:
                return ConstraintViolation(
                    "similarity",
                    f"Your word '{word}' is not similar enough to '{previous}'. "
                    "Try something more related.",
                )

        return None

    def predicate(
        self,
        previous: str | None,
        index: EmbeddingIndex,
        phonetics: PhoneticDictionary | None = None,
        rhyme_tail: int = 3,
    ) -> Callable[[str], bool]:
        """pure word -> bool view of the structural rules."""
        return lambda w: self.violation(w, previous, index, phonetics, rhyme_tail) is None

    def describe(self) -> str:
        """prompt text for the next move, e.g. "a word starting with 'e'"."""
        parts = ["a word"]
        if self.starting_char:
            parts.append(f"starting with '{self.starting_char}'")
        if self.required_length is not None:
            parts.append(f"of length {self.required_length}")
        if self.forbidden_chars:
            parts.append(f"without the letters {', '.join(sorted(self.forbidden_chars))}")
        if self.min_shared_chars is not None:
            parts.append(f"sharing at least {self.min_shared_chars} letter(s) with the last word")
        if self.rhyme_with:
            parts.append(f"that rhymes with '{self.rhyme_with}'")
        if self.similarity_floor is not None:
            parts.append("that means something close to the last word")
        return " ".join(parts)


class ConstraintEngine:
    """
    validates player moves and searches for machine moves.

    args:
        index: embedding index (dictionary of record + similarity search)
        cache: shared word cache (definitions and stems)
        phonetics: pronunciations, only needed for rhyme constraints
        rhyme_tail: number of trailing phonemes compared for a rhyme
    """

    def __init__(
        self,
        index: EmbeddingIndex,
        cache: WordCache,
        phonetics: PhoneticDictionary | None = None,
        rhyme_tail: int = 3,
    ):
        self.index = index
        self.cache = cache
        self.phonetics = phonetics
        self.rhyme_tail = rhyme_tail

    def _structural(self, constraints: Constraints, previous: str | None) -> Callable[[str], bool]:
        return constraints.predicate(previous, self.index, self.phonetics, self.rhyme_tail)

    async def validate_move(
        self,
        candidate: str,
        chain: list[WordInfo],
        constraints: Constraints,
    ) -> WordInfo:
        """
        check a submitted word without touching the chain.

        returns:
            the resolved WordInfo of the accepted word

        raises:
            InvalidInput: empty or more than one token
            ConstraintViolation: a structural rule failed
            NotFound / LookupFailed: word unknown or has no usable definition
            AlreadyUsed: the word or one of its stems is already in the chain
        """
        tokens = candidate.split()
        if not tokens:
            raise InvalidInput("Please enter a word.")
        if len(tokens) > 1:
            raise InvalidInput("Please enter only one word.")

        word = tokens[0].lower()
        previous = chain[-1].word if chain else None

        violation = constraints.violation(
            word, previous, self.index, self.phonetics, self.rhyme_tail
        )
        if violation is not None:
            raise violation

        used = used_stems(chain)
        if word in used:
            raise AlreadyUsed(word, frozenset({word}))

        info = await self.cache.resolve(word)

        collision = info.stem_set() & used
        if collision:
            raise AlreadyUsed(word, frozenset(collision))

        return info

    async def select_response(
        self,
        previous_word: str,
        chain: list[WordInfo],
        constraints: Constraints,
        attempts: int = 3,
    ) -> WordInfo:
        """
        find and resolve the machine's answer to `previous_word`.

        every iteration asks the index for the closest unused word passing the
        constraints and tries to resolve it. a word that can't be resolved (or
        turns out to share a stem with the chain) is excluded and the loop
        goes on; either way the iteration counts against `attempts`.

        raises:
            NoValidWord: the attempt budget ran out (the player wins the round)
        """
        starting_char = constraints.starting_char or previous_word[-1:]
        used = set(used_stems(chain))
        excluded: set[str] = set()
        structural = self._structural(constraints, previous_word)

        def allowed(w: str) -> bool:
            return (
                w not in excluded
                and is_alpha_word(w)
                and stem_forms(w).isdisjoint(used)
                and structural(w)
            )

        for attempt in range(1, attempts + 1):
            try:
                word = self.index.most_similar_under(previous_word, starting_char, allowed)
            except (NoMatch, InvalidWord) as e:
                logger.info("attempt %d/%d: no candidate for '%s': %s", attempt, attempts, previous_word, e)
                continue

            try:
                info = await self.cache.resolve(word)
            except (NotFound, LookupFailed) as e:
                logger.info("attempt %d/%d: skipping '%s': %s", attempt, attempts, word, e)
                excluded.add(word)
                continue

            collision = info.stem_set() & used
            if collision:
                logger.info("attempt %d/%d: '%s' repeats %s", attempt, attempts, word, sorted(collision))
                excluded.add(word)
                used |= info.stem_set()
                continue

            logger.info("machine answers '%s' to '%s'", word, previous_word)
            return info

        raise NoValidWord(
            f"could not find {constraints.describe()} after {attempts} attempts",
            attempts=attempts,
        )

    def suggest(
        self,
        chain: list[WordInfo],
        constraints: Constraints,
        rng: random.Random | None = None,
        min_zipf: float = 3.0,
        exclude: Iterable[str] = (),
        accept: Callable[[str], bool] | None = None,
    ) -> str:
        """
        a random unused word that satisfies the constraints (for hints).

        prefers common words, falls back to any playable word.
        raises NoMatch if nothing qualifies.
        """
        previous = chain[-1].word if chain else None
        used = used_stems(chain)
        excluded = set(exclude)
        structural = self._structural(constraints, previous)

        def base(w: str) -> bool:
            return (
                w not in excluded
                and (accept is None or accept(w))
                and stem_forms(w).isdisjoint(used)
                and structural(w)
            )

        try:
            return self.index.random_word(
                lambda w: is_common_word(w, min_zipf=min_zipf) and base(w),
                constraints.starting_char,
                rng,
            )
        except NoMatch:
            return self.index.random_word(
                lambda w: is_playable_word(w) and base(w),
                constraints.starting_char,
                rng,
            )

    async def random_move(
        self,
        chain: list[WordInfo],
        constraints: Constraints,
        attempts: int = 3,
        rng: random.Random | None = None,
        min_zipf: float = 3.0,
        accept: Callable[[str], bool] | None = None,
    ) -> WordInfo:
        """
        pick and resolve a random word satisfying the constraints.

        used for starter words and for playing a skipped turn on the
        player's behalf.

        raises:
            NoValidWord: nothing could be picked and resolved within `attempts`
        """
        excluded: set[str] = set()
        used = used_stems(chain)

        for attempt in range(1, attempts + 1):
            try:
                word = self.suggest(
                    chain, constraints, rng, min_zipf, exclude=excluded, accept=accept
                )
            except NoMatch as e:
                logger.info("attempt %d/%d: no random word: %s", attempt, attempts, e)
                continue

            try:
                info = await self.cache.resolve(word)
            except (NotFound, LookupFailed) as e:
                logger.info("attempt %d/%d: skipping '%s': %s", attempt, attempts, word, e)
                excluded.add(word)
                continue

            if info.stem_set() & used:
                excluded.add(word)
                continue
            return info

        raise NoValidWord(
            f"could not pick {constraints.describe()} after {attempts} attempts",
            attempts=attempts,
        )
