"""
the game variants, expressed as data.

each variant only decides how the next turn's `Constraints` follow from the
last word played and a handful of per-game parameters. the session and the
engine are shared by all of them.
"""

from __future__ import annotations

import random
import string
from dataclasses import dataclass, field, replace
from typing import Callable

from .config import Config
from .constraints import Constraints


@dataclass(frozen=True)
class Params:
    """per-game knobs, fixed at game start (ladder length moves each round)."""

    forbidden: frozenset[str] = field(default_factory=frozenset)
    shared: int | None = None
    length: int | None = None
    max_length: int | None = None
    floor: float | None = None
    rhyme: bool = False


@dataclass(frozen=True)
class Variant:
    """
    one game mode.

    same_letter: every word starts with the opening word's first letter
                 (alphabet sprint); otherwise with the last word's last letter
    length_step: how much longer the machine's word is than the player's
    """

    key: str
    title: str
    intro: str
    rules: str
    make_params: Callable[[Config, random.Random], Params]
    same_letter: bool = False
    length_step: int = 0
    wide_search: bool = False

    def attempts(self, config: Config) -> int:
        return config.synonym_attempts if self.wide_search else config.response_attempts

    def starter_constraints(self, params: Params) -> Constraints:
        """rules the machine's opening word has to follow."""
        return Constraints(
            forbidden_chars=params.forbidden,
            required_length=params.length,
        )

    def next_constraints(self, previous: str, params: Params, machine: bool = False) -> Constraints:
        """
        constraints for the move that answers `previous`.

        args:
            previous: last word in the chain
            params: this game's parameters
            machine: True when building the machine's search constraints
        """
        starting_char = previous[:1] if self.same_letter else previous[-1:]
        length = params.length
        if length is not None and machine:
            length += self.length_step

        return Constraints(
            starting_char=starting_char,
            forbidden_chars=params.forbidden,
            min_shared_chars=params.shared,
            required_length=length,
            rhyme_with=previous if params.rhyme else None,
            similarity_floor=params.floor,
        )

    def advance(self, params: Params) -> Params:
        """parameters for the next round, after both sides have played."""
        if params.length is not None and self.length_step:
            return replace(params, length=params.length + self.length_step)
        return params

    def is_terminal(self, params: Params) -> bool:
        """True once the player's accepted word ends the game."""
        return (
            params.length is not None
            and params.max_length is not None
            and params.length >= params.max_length
        )


def _no_params(config: Config, rng: random.Random) -> Params:
    return Params()


def _scramble_params(config: Config, rng: random.Random) -> Params:
    return Params(shared=config.min_shared_chars)


def _synonym_params(config: Config, rng: random.Random) -> Params:
    return Params(floor=config.similarity_floor)


def _ladder_params(config: Config, rng: random.Random) -> Params:
    return Params(length=config.ladder_start_len, max_length=config.ladder_max_len)


def _forbidden_params(config: Config, rng: random.Random) -> Params:
    letters = rng.sample(string.ascii_lowercase, config.forbidden_count)
    return Params(forbidden=frozenset(letters))


def _rhyme_params(config: Config, rng: random.Random) -> Params:
    return Params(rhyme=True)


WORD_CHAIN = Variant(
    key="word_chain",
    title="Word Chain",
    intro="Word Chain begins! Each word starts with the last letter of the previous one.",
    rules=(
        "Word Chain Rules:\n"
        "1. Each word must start with the last letter of the previous word\n"
        "2. Words (or forms of them) can't be repeated\n"
        "3. Use /hint for a hint, /skip to skip your turn, or /stop to end the game"
    ),
    make_params=_no_params,
)

ALPHABET_SPRINT = Variant(
    key="alphabet_sprint",
    title="Alphabet Sprint",
    intro="Alphabet Sprint time! Ready to race through the letters?",
    rules=(
        "Alphabet Sprint Rules:\n"
        "1. Every word must start with the same letter as the first word\n"
        "2. Words (or forms of them) can't be repeated\n"
        "3. Whoever runs out of words first loses"
    ),
    make_params=_no_params,
    same_letter=True,
)

LAST_LETTER_SCRAMBLE = Variant(
    key="last_letter",
    title="Last Letter Scramble",
    intro="Last Letter Scramble! Let's twist those endings.",
    rules=(
        "Last Letter Scramble Rules:\n"
        "1. Each word must start with the last letter of the previous word\n"
        "2. It must also share a number of distinct letters with the previous word\n"
        "3. Words (or forms of them) can't be repeated"
    ),
    make_params=_scramble_params,
)

SYNONYM_STRING = Variant(
    key="synonym_string",
    title="Synonym String",
    intro="Synonym String! Keep the meaning flowing.",
    rules=(
        "Synonym String Rules:\n"
        "1. Each word must start with the last letter of the previous word\n"
        "2. It must also be close in meaning to the previous word\n"
        "3. Words (or forms of them) can't be repeated"
    ),
    make_params=_synonym_params,
    wide_search=True,
)

WORD_LADDER = Variant(
    key="word_ladder",
    title="Word Length Ladder",
    intro="Word Length Ladder! Climb up the word sizes.",
    rules=(
        "Word Ladder Rules:\n"
        "1. We start with a short word (2 letters)\n"
        "2. Each new word must start with the last letter of the previous word\n"
        "3. Word length increases by 1 with each turn\n"
        "4. The goal is to reach a word of length 8\n"
        "5. Use /hint for a hint, /skip to skip your turn, or /stop to end the game"
    ),
    make_params=_ladder_params,
    length_step=1,
)

FORBIDDEN_LETTERS = Variant(
    key="forbidden_letters",
    title="Forbidden Letters",
    intro="Forbidden Letters! Some letters are off limits.",
    rules=(
        "Forbidden Letters Rules:\n"
        "1. Each word must start with the last letter of the previous word\n"
        "2. Words must not contain any of the forbidden letters\n"
        "3. Words (or forms of them) can't be repeated"
    ),
    make_params=_forbidden_params,
)

RHYME_TIME = Variant(
    key="rhyme_time",
    title="Rhyme Time",
    intro="Rhyme Time begins! Get those rhymes flowing.",
    rules=(
        "Rhyme Time Rules:\n"
        "1. Each word must start with the last letter of the previous word\n"
        "2. It must also rhyme with the previous word\n"
        "3. Words (or forms of them) can't be repeated"
    ),
    make_params=_rhyme_params,
)

VARIANTS: dict[str, Variant] = {
    v.key: v
    for v in (
        WORD_CHAIN,
        ALPHABET_SPRINT,
        LAST_LETTER_SCRAMBLE,
        SYNONYM_STRING,
        WORD_LADDER,
        FORBIDDEN_LETTERS,
        RHYME_TIME,
    )
}


def get_variant(key: str) -> Variant:
    """look up a variant by its menu key; raises KeyError for unknown keys."""
    try:
        return VARIANTS[key]
    except KeyError:
        raise KeyError(f"unknown game '{key}', choose one of: {', '.join(VARIANTS)}") from None
