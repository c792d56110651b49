"""
error taxonomy shared by the index, the cache and the turn engine.

the move-rejection family (InvalidInput, ConstraintViolation, NotFound,
LookupFailed, AlreadyUsed) is recovered at the turn boundary and shown to the
player as a retry prompt. NoValidWord ends a round in the player's favour.
StoreFailed is logged and swallowed. EmbeddingLoadError is the only fatal one.
"""


class KotosumeError(Exception):
    """base class for everything the engine raises on purpose."""


# --- embedding index ---


class EmbeddingError(KotosumeError):
    """base class for embedding index failures."""


class EmbeddingLoadError(EmbeddingError):
    """the vector source could not be read (process can't start)."""


class InvalidWord(EmbeddingError):
    """a query word is not in the index."""

    def __init__(self, word: str):
        super().__init__(f"word '{word}' not found in embeddings")
        self.word = word


class NoMatch(EmbeddingError):
    """no indexed word satisfies the query."""


# --- move rejections ---


class MoveRejected(KotosumeError):
    """a submitted word was refused; the session state is unchanged."""


class InvalidInput(MoveRejected):
    """empty or multi-word submission."""


class ConstraintViolation(MoveRejected):
    """a structural rule failed (letter, length, forbidden, shared, rhyme, similarity)."""

    def __init__(self, rule: str, message: str):
        super().__init__(message)
        self.rule = rule


class NotFound(MoveRejected):
    """the word is absent from the index of valid words."""

    def __init__(self, word: str):
        super().__init__(f"I don't recognize '{word}'")
        self.word = word


class LookupFailed(MoveRejected):
    """the resolver failed or returned no usable definition."""

    def __init__(self, word: str, reason: str = "no definition found"):
        super().__init__(f"{reason} for '{word}'")
        self.word = word
        self.reason = reason


class AlreadyUsed(MoveRejected):
    """the word (or a form of it) is already in the chain."""

    def __init__(self, word: str, stems: frozenset[str] = frozenset()):
        super().__init__(f"'{word}' (or a form of it) has already been used")
        self.word = word
        self.stems = stems


# --- round / persistence ---


class NoValidWord(KotosumeError):
    """the bounded search for a machine answer ran out of attempts."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class StoreFailed(KotosumeError):
    """a cache snapshot could not be written or read."""
