"""
embedding index: word vectors bucketed by first letter.

the vector table is parsed once at startup from a whitespace-delimited text
file (`<word> <float> <float> ...`, GloVe / word2vec text format) and then
never mutated. every machine turn does a "most similar word starting with X"
scan, so vectors are grouped into one matrix per first character and each
query only touches a single bucket.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from .errors import EmbeddingLoadError, InvalidWord, NoMatch

logger = logging.getLogger(__name__)

# norms below this count as the zero vector
_EPS = 1e-12


@dataclass(frozen=True)
class Bucket:
    """all words sharing a first character, with their vectors stacked."""

    words: tuple[str, ...]
    vectors: NDArray[np.float64]  # shape (n, D)
    norms: NDArray[np.float64]  # shape (n,)
    positions: Mapping[str, int]


def _build_bucket(rows: list[tuple[str, list[float]]]) -> Bucket:
    words = tuple(word for word, _ in rows)
    vectors = np.array([vec for _, vec in rows], dtype=np.float64)
    vectors.setflags(write=False)
    norms = np.linalg.norm(vectors, axis=1)
    norms.setflags(write=False)
    return Bucket(
        words=words,
        vectors=vectors,
        norms=norms,
        positions={w: i for i, w in enumerate(words)},
    )


def _is_header_line(parts: list[str]) -> bool:
    """word2vec text files may start with `<vocab size> <dims>`."""
    return len(parts) == 2 and all(part.isdigit() for part in parts)


class EmbeddingIndex:
    """
    immutable word -> vector table, partitioned by first character.

    build it with `EmbeddingIndex.load(path)` (or `from_vectors` in tests);
    after that it's safe to share between any number of concurrent readers.
    """

    def __init__(self, buckets: Mapping[str, Bucket], dimensions: int):
        self._buckets = dict(buckets)
        self._dimensions = dimensions
        self._size = sum(len(b.words) for b in self._buckets.values())

    # -------------------------------------------------------------------------
    # construction
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, source: Path | str, expected_dim: int | None = None) -> EmbeddingIndex:
        """
        parse an embedding text file into an index.

        args:
            source: path to the `<word> <f64> ...` file
            expected_dim: vector length to enforce (default: first good row)

        returns:
            the loaded index

        raises:
            EmbeddingLoadError: if the file can't be read or has no usable rows
        """
        path = Path(source)
        logger.info("initializing embeddings from %s", path)

        table: dict[str, list[float]] = {}
        dim = expected_dim
        skipped = 0

        try:
            with open(path, "rb") as f:
                for line_num, raw in enumerate(f, 1):
                    try:
                        line = raw.decode("utf-8")
                    except UnicodeDecodeError as e:
                        logger.warning("line %d: not valid utf-8: %s", line_num, e)
                        skipped += 1
                        continue

                    parts = line.replace("\r", "").split()

                    if not parts:
                        logger.warning("empty line %d in embeddings file", line_num)
                        skipped += 1
                        continue

                    if line_num == 1 and _is_header_line(parts):
                        continue

                    word = parts[0].lower()
                    if len(parts) < 2:
                        logger.warning("line %d: no vector for word '%s'", line_num, word)
                        skipped += 1
                        continue

                    try:
                        vec = [float(x) for x in parts[1:]]
                    except ValueError as e:
                        logger.warning("failed to parse embedding for word '%s': %s", word, e)
                        skipped += 1
                        continue

                    if dim is None:
                        dim = len(vec)
                    elif len(vec) != dim:
                        logger.warning(
                            "line %d: expected %d dims for '%s', got %d",
                            line_num, dim, word, len(vec),
                        )
                        skipped += 1
                        continue

                    table[word] = vec
        except OSError as e:
            raise EmbeddingLoadError(f"cannot read embeddings file {path}: {e}") from e

        if not table:
            raise EmbeddingLoadError(f"no usable embeddings in {path}")

        index = cls.from_vectors(table)
        logger.info(
            "embeddings initialized: %d words, %d first characters, %d dims (%d rows skipped)",
            len(index), len(index.letters()), index.dimensions, skipped,
        )
        return index

    @classmethod
    def from_vectors(cls, vectors: Mapping[str, Iterable[float]]) -> EmbeddingIndex:
        """
        build an index from an in-memory word -> vector mapping.

        raises ValueError if the vectors don't all share one dimensionality.
        """
        grouped: dict[str, list[tuple[str, list[float]]]] = {}
        dim: int | None = None

        for word, vec in vectors.items():
            if not word:
                continue
            values = [float(x) for x in vec]
            if dim is None:
                dim = len(values)
            elif len(values) != dim:
                raise ValueError(
                    f"vector for '{word}' has {len(values)} dims, expected {dim}"
                )
            grouped.setdefault(word[0], []).append((word, values))

        if dim is None:
            raise ValueError("cannot build an index from zero vectors")

        buckets = {char: _build_bucket(rows) for char, rows in grouped.items()}
        return cls(buckets, dim)

    # -------------------------------------------------------------------------
    # introspection
    # -------------------------------------------------------------------------

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def __len__(self) -> int:
        return self._size

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and self.is_valid_word(word)

    def letters(self) -> list[str]:
        """first characters that have at least one word, sorted."""
        return sorted(self._buckets)

    def bucket(self, char: str) -> tuple[str, ...]:
        """all words starting with `char`, in load order."""
        b = self._buckets.get(char)
        return b.words if b is not None else ()

    def vocabulary(self) -> list[str]:
        return [w for char in self.letters() for w in self._buckets[char].words]

    def is_valid_word(self, word: str) -> bool:
        """dictionary of record for move legality."""
        if not word:
            return False
        b = self._buckets.get(word[0])
        return b is not None and word in b.positions

    # -------------------------------------------------------------------------
    # similarity
    # -------------------------------------------------------------------------

    def _locate(self, word: str) -> tuple[Bucket, int]:
        if not word:
            raise InvalidWord(word)
        b = self._buckets.get(word[0])
        if b is None or word not in b.positions:
            raise InvalidWord(word)
        return b, b.positions[word]

    def vector(self, word: str) -> NDArray[np.float64]:
        b, i = self._locate(word)
        return b.vectors[i]

    def similarity(self, a: str, b: str) -> float:
        """
        cosine similarity between two indexed words.

        returns 0.0 if either vector is the zero vector.
        raises InvalidWord if either word is not indexed.
        """
        bucket_a, i = self._locate(a)
        bucket_b, j = self._locate(b)

        norm_a = bucket_a.norms[i]
        norm_b = bucket_b.norms[j]
        if norm_a < _EPS or norm_b < _EPS:
            return 0.0

        dot = float(bucket_a.vectors[i] @ bucket_b.vectors[j])
        return dot / float(norm_a * norm_b)

    def most_similar_under(
        self,
        reference: str,
        starting_char: str,
        predicate: Callable[[str], bool],
    ) -> str:
        """
        find the word closest to `reference` among words starting with
        `starting_char` that satisfy `predicate`.

        ties go to the word that comes first in the bucket.

        raises:
            InvalidWord: reference is not indexed
            NoMatch: no word in the bucket passes the predicate
        """
        ref_bucket, ref_pos = self._locate(reference)
        ref_vec = ref_bucket.vectors[ref_pos]
        ref_norm = ref_bucket.norms[ref_pos]

        target = self._buckets.get(starting_char)
        if target is None:
            raise NoMatch(f"no embeddings for letter '{starting_char}'")

        candidates = [i for i, w in enumerate(target.words) if predicate(w)]
        if not candidates:
            raise NoMatch(f"no words starting with '{starting_char}' match the predicate")

        ids = np.asarray(candidates, dtype=np.int64)
        norms = target.norms[ids] * ref_norm
        dots = target.vectors[ids] @ ref_vec

        # zero vectors score 0.0, same as similarity()
        scores = np.zeros(len(ids), dtype=np.float64)
        nonzero = norms >= _EPS
        scores[nonzero] = dots[nonzero] / norms[nonzero]

        # argmax returns the first maximum -> first-encountered tie-break
        best = int(np.argmax(scores))
        return target.words[candidates[best]]

    def random_word(
        self,
        predicate: Callable[[str], bool] = lambda _: True,
        starting_char: str | None = None,
        rng: random.Random | None = None,
    ) -> str:
        """
        pick a uniformly random indexed word passing `predicate`.

        used for starter words and hints. raises NoMatch if nothing qualifies.
        """
        rng = rng or random.Random()
        if starting_char is not None:
            pool = list(self.bucket(starting_char))
        else:
            pool = self.vocabulary()

        # first hit in a random permutation is uniform over the qualifying
        # words, and we only run the predicate until we find one
        rng.shuffle(pool)
        for word in pool:
            if predicate(word):
                return word

        where = f" starting with '{starting_char}'" if starting_char else ""
        raise NoMatch(f"no words{where} match the predicate")
