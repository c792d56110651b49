"""pytest fixtures for kotosume tests."""

import pytest

from kotosume.constraints import ConstraintEngine
from kotosume.dictionary import Definition, StaticResolver, WordCache, WordInfo
from kotosume.embeddings import EmbeddingIndex
from kotosume.phonetics import PhoneticDictionary

# 2d vectors so similarities are easy to reason about:
# x ~ "cat-ness", y ~ "dog-ness"
VECTORS = {
    "cat": [1.0, 0.0],
    "car": [0.9, 0.1],
    "dog": [0.0, 1.0],
    "top": [0.8, 0.2],
    "tax": [0.6, 0.4],
    "tea": [0.5, 0.5],
    "tons": [0.4, 0.6],
    "tree": [0.1, 0.9],
    "pie": [0.3, 0.7],
    "pen": [0.7, 0.3],
    "pear": [0.2, 0.8],
    "apple": [0.6, 0.6],
    "egg": [0.9, 0.3],
    "eel": [0.2, 0.9],
    "ear": [0.5, 0.8],
    "elephant": [0.3, 0.3],
    "rat": [0.95, 0.05],
    "ram": [0.4, 0.9],
    "run": [0.7, 0.7],
    "running": [0.65, 0.7],
    "stone": [0.3, 0.9],
    "station": [0.6, 0.2],
    "nation": [0.5, 0.1],
    "zero": [0.0, 0.0],
}

PRONUNCIATIONS = {
    "cat": ["K", "AE1", "T"],
    "rat": ["R", "AE1", "T"],
    "station": ["S", "T", "EY1", "SH", "AH0", "N"],
    "nation": ["N", "EY1", "SH", "AH0", "N"],
}


def make_info(word, *stems):
    """a resolved word as the cache would hand it back."""
    return WordInfo(
        word=word,
        stems=stems or (word,),
        defs=(Definition("noun", (f"the word '{word}'",)),),
    )


@pytest.fixture
def index():
    return EmbeddingIndex.from_vectors(VECTORS)


@pytest.fixture
def phonetics():
    return PhoneticDictionary(PRONUNCIATIONS)


@pytest.fixture
def resolver(index):
    return StaticResolver.from_words(index.vocabulary())


@pytest.fixture
def cache(index, resolver):
    return WordCache(resolver, is_known=index.is_valid_word, capacity=100)


@pytest.fixture
def engine(index, cache, phonetics):
    return ConstraintEngine(index, cache, phonetics)
