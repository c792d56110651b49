"""tests for the bucketed embedding index."""

import random

import pytest

from kotosume.embeddings import EmbeddingIndex
from kotosume.errors import EmbeddingLoadError, InvalidWord, NoMatch


def write_vectors(path, text):
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.unit
def test_load_skips_bad_rows(tmp_path):
    path = write_vectors(
        tmp_path / "vectors.txt",
        "cat 1.0 0.0\n"
        "car 0.9 0.1\n"
        "bad 1.0 x\n"
        "short 1.0\n"
        "\n"
        "lonely\n"
        "Dog 0.0 1.0\n",
    )

    index = EmbeddingIndex.load(path)

    assert len(index) == 3
    assert index.dimensions == 2
    assert sorted(index.vocabulary()) == ["car", "cat", "dog"]
    assert "bad" not in index
    assert "short" not in index


@pytest.mark.unit
def test_load_skips_word2vec_header(tmp_path):
    path = write_vectors(tmp_path / "vectors.txt", "2 3\ncat 1 0 0\ndog 0 1 0\n")

    index = EmbeddingIndex.load(path)

    assert len(index) == 2
    assert index.dimensions == 3


@pytest.mark.unit
def test_load_enforces_expected_dim(tmp_path):
    path = write_vectors(tmp_path / "vectors.txt", "cat 1 0\ndog 0 1 0\n")

    index = EmbeddingIndex.load(path, expected_dim=3)

    assert index.vocabulary() == ["dog"]


@pytest.mark.unit
def test_load_missing_file_is_fatal(tmp_path):
    with pytest.raises(EmbeddingLoadError):
        EmbeddingIndex.load(tmp_path / "nope.txt")


@pytest.mark.unit
def test_load_without_usable_rows_is_fatal(tmp_path):
    path = write_vectors(tmp_path / "vectors.txt", "bad x y\n\n")

    with pytest.raises(EmbeddingLoadError):
        EmbeddingIndex.load(path)


@pytest.mark.unit
def test_from_vectors_rejects_mixed_dimensions():
    with pytest.raises(ValueError):
        EmbeddingIndex.from_vectors({"cat": [1.0, 0.0], "dog": [0.0, 1.0, 0.0]})


@pytest.mark.unit
def test_buckets_by_first_letter(index):
    assert index.bucket("c") == ("cat", "car")
    assert index.bucket("q") == ()
    assert "t" in index.letters()
    assert index.is_valid_word("tree")
    assert not index.is_valid_word("")
    assert not index.is_valid_word("zebra")


@pytest.mark.unit
def test_self_similarity(index):
    for word in ("cat", "tea", "elephant", "station"):
        assert index.similarity(word, word) == pytest.approx(1.0)


@pytest.mark.unit
def test_zero_vector_similarity_is_zero(index):
    assert index.similarity("zero", "cat") == 0.0
    assert index.similarity("zero", "zero") == 0.0


@pytest.mark.unit
def test_similarity_unknown_word(index):
    with pytest.raises(InvalidWord):
        index.similarity("cat", "zebra")


@pytest.mark.unit
def test_most_similar_under_scenario():
    index = EmbeddingIndex.from_vectors({
        "cat": [1.0, 0.0],
        "car": [0.9, 0.1],
        "dog": [0.0, 1.0],
    })

    assert index.most_similar_under("cat", "c", lambda w: w != "cat") == "car"


@pytest.mark.unit
def test_most_similar_under_respects_predicate(index):
    predicates = [
        lambda w: True,
        lambda w: len(w) == 4,
        lambda w: "e" in w,
        lambda w: w not in {"top", "tax"},
    ]
    for reference in ("cat", "dog", "pie"):
        for predicate in predicates:
            word = index.most_similar_under(reference, "t", predicate)
            assert word.startswith("t")
            assert predicate(word)


@pytest.mark.unit
def test_most_similar_under_picks_closest(index):
    assert index.most_similar_under("cat", "t", lambda w: True) == "top"
    assert index.most_similar_under("dog", "t", lambda w: True) == "tree"


@pytest.mark.unit
def test_most_similar_under_no_match(index):
    with pytest.raises(NoMatch):
        index.most_similar_under("cat", "q", lambda w: True)
    with pytest.raises(NoMatch):
        index.most_similar_under("cat", "t", lambda w: False)


@pytest.mark.unit
def test_most_similar_under_unknown_reference(index):
    with pytest.raises(InvalidWord):
        index.most_similar_under("zebra", "t", lambda w: True)


@pytest.mark.unit
def test_random_word(index):
    rng = random.Random(7)

    for _ in range(20):
        word = index.random_word(lambda w: len(w) == 3, starting_char="p", rng=rng)
        assert word in {"pie", "pen"}

    with pytest.raises(NoMatch):
        index.random_word(lambda w: len(w) > 20, rng=rng)


@pytest.mark.unit
def test_vector_lookup(index):
    assert list(index.vector("tea")) == [0.5, 0.5]
    assert not index.vector("tea").flags.writeable

    with pytest.raises(InvalidWord):
        index.vector("zebra")


@pytest.mark.unit
def test_load_skips_rows_with_bad_encoding(tmp_path):
    path = tmp_path / "vectors.txt"
    path.write_bytes(b"cat 1.0 0.0\ncaf\xff 0.5 0.5\ndog 0.0 1.0\n")

    index = EmbeddingIndex.load(path)

    assert sorted(index.vocabulary()) == ["cat", "dog"]
