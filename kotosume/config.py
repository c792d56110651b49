"""
configuration constants for the word-game engine.

all the magic numbers live here so they're easy to tweak.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass
class Config:
    """engine configuration, tweak these as needed."""

    # embedding dimensions (None = take it from the first good row)
    embed_dim: int | None = None

    # max number of resolved words kept in the definition cache
    cache_size: int = 10_000

    # bounded retry budget for the machine's answer
    response_attempts: int = 3
    # synonym-string searches a narrower space, so it gets a bigger budget
    synonym_attempts: int = 5
    # tries to pick + resolve a starter word before giving up
    start_attempts: int = 3

    # shared-letter requirement for last-letter scramble
    min_shared_chars: int = 3

    # cosine floor for synonym-string (inclusive)
    similarity_floor: float = 0.8

    # word ladder: starting length and the length that ends the game
    ladder_start_len: int = 2
    ladder_max_len: int = 8

    # how many letters forbidden-letters bans per game
    forbidden_count: int = 1

    # phonemes compared for rhyme-time
    rhyme_tail: int = 3

    # starter / hint words must be at least this common (wordfreq zipf)
    starter_min_zipf: float = 3.0

    # dictionary api
    api_key: str | None = None
    api_timeout: float = 10.0

    # paths (relative to project root by default)
    data_dir: Path = Path("data")

    # filenames
    embeddings_file: str = "word2vec.txt"
    cache_file: str = "cache.bin"
    phonetics_file: str = "cmudict.txt"

    def __post_init__(self):
        """ensure paths are Path objects."""
        self.data_dir = Path(self.data_dir)

    @property
    def embeddings_path(self) -> Path:
        return self.data_dir / self.embeddings_file

    @property
    def cache_path(self) -> Path:
        return self.data_dir / self.cache_file

    @property
    def phonetics_path(self) -> Path:
        return self.data_dir / self.phonetics_file

    @classmethod
    def from_env(cls, **overrides) -> "Config":
        """
        build a config from KOTOSUME_* environment variables (and .env).

        explicit keyword overrides win over the environment.
        """
        load_dotenv()

        values: dict = {}
        if os.getenv("KOTOSUME_DATA_DIR"):
            values["data_dir"] = Path(os.environ["KOTOSUME_DATA_DIR"])
        if os.getenv("KOTOSUME_CACHE_SIZE"):
            values["cache_size"] = int(os.environ["KOTOSUME_CACHE_SIZE"])
        if os.getenv("KOTOSUME_EMBEDDINGS_FILE"):
            values["embeddings_file"] = os.environ["KOTOSUME_EMBEDDINGS_FILE"]
        if os.getenv("KOTOSUME_CACHE_FILE"):
            values["cache_file"] = os.environ["KOTOSUME_CACHE_FILE"]
        if os.getenv("KOTOSUME_PHONETICS_FILE"):
            values["phonetics_file"] = os.environ["KOTOSUME_PHONETICS_FILE"]
        if os.getenv("KOTOSUME_SIMILARITY_FLOOR"):
            values["similarity_floor"] = float(os.environ["KOTOSUME_SIMILARITY_FLOOR"])
        if os.getenv("KOTOSUME_MIN_SHARED_CHARS"):
            values["min_shared_chars"] = int(os.environ["KOTOSUME_MIN_SHARED_CHARS"])
        if os.getenv("MERRIAM_WEBSTER_API_KEY"):
            values["api_key"] = os.environ["MERRIAM_WEBSTER_API_KEY"]

        values.update(overrides)
        return cls(**values)


# default config instance
DEFAULT_CONFIG = Config()
