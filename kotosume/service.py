"""
process-level wiring: build every component once from a Config.

    async with GameService.from_config(config) as service:
        result = await service.sessions.start(chat_id, "word_chain")

entering the context warms the word cache from its snapshot; leaving it (or
SIGINT / SIGTERM, see `install_signal_handlers`) writes the snapshot back.
"""

from __future__ import annotations

import asyncio
import logging
import random
import signal
from dataclasses import dataclass
from pathlib import Path

from .config import Config
from .constraints import ConstraintEngine
from .dictionary import MerriamWebsterResolver, Resolver, StaticResolver, WordCache
from .embeddings import EmbeddingIndex
from .phonetics import PhoneticDictionary
from .session import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class GameService:
    """all long-lived components of a running bot."""

    config: Config
    index: EmbeddingIndex
    cache: WordCache
    engine: ConstraintEngine
    sessions: SessionManager
    phonetics: PhoneticDictionary | None = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        resolver: Resolver | None = None,
        rng: random.Random | None = None,
    ) -> GameService:
        """
        load the vector space and build the rest around it.

        the embedding index is the only hard requirement: if it can't be
        loaded EmbeddingLoadError propagates and the process should exit.
        without a resolver or an api key every indexed word resolves to a
        placeholder definition (offline play).
        """
        index = EmbeddingIndex.load(config.embeddings_path, expected_dim=config.embed_dim)

        phonetics = None
        if config.phonetics_path.exists():
            phonetics = PhoneticDictionary.load(config.phonetics_path)
        else:
            logger.warning("no pronouncing dictionary at %s, rhyme time disabled", config.phonetics_path)

        if resolver is None:
            if config.api_key:
                resolver = MerriamWebsterResolver(config.api_key, timeout=config.api_timeout)
            else:
                logger.warning("MERRIAM_WEBSTER_API_KEY not set, using offline definitions")
                resolver = StaticResolver(placeholder=True)

        return cls.build(config, index, resolver, phonetics, rng)

    @classmethod
    def build(
        cls,
        config: Config,
        index: EmbeddingIndex,
        resolver: Resolver,
        phonetics: PhoneticDictionary | None = None,
        rng: random.Random | None = None,
    ) -> GameService:
        """wire already-built collaborators together (tests use this directly)."""
        cache = WordCache(resolver, is_known=index.is_valid_word, capacity=config.cache_size)
        engine = ConstraintEngine(index, cache, phonetics, rhyme_tail=config.rhyme_tail)
        sessions = SessionManager(engine, config, rng)
        return cls(
            config=config,
            index=index,
            cache=cache,
            engine=engine,
            sessions=sessions,
            phonetics=phonetics,
        )

    @property
    def snapshot_path(self) -> Path:
        return self.config.cache_path

    def load_snapshot(self) -> int:
        return self.cache.snapshot_load(self.snapshot_path)

    def save_snapshot(self) -> bool:
        """best-effort; never raises."""
        return self.cache.snapshot_save(self.snapshot_path)

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """save the cache snapshot when the process is asked to stop."""
        loop = loop or asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # windows event loops don't support signal handlers
                logger.debug("cannot install handler for %s", sig)

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("received %s, saving word cache", sig.name)
        self.save_snapshot()
        for task in asyncio.all_tasks():
            if task is not asyncio.current_task():
                task.cancel()

    async def __aenter__(self) -> GameService:
        self.load_snapshot()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.save_snapshot()
