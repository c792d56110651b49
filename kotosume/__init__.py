"""
kotosume word-game engine

embedding-backed word chain games: a shared vector index, a cached
dictionary, a constraint engine and per-chat game sessions.
"""

from .config import Config, DEFAULT_CONFIG
from .constraints import ConstraintEngine, Constraints
from .dictionary import MerriamWebsterResolver, StaticResolver, WordCache, WordInfo
from .embeddings import EmbeddingIndex
from .phonetics import PhoneticDictionary
from .service import GameService
from .session import GameSession, SessionManager, TurnOutcome, TurnResult
from .variants import VARIANTS, get_variant

__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "ConstraintEngine",
    "Constraints",
    "MerriamWebsterResolver",
    "StaticResolver",
    "WordCache",
    "WordInfo",
    "EmbeddingIndex",
    "PhoneticDictionary",
    "GameService",
    "GameSession",
    "SessionManager",
    "TurnOutcome",
    "TurnResult",
    "VARIANTS",
    "get_variant",
]
