"""
game sessions: one active game per chat, advanced one move at a time.

a session owns its chain and the constraints for the next move. the player's
word is validated by the engine, appended, then the machine answers under the
variant's machine-side constraints and the session moves on to the next
round. nothing here touches a transport; every call returns a `TurnResult`
the transport can render.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Hashable
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

from .config import Config, DEFAULT_CONFIG
from .constraints import ConstraintEngine, Constraints
from .dictionary import WordInfo
from .errors import KotosumeError, MoveRejected, NoMatch, NoValidWord
from .variants import VARIANTS, Params, Variant, get_variant

logger = logging.getLogger(__name__)


class Turn(Enum):
    HUMAN = "human"
    MACHINE = "machine"


class SessionState(Enum):
    ACTIVE = "active"
    FINISHED = "finished"


class TurnOutcome(Enum):
    STARTED = "started"
    ACCEPTED = "accepted"  # player's word taken, machine answered
    SKIPPED = "skipped"  # machine played for the player, then answered
    REJECTED = "rejected"  # retry prompt, nothing changed
    HUMAN_WINS = "human_wins"  # machine found no valid answer
    COMPLETED = "completed"  # variant's terminal condition reached
    STOPPED = "stopped"
    FAILED = "failed"  # game could not be started


FINAL_OUTCOMES = frozenset({
    TurnOutcome.HUMAN_WINS,
    TurnOutcome.COMPLETED,
    TurnOutcome.STOPPED,
    TurnOutcome.FAILED,
})


@dataclass
class TurnResult:
    """what happened on one call into a session."""

    outcome: TurnOutcome
    message: str
    human: WordInfo | None = None
    machine: WordInfo | None = None
    error: KotosumeError | None = None
    constraints: Constraints | None = None

    @property
    def finished(self) -> bool:
        return self.outcome in FINAL_OUTCOMES


class Score(NamedTuple):
    player: int
    machine: int
    words: tuple[str, ...]

    def summary(self) -> str:
        return (
            f"You: {self.player} words\n"
            f"Bot: {self.machine} words\n\n"
            f"Words played: {', '.join(self.words)}"
        )


@dataclass
class GameSession:
    """
    state machine for one game.

    Start -> Active (open) -> Active (each accepted round) -> finished on
    stop, on the machine running out of answers, or on the variant's
    terminal condition.
    """

    variant: Variant
    engine: ConstraintEngine
    config: Config = field(default_factory=Config)
    rng: random.Random = field(default_factory=random.Random)
    chain: list[WordInfo] = field(default_factory=list)
    constraints: Constraints = field(default_factory=Constraints)
    turn: Turn = Turn.MACHINE
    state: SessionState = SessionState.ACTIVE
    params: Params | None = None
    player_moves: int = 0
    machine_moves: int = 0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def __post_init__(self):
        if self.params is None:
            self.params = self.variant.make_params(self.config, self.rng)

    def __str__(self) -> str:
        if self.state is SessionState.FINISHED:
            return "No active game"
        return (
            f"{self.variant.title} - Next: {self.constraints.describe()}, "
            f"Chain length: {len(self.chain)}"
        )

    @property
    def active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def last_word(self) -> str | None:
        return self.chain[-1].word if self.chain else None

    def _attempts(self) -> int:
        return self.variant.attempts(self.config)

    def _finish(self) -> None:
        self.state = SessionState.FINISHED

    def _inactive(self) -> TurnResult:
        return TurnResult(TurnOutcome.REJECTED, "There's no active game. Use /start to choose a game.")

    def _stopped_midway(self) -> TurnResult:
        # stop() doesn't wait for the lock, so a move can outlive its game
        return TurnResult(TurnOutcome.STOPPED, "This game was stopped.")

    # -------------------------------------------------------------------------
    # transitions
    # -------------------------------------------------------------------------

    async def open(self) -> TurnResult:
        """
        play the machine's opening word.

        raises:
            NoValidWord: no starter word could be picked and resolved
        """
        async with self._lock:
            accept = None
            if self.params.rhyme:
                phonetics = self.engine.phonetics
                accept = lambda w: phonetics is not None and w in phonetics

            starter = await self.engine.random_move(
                [],
                self.variant.starter_constraints(self.params),
                attempts=self.config.start_attempts,
                rng=self.rng,
                min_zipf=self.config.starter_min_zipf,
                accept=accept,
            )

            self.chain.append(starter)
            self.machine_moves += 1
            self.constraints = self.variant.next_constraints(starter.word, self.params)
            self.turn = Turn.HUMAN
            logger.info("%s started with word: %s", self.variant.title, starter.word)

            intro = self.variant.intro
            if self.params.forbidden:
                intro += f" Avoid: {', '.join(sorted(self.params.forbidden))}"
            return TurnResult(
                TurnOutcome.STARTED,
                f"{intro}\nFirst word: {starter.word}\nNow give {self.constraints.describe()}",
                machine=starter,
                constraints=self.constraints,
            )

    async def apply(self, text: str) -> TurnResult:
        """validate the player's word and, if accepted, answer it."""
        async with self._lock:
            if not self.active:
                return self._inactive()

            try:
                info = await self.engine.validate_move(text, self.chain, self.constraints)
            except MoveRejected as e:
                logger.info("rejected '%s' in %s: %s", text, self.variant.key, e)
                return TurnResult(TurnOutcome.REJECTED, str(e), error=e, constraints=self.constraints)

            if not self.active:
                return self._stopped_midway()
            return await self._play_round(info, TurnOutcome.ACCEPTED)

    async def skip(self) -> TurnResult:
        """the machine plays the player's move, then its own."""
        async with self._lock:
            if not self.active:
                return self._inactive()

            try:
                info = await self.engine.random_move(
                    self.chain,
                    self.constraints,
                    attempts=self._attempts(),
                    rng=self.rng,
                    min_zipf=self.config.starter_min_zipf,
                )
            except NoValidWord as e:
                self._finish()
                return TurnResult(
                    TurnOutcome.STOPPED,
                    "I can't think of a word either! Let's end this game.",
                    error=e,
                )

            if not self.active:
                return self._stopped_midway()
            return await self._play_round(info, TurnOutcome.SKIPPED)

    async def _play_round(self, human: WordInfo, outcome: TurnOutcome) -> TurnResult:
        self.chain.append(human)
        self.player_moves += 1
        self.turn = Turn.MACHINE

        if self.variant.is_terminal(self.params):
            self._finish()
            return TurnResult(
                TurnOutcome.COMPLETED,
                f"Congratulations! You've reached the maximum length of "
                f"{self.params.max_length} letters!",
                human=human,
            )

        machine_constraints = self.variant.next_constraints(human.word, self.params, machine=True)
        try:
            reply = await self.engine.select_response(
                human.word, self.chain, machine_constraints, attempts=self._attempts()
            )
        except NoValidWord as e:
            if not self.active:
                return self._stopped_midway()
            logger.info("no answer to '%s' in %s: %s", human.word, self.variant.key, e)
            self._finish()
            return TurnResult(
                TurnOutcome.HUMAN_WINS,
                "I can't think of a word that meets the criteria! You win this round!",
                human=human,
                error=e,
            )

        if not self.active:
            return self._stopped_midway()

        self.chain.append(reply)
        self.machine_moves += 1
        self.params = self.variant.advance(self.params)
        self.constraints = self.variant.next_constraints(reply.word, self.params)
        self.turn = Turn.HUMAN

        lead = f"Your word: {human.word}\n" if outcome is TurnOutcome.SKIPPED else ""
        return TurnResult(
            outcome,
            f"{lead}My word: {reply.word}\nNow give {self.constraints.describe()}",
            human=human,
            machine=reply,
            constraints=self.constraints,
        )

    def stop(self) -> TurnResult:
        self._finish()
        return TurnResult(
            TurnOutcome.STOPPED,
            f"Game finished! Final score:\n{self.score().summary()}\n\n"
            f"{self.variant.title} game stopped. Thanks for playing!",
        )

    # -------------------------------------------------------------------------
    # read-only helpers
    # -------------------------------------------------------------------------

    def hint(self) -> str:
        try:
            word = self.engine.suggest(
                self.chain, self.constraints, self.rng, self.config.starter_min_zipf
            )
        except NoMatch:
            return f"I can't think of a hint right now. Just try {self.constraints.describe()}."
        return f"Hint: You could try a word like '{word}' or something similar."

    def score(self) -> Score:
        return Score(
            player=self.player_moves,
            machine=self.machine_moves,
            words=tuple(w.word for w in self.chain),
        )

    def rules(self) -> str:
        return self.variant.rules


class SessionManager:
    """
    chat id -> active session.

    finished sessions are dropped, which puts the chat back in Start.
    """

    def __init__(
        self,
        engine: ConstraintEngine,
        config: Config = DEFAULT_CONFIG,
        rng: random.Random | None = None,
    ):
        self.engine = engine
        self.config = config
        self.rng = rng or random.Random()
        self._sessions: dict[Hashable, GameSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, chat_id: Hashable) -> GameSession | None:
        return self._sessions.get(chat_id)

    def _settle(self, chat_id: Hashable, session: GameSession, result: TurnResult) -> TurnResult:
        # a stopped game may already have been replaced by a new one
        if result.finished and self._sessions.get(chat_id) is session:
            self._sessions.pop(chat_id)
        return result

    async def start(self, chat_id: Hashable, key: str) -> TurnResult:
        """
        start the `key` variant in a chat.

        raises KeyError for an unknown variant key.
        """
        if chat_id in self._sessions:
            return TurnResult(
                TurnOutcome.REJECTED,
                "Please stop this game first with /stop to use this command.",
            )

        variant = get_variant(key)
        logger.info("starting %s for chat %s", variant.title, chat_id)
        session = GameSession(
            variant=variant,
            engine=self.engine,
            config=self.config,
            rng=random.Random(self.rng.random()),
        )

        try:
            result = await session.open()
        except NoValidWord as e:
            logger.error("failed to start %s for chat %s: %s", variant.key, chat_id, e)
            return TurnResult(
                TurnOutcome.FAILED,
                "Sorry, I'm having trouble starting the game. Please try again later.",
                error=e,
            )

        self._sessions[chat_id] = session
        return result

    async def start_random(self, chat_id: Hashable) -> TurnResult:
        key = self.rng.choice(sorted(VARIANTS))
        return await self.start(chat_id, key)

    async def apply(self, chat_id: Hashable, text: str) -> TurnResult:
        session = self._sessions.get(chat_id)
        if session is None:
            return TurnResult(TurnOutcome.REJECTED, "There's no active game. Use /start to choose a game.")
        return self._settle(chat_id, session, await session.apply(text))

    async def skip(self, chat_id: Hashable) -> TurnResult:
        session = self._sessions.get(chat_id)
        if session is None:
            return TurnResult(TurnOutcome.REJECTED, "There's no active game. Use /start to choose a game.")
        return self._settle(chat_id, session, await session.skip())

    def stop(self, chat_id: Hashable) -> TurnResult:
        session = self._sessions.pop(chat_id, None)
        if session is None:
            return TurnResult(
                TurnOutcome.REJECTED,
                "There's no active game to stop. Use /start to choose a game.",
            )
        return session.stop()

    def hint(self, chat_id: Hashable) -> str:
        session = self._sessions.get(chat_id)
        if session is None:
            return "You need to start a game first before using the hint command."
        return session.hint()

    def score(self, chat_id: Hashable) -> Score | None:
        session = self._sessions.get(chat_id)
        return session.score() if session is not None else None
