#!/usr/bin/env python3
"""
play the word games in a terminal.

one local "chat" talks to the same SessionManager a bot transport would use.
type a word to play it, or one of:

    /start [game]   start a game (random if no game given)
    /games          list the games
    /rules          rules of the current game
    /hint /skip /score /stop
    /quit           save the word cache and exit
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from kotosume.config import Config
from kotosume.errors import EmbeddingLoadError
from kotosume.service import GameService
from kotosume.variants import VARIANTS

CHAT_ID = "console"


async def handle(service: GameService, line: str) -> bool:
    """run one input line; returns False when the player wants to quit."""
    sessions = service.sessions
    command, _, arg = line.partition(" ")
    arg = arg.strip()

    if command == "/quit":
        return False

    if command == "/games":
        for key, variant in VARIANTS.items():
            print(f"  {key:<18} {variant.title}")
    elif command == "/start":
        try:
            result = await (sessions.start(CHAT_ID, arg) if arg else sessions.start_random(CHAT_ID))
        except KeyError as e:
            print(e.args[0])
            return True
        print(result.message)
    elif command == "/rules":
        session = sessions.get(CHAT_ID)
        print(session.rules() if session else "No active game")
    elif command == "/hint":
        print(sessions.hint(CHAT_ID))
    elif command == "/skip":
        print((await sessions.skip(CHAT_ID)).message)
    elif command == "/score":
        score = sessions.score(CHAT_ID)
        print(score.summary() if score else "No active game")
    elif command == "/stop":
        print(sessions.stop(CHAT_ID).message)
    elif command.startswith("/"):
        print(f"unknown command {command}")
    else:
        print((await sessions.apply(CHAT_ID, line)).message)

    return True


async def run(config: Config) -> None:
    service = GameService.from_config(config)
    async with service:
        service.install_signal_handlers()
        print(f"loaded {len(service.index):,} words, {len(service.cache):,} cached definitions")
        print("type /start to begin, /games to list games, /quit to exit")

        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            line = line.strip()
            if line and not await handle(service, line):
                break


def main():
    parser = argparse.ArgumentParser(description="play kotosume word games in the terminal")
    parser.add_argument("--data-dir", type=Path, default=None, help="data directory")
    parser.add_argument("--embeddings", type=str, default=None, help="embeddings filename")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    if args.embeddings is not None:
        overrides["embeddings_file"] = args.embeddings
    config = Config.from_env(**overrides)

    try:
        asyncio.run(run(config))
    except EmbeddingLoadError as e:
        print(f"error: {e}")
        sys.exit(1)
    except asyncio.CancelledError:
        pass


if __name__ == "__main__":
    main()
