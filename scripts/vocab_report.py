#!/usr/bin/env python3
"""
report the most common playable words in the embedding vocab, per letter.

starter words and hints are drawn from words above `starter_min_zipf`, so a
letter with few of them makes for a thin game.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from kotosume.config import Config
from kotosume.embeddings import EmbeddingIndex
from kotosume.filters import score_vocab


def main():
    parser = argparse.ArgumentParser(description="common playable words per letter")
    parser.add_argument("--top", type=int, default=10, help="words to show per letter")
    parser.add_argument("--min-zipf", type=float, default=None, help="zipf threshold (default: config)")
    parser.add_argument("--data-dir", type=Path, default=None, help="data directory")

    args = parser.parse_args()

    config = Config.from_env(**({"data_dir": args.data_dir} if args.data_dir else {}))
    min_zipf = args.min_zipf if args.min_zipf is not None else config.starter_min_zipf

    print(f"loading embeddings from {config.embeddings_path}...")
    index = EmbeddingIndex.load(config.embeddings_path, expected_dim=config.embed_dim)
    print(f"vocab size: {len(index):,}")
    print()

    total = 0
    for letter in index.letters():
        scored = score_vocab(index.bucket(letter), min_zipf=min_zipf)
        if not scored:
            continue
        total += len(scored)
        top = ", ".join(f"{s.word} ({s.zipf:.1f})" for s in scored[: args.top])
        print(f"{letter}: {len(scored):>6,}  {top}")

    print()
    print(f"{total:,} words at zipf >= {min_zipf}")


if __name__ == "__main__":
    main()
