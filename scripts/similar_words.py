#!/usr/bin/env python3
"""
show the nearest neighbours of a word among words starting with a letter.

handy for checking why the machine answered what it did.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from kotosume.config import Config
from kotosume.embeddings import EmbeddingIndex


def main():
    parser = argparse.ArgumentParser(description="nearest neighbours of a word in one bucket")
    parser.add_argument("--word", type=str, required=True, help="reference word")
    parser.add_argument("--letter", type=str, default=None, help="starting letter (default: last letter of word)")
    parser.add_argument("--top", type=int, default=20, help="number of words to show")
    parser.add_argument("--data-dir", type=Path, default=None, help="data directory")

    args = parser.parse_args()

    config = Config.from_env(**({"data_dir": args.data_dir} if args.data_dir else {}))
    word = args.word.lower().strip()
    letter = (args.letter or word[-1:]).lower()

    print(f"loading embeddings from {config.embeddings_path}...")
    index = EmbeddingIndex.load(config.embeddings_path, expected_dim=config.embed_dim)

    if word not in index:
        print(f"'{word}' not found in embeddings")
        sys.exit(1)

    scored = sorted(
        ((index.similarity(word, w), w) for w in index.bucket(letter) if w != word),
        key=lambda pair: pair[0],
        reverse=True,
    )

    print(f"top {args.top} words starting with '{letter}' closest to '{word}':")
    print()
    print(f"{'rank':>6}  {'sim':>7}  word")
    print("-" * 30)
    for rank, (sim, w) in enumerate(scored[: args.top], 1):
        print(f"{rank:>6}  {sim:>7.4f}  {w}")


if __name__ == "__main__":
    main()
