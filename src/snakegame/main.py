"""Executable entrypoint for the snake game."""

from __future__ import annotations

from pathlib import Path
import logging

from .game import SnakeGame


def main() -> None:
    """Launch the game."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root = Path(__file__).resolve().parents[2]
    SnakeGame(root=root).run()


if __name__ == "__main__":
    main()
