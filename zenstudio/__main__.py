"""Module entrypoint for running Zen Studio as ``python -m zenstudio``."""

from __future__ import annotations

from zenstudio.cli import main


if __name__ == "__main__":
    main()
