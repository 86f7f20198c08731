"""Allows execution via ``python -m kpfeed``."""

from kpfeed.cli import app

if __name__ == "__main__":
    app()
