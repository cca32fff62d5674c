"""Main entry point for the shelfshare package."""

from shelfshare.cli import app


if __name__ == "__main__":
    app()
