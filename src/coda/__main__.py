"""Allow ``python -m coda``."""

from coda.cli import app

if __name__ == "__main__":
    app()
