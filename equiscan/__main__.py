"""Run the equiscan CLI with ``python -m equiscan``."""

from equiscan.cli import app

if __name__ == "__main__":
    app()
