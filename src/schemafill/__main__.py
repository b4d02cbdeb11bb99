"""CLI entry point.

Usage:
    python -m schemafill module:Target
    python -m schemafill module:Target --check
    python -m schemafill module:Target --json
"""

from .cli import run

if __name__ == "__main__":
    run()
