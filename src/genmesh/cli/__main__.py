"""CLI entry point for genmesh.cli module.

Enables execution via: python -m genmesh.cli
"""

from genmesh.cli.generate import main

if __name__ == "__main__":
    raise SystemExit(main())
