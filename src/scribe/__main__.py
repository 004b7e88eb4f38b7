"""Main entry point for the Scribe CLI.

Usage:
    python -m scribe --help
    scribe --help  # If installed via pip/uv
"""

from scribe.cli import main

if __name__ == "__main__":
    main()
