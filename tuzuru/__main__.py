"""Entry point for the Tuzuru CLI.

This module serves as the main entry point when running the tuzuru package directly.
"""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
