"""
Package entry point.

Allows running the tools via:

    python -m coursecatalog

This simply forwards execution to coursecatalog.cli.main().
"""

from coursecatalog.cli import main

if __name__ == "__main__":
    main()
