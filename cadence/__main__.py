"""
Entry point for running Cadence as a module.

Usage:
    python -m cadence
    python -m cadence --library ./courses
    python -m cadence --help
"""
from .cli import main

if __name__ == "__main__":
    main()
