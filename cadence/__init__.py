"""
Cadence: an interactive shell for a spaced-repetition exercise scheduler.

Components:
- grammar: Command parsing (typer/click command tree)
- SessionState: Current exercise, staged score and active filter
- dispatcher: Executes commands against the scheduler library
- renderer: Rich output for results and errors
- Repl: The read-eval-print loop
- MantraCounter: Background recitation counter
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
