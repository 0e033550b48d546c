"""
In-memory state of one shell run.

Only the dispatcher mutates a SessionState, always from the thread running
the loop. Scores follow a stage-then-submit protocol: `score` stages a
value on the current exercise and the next `next` submits it before moving
on.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .commands import MAX_SCORE, MIN_SCORE
from .errors import InvalidScore, NoCurrentExercise, NoLibraryOpen
from .models import ExerciseView, FilterSpec
from .scheduler import Library


@dataclass
class SessionState:
    """Mutable state that the scheduler library does not own."""

    library: Optional[Library] = None
    library_path: Optional[Path] = None
    current_exercise: Optional[ExerciseView] = None
    staged_score: Optional[int] = None
    active_filter: Optional[FilterSpec] = None

    # Read-only view of the background mantra counter.
    mantra_source: Optional[Callable[[], int]] = field(default=None, repr=False, compare=False)

    @property
    def mantra_count(self) -> int:
        if self.mantra_source is None:
            return 0
        return self.mantra_source()

    def require_library(self) -> Library:
        if self.library is None:
            raise NoLibraryOpen()
        return self.library

    def require_exercise(self) -> ExerciseView:
        if self.current_exercise is None:
            raise NoCurrentExercise()
        return self.current_exercise

    def stage_score(self, value: int) -> ExerciseView:
        """Stage a score for the current exercise. Replaces any staged score."""
        exercise = self.require_exercise()
        if not MIN_SCORE <= value <= MAX_SCORE:
            raise InvalidScore(value, MIN_SCORE, MAX_SCORE)
        self.staged_score = value
        return exercise

    def advance(self, exercise: Optional[ExerciseView]) -> None:
        """Move to `exercise` (None when nothing is left) and drop the staged score."""
        self.current_exercise = exercise
        self.staged_score = None

    def reset(self, library: Library, path: Path) -> None:
        """Switch to a newly opened library."""
        self.library = library
        self.library_path = path
        self.current_exercise = None
        self.staged_score = None
        self.active_filter = None

    def invariants_hold(self) -> bool:
        if self.staged_score is not None and self.current_exercise is None:
            return False
        if self.current_exercise is not None and self.library is None:
            return False
        return True
