"""
Unit tests for SessionState.

Run: pytest tests/unit/test_session.py -v
"""

from pathlib import Path

import pytest

from cadence.errors import DispatchError, InvalidScore, NoCurrentExercise, NoLibraryOpen
from cadence.models import SavedFilterRef
from cadence.session import SessionState


class TestRequirements:
    def test_fresh_state_is_empty(self, state):
        assert state.library is None
        assert state.current_exercise is None
        assert state.staged_score is None
        assert state.active_filter is None
        assert state.invariants_hold()

    def test_require_library(self, state, library):
        with pytest.raises(NoLibraryOpen):
            state.require_library()
        state.reset(library, Path("lib"))
        assert state.require_library() is library

    def test_require_exercise(self, state, exercises):
        with pytest.raises(NoCurrentExercise):
            state.require_exercise()
        state.current_exercise = exercises[0]
        assert state.require_exercise() == exercises[0]


class TestScoreStaging:
    def test_stage_requires_exercise(self, state):
        with pytest.raises(NoCurrentExercise):
            state.stage_score(3)
        assert state.staged_score is None

    def test_stage_replaces_previous(self, state, library, exercises):
        state.reset(library, Path("lib"))
        state.advance(exercises[0])
        state.stage_score(2)
        state.stage_score(5)
        assert state.staged_score == 5

    @pytest.mark.parametrize("value", [0, 6, -3])
    def test_stage_rejects_out_of_range(self, state, library, exercises, value):
        state.reset(library, Path("lib"))
        state.advance(exercises[0])
        with pytest.raises(InvalidScore) as exc_info:
            state.stage_score(value)
        assert isinstance(exc_info.value, DispatchError)
        assert exc_info.value.value == value
        assert state.staged_score is None

    def test_advance_clears_staged_score(self, state, library, exercises):
        state.reset(library, Path("lib"))
        state.advance(exercises[0])
        state.stage_score(4)
        state.advance(exercises[1])
        assert state.current_exercise == exercises[1]
        assert state.staged_score is None
        assert state.invariants_hold()

    def test_advance_to_nothing(self, state, library, exercises):
        state.reset(library, Path("lib"))
        state.advance(exercises[0])
        state.advance(None)
        assert state.current_exercise is None
        assert state.invariants_hold()


class TestReset:
    def test_reset_clears_session(self, state, library, make_library, exercises):
        state.reset(library, Path("lib"))
        state.advance(exercises[0])
        state.stage_score(3)
        state.active_filter = SavedFilterRef("scales")

        other = make_library()
        state.reset(other, Path("other"))
        assert state.library is other
        assert state.library_path == Path("other")
        assert state.current_exercise is None
        assert state.staged_score is None
        assert state.active_filter is None

    def test_invariant_detects_orphan_score(self, state):
        state.staged_score = 3
        assert not state.invariants_hold()


class TestMantraCount:
    def test_without_source(self, state):
        assert state.mantra_count == 0

    def test_reads_source_each_time(self):
        counts = iter([3, 7])
        state = SessionState(mantra_source=lambda: next(counts))
        assert state.mantra_count == 3
        assert state.mantra_count == 7
