"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests,
including an in-memory scheduler library standing in for a real backend.
"""
import io
import sys
from datetime import datetime
from pathlib import Path

import pytest
from rich.console import Console

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from cadence.models import (  # noqa: E402
    Content,
    ContentFormat,
    ExerciseView,
    ListKind,
    SavedFilter,
    SavedFilterRef,
    ScoreRecord,
    UnitKind,
)
from cadence.scheduler import NotFoundError, SchedulerError  # noqa: E402
from cadence.session import SessionState  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for the cadence command")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ============================================================================
# In-memory scheduler library
# ============================================================================

_KIND_FOR_LIST = {
    ListKind.COURSES: UnitKind.COURSE,
    ListKind.MATCHING_COURSES: UnitKind.COURSE,
    ListKind.LESSONS: UnitKind.LESSON,
    ListKind.MATCHING_LESSONS: UnitKind.LESSON,
    ListKind.EXERCISES: UnitKind.EXERCISE,
}


def make_exercise(course: str, lesson: str, name: str, prompt: str) -> ExerciseView:
    lesson_id = f"{course}::{lesson}"
    return ExerciseView(
        id=f"{lesson_id}::{name}",
        lesson_id=lesson_id,
        course_id=course,
        prompt=Content(prompt, ContentFormat.TEXT),
    )


class FakeLibrary:
    """Records every call and serves exercises from a queue."""

    def __init__(self, exercises=()):
        self.queue = list(exercises)
        self.units = {}
        for exercise in self.queue:
            self.units[exercise.course_id] = UnitKind.COURSE
            self.units[exercise.lesson_id] = UnitKind.LESSON
            self.units[exercise.id] = UnitKind.EXERCISE

        self.submitted = []
        self.next_requests = []
        self.list_requests = []
        self.blacklist = []
        self.review_list = []
        self.active_filter = None
        self.filter_cleared = 0
        self.saved_filters = [SavedFilter("scales", "Only scale exercises")]
        self.answers = {}
        self.instructions = {}
        self.material = {}
        self.score_history = {}

        self.fail_submit = None
        self.fail_next = None

    def next_exercise(self, unit_filter):
        self.next_requests.append(unit_filter)
        if self.fail_next is not None:
            raise self.fail_next
        return self.queue.pop(0) if self.queue else None

    def submit_score(self, exercise_id, score):
        if self.fail_submit is not None:
            raise self.fail_submit
        self.submitted.append((exercise_id, score))

    def get_instructions(self, scope):
        return self.instructions.get((scope.kind, scope.unit_id))

    def get_material(self, scope):
        return self.material.get((scope.kind, scope.unit_id))

    def get_answer(self, exercise_id):
        return self.answers.get(exercise_id)

    def blacklist_add(self, unit_id):
        self.blacklist.append(unit_id)

    def blacklist_remove(self, unit_id):
        if unit_id not in self.blacklist:
            raise NotFoundError("blacklist entry", unit_id)
        self.blacklist.remove(unit_id)

    def blacklist_list(self):
        return list(self.blacklist)

    def review_list_add(self, unit_id):
        self.review_list.append(unit_id)

    def review_list_remove(self, unit_id):
        if unit_id in self.review_list:
            self.review_list.remove(unit_id)

    def review_list_list(self):
        return list(self.review_list)

    def set_filter(self, unit_filter):
        if isinstance(unit_filter, SavedFilterRef):
            if unit_filter.filter_id not in {saved.id for saved in self.saved_filters}:
                raise NotFoundError("saved filter", unit_filter.filter_id)
        self.active_filter = unit_filter

    def clear_filter(self):
        self.active_filter = None
        self.filter_cleared += 1

    def list_saved_filters(self):
        return list(self.saved_filters)

    def scores(self, exercise_id, num_scores):
        return self.score_history.get(exercise_id, [])[:num_scores]

    def list_units(self, kind, unit_id=None, unit_filter=None):
        self.list_requests.append((kind, unit_id, unit_filter))
        wanted = _KIND_FOR_LIST.get(kind)
        units = [uid for uid, unit_kind in self.units.items() if unit_kind is wanted]
        if unit_id and kind in (ListKind.LESSONS, ListKind.EXERCISES, ListKind.MATCHING_LESSONS):
            units = [uid for uid in units if uid.startswith(unit_id + "::")]
        return sorted(units)

    def unit_type(self, unit_id):
        return self.units.get(unit_id)

    def search(self, terms):
        return sorted(uid for uid in self.units if any(term in uid for term in terms))


class FakeBackend:
    """Opens FakeLibrary instances by path."""

    def __init__(self, libraries=None):
        self.libraries = dict(libraries or {})
        self.opened = []

    def open_library(self, path):
        self.opened.append(path)
        library = self.libraries.get(str(path))
        if library is None:
            raise SchedulerError(f"{path} is not a course library")
        if isinstance(library, Exception):
            raise library
        return library


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def exercises():
    """Two exercises from the same lesson."""
    return [
        make_exercise("music", "scales", "c_major", "Play a C major scale"),
        make_exercise("music", "scales", "g_major", "Play a G major scale"),
    ]


@pytest.fixture
def library(exercises):
    """In-memory library serving the sample exercises."""
    lib = FakeLibrary(exercises)
    lib.answers[exercises[0].id] = Content("C D E F G A B C", ContentFormat.TEXT)
    lib.instructions[(UnitKind.LESSON, "music::scales")] = Content("Use a metronome.", ContentFormat.TEXT)
    lib.material[(UnitKind.COURSE, "music")] = Content("Circle of fifths chart", ContentFormat.TEXT)
    lib.score_history[exercises[0].id] = [
        ScoreRecord(4, datetime(2024, 3, 1, 9, 30)),
        ScoreRecord(2, datetime(2024, 2, 28, 18, 0)),
    ]
    return lib


@pytest.fixture
def backend(library):
    """Backend where `lib` opens the sample library."""
    return FakeBackend({"lib": library})


@pytest.fixture
def state():
    """Fresh session state."""
    return SessionState()


@pytest.fixture
def output():
    """Buffer capturing everything printed to the test console."""
    return io.StringIO()


@pytest.fixture
def console(output):
    """Rich console without colors writing into `output`."""
    return Console(file=output, width=100, color_system=None, force_terminal=False)


@pytest.fixture
def make_library():
    """Factory for extra in-memory libraries."""
    return FakeLibrary


@pytest.fixture
def make_backend():
    """Factory for extra in-memory backends."""
    return FakeBackend
