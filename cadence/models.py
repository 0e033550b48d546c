"""
Value types exchanged between the shell and the scheduler library.

These are plain frozen dataclasses so they can be compared in tests and
passed across the scheduler boundary without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union

# =============================================================================
# Enums
# =============================================================================


class UnitKind(str, Enum):
    """Level of a unit in the course hierarchy."""

    COURSE = "course"
    LESSON = "lesson"
    EXERCISE = "exercise"

    def __str__(self) -> str:
        return self.value.capitalize()


class FilterOp(str, Enum):
    """How the pairs of a metadata filter are combined."""

    ALL = "all"
    ANY = "any"


class ListKind(str, Enum):
    """What the `list` command enumerates."""

    COURSES = "courses"
    LESSONS = "lessons"
    EXERCISES = "exercises"
    DEPENDENCIES = "dependencies"
    DEPENDENTS = "dependents"
    MATCHING_COURSES = "matching-courses"
    MATCHING_LESSONS = "matching-lessons"

    @property
    def uses_filter(self) -> bool:
        return self in (ListKind.MATCHING_COURSES, ListKind.MATCHING_LESSONS)


class ContentFormat(str, Enum):
    MARKDOWN = "markdown"
    TEXT = "text"


# =============================================================================
# Metadata pairs and scopes
# =============================================================================


@dataclass(frozen=True)
class KeyValue:
    """A `key:value` pair used to filter on course or lesson metadata."""

    key: str
    value: str

    @classmethod
    def parse(cls, raw: str) -> "KeyValue":
        """Parse `key:value`. Both sides must be non-empty."""
        parts = raw.strip().split(":")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValueError(f"invalid key-value pair '{raw}' (expected key:value)")
        return cls(key=parts[0], value=parts[1])

    def __str__(self) -> str:
        return f"{self.key}:{self.value}"


@dataclass(frozen=True)
class Scope:
    """A course or lesson whose instructions or material are requested.

    An empty `unit_id` stands for the course or lesson of the current
    exercise and is resolved by the dispatcher.
    """

    kind: UnitKind
    unit_id: str = ""

    @property
    def is_current(self) -> bool:
        return not self.unit_id


# =============================================================================
# Filters
# =============================================================================


@dataclass(frozen=True)
class MetadataFilter:
    """Only select exercises whose course and/or lesson metadata match."""

    course_metadata: tuple[KeyValue, ...] = ()
    lesson_metadata: tuple[KeyValue, ...] = ()
    op: FilterOp = FilterOp.ALL


@dataclass(frozen=True)
class SavedFilterRef:
    """A filter stored by the scheduler library and resolved by its ID."""

    filter_id: str


@dataclass(frozen=True)
class CourseFilter:
    course_ids: tuple[str, ...]


@dataclass(frozen=True)
class LessonFilter:
    lesson_ids: tuple[str, ...]


@dataclass(frozen=True)
class ReviewListFilter:
    """Only select exercises from units in the review list."""


FilterSpec = Union[MetadataFilter, SavedFilterRef, CourseFilter, LessonFilter, ReviewListFilter]


# =============================================================================
# Scheduler results
# =============================================================================


@dataclass(frozen=True)
class Content:
    """A piece of course content: a prompt, an answer, instructions or material."""

    body: str
    format: ContentFormat = ContentFormat.MARKDOWN


@dataclass(frozen=True)
class ExerciseView:
    """Identity and prompt of an exercise handed out by the scheduler."""

    id: str
    lesson_id: str
    course_id: str
    prompt: Content = field(default_factory=lambda: Content(""))

    def unit_id(self, kind: UnitKind) -> str:
        """Return the ID of this exercise, its lesson, or its course."""
        if kind is UnitKind.COURSE:
            return self.course_id
        if kind is UnitKind.LESSON:
            return self.lesson_id
        return self.id


@dataclass(frozen=True)
class ScoreRecord:
    score: int
    timestamp: datetime


@dataclass(frozen=True)
class SavedFilter:
    id: str
    description: str = ""
