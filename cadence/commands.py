"""
Commands understood by the shell.

Every command is a frozen dataclass produced by `cadence.grammar.parse`.
Syntax (score range, scopes, key:value pairs) is already checked when a
command exists; whether it can run in the current session is checked by the
dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .models import FilterOp, KeyValue, ListKind, Scope, UnitKind

MIN_SCORE = 1
MAX_SCORE = 5
DEFAULT_NUM_SCORES = 25


class EntryAction(str, Enum):
    """Sub-operation on the blacklist or the review list."""

    ADD = "add"
    REMOVE = "remove"
    SHOW = "show"


# =============================================================================
# Session commands
# =============================================================================


@dataclass(frozen=True)
class OpenLibrary:
    path: str


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Score:
    value: int


@dataclass(frozen=True)
class Current:
    pass


@dataclass(frozen=True)
class Answer:
    pass


@dataclass(frozen=True)
class Instructions:
    scope: Scope


@dataclass(frozen=True)
class Material:
    scope: Scope


# =============================================================================
# Filters
# =============================================================================


@dataclass(frozen=True)
class FilterMetadata:
    course_metadata: tuple[KeyValue, ...] = ()
    lesson_metadata: tuple[KeyValue, ...] = ()
    op: FilterOp = FilterOp.ALL


@dataclass(frozen=True)
class FilterCourses:
    course_ids: tuple[str, ...]


@dataclass(frozen=True)
class FilterLessons:
    lesson_ids: tuple[str, ...]


@dataclass(frozen=True)
class FilterReviewList:
    pass


@dataclass(frozen=True)
class FilterSetSaved:
    filter_id: str


@dataclass(frozen=True)
class FilterListSaved:
    pass


@dataclass(frozen=True)
class FilterClear:
    pass


@dataclass(frozen=True)
class FilterShow:
    pass


# =============================================================================
# Blacklist and review list
# =============================================================================


@dataclass(frozen=True)
class Blacklist:
    """Blacklist sub-command.

    `add` takes either an explicit `unit_id` or `current`, the level of the
    current exercise's hierarchy to blacklist.
    """

    action: EntryAction
    unit_id: str = ""
    current: Optional[UnitKind] = None


@dataclass(frozen=True)
class ReviewList:
    action: EntryAction
    unit_id: str = ""


# =============================================================================
# Queries
# =============================================================================


@dataclass(frozen=True)
class List:
    kind: ListKind
    unit_id: str = ""


@dataclass(frozen=True)
class Scores:
    unit_id: str = ""
    num_scores: int = DEFAULT_NUM_SCORES


@dataclass(frozen=True)
class Search:
    terms: tuple[str, ...]


@dataclass(frozen=True)
class UnitType:
    """Debug query for the kind of a unit."""

    unit_id: str


@dataclass(frozen=True)
class MantraCount:
    pass


@dataclass(frozen=True)
class Help:
    topic: tuple[str, ...] = ()


@dataclass(frozen=True)
class Quit:
    pass


Command = Union[
    OpenLibrary,
    Next,
    Score,
    Current,
    Answer,
    Instructions,
    Material,
    FilterMetadata,
    FilterCourses,
    FilterLessons,
    FilterReviewList,
    FilterSetSaved,
    FilterListSaved,
    FilterClear,
    FilterShow,
    Blacklist,
    ReviewList,
    List,
    Scores,
    Search,
    UnitType,
    MantraCount,
    Help,
    Quit,
]

COMMAND_TYPES: tuple[type, ...] = Command.__args__  # type: ignore[attr-defined]
