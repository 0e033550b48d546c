"""Render-ready results returned by the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .models import Content, ExerciseView, FilterSpec, SavedFilter, ScoreRecord, UnitKind


@dataclass(frozen=True)
class Message:
    """A one-line confirmation."""

    text: str


@dataclass(frozen=True)
class ExerciseItem:
    exercise: ExerciseView


@dataclass(frozen=True)
class AnswerItem:
    exercise: ExerciseView
    content: Optional[Content]


@dataclass(frozen=True)
class ContentItem:
    """Instructions or material of a course or lesson."""

    title: str
    content: Optional[Content]
    missing: str


@dataclass(frozen=True)
class NothingToDo:
    pass


@dataclass(frozen=True)
class UnitList:
    title: str
    unit_ids: tuple[str, ...]
    empty: str
    unit_types: dict[str, Optional[UnitKind]] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SavedFilterList:
    filters: tuple[SavedFilter, ...]


@dataclass(frozen=True)
class FilterItem:
    unit_filter: Optional[FilterSpec]


@dataclass(frozen=True)
class ScoreHistory:
    exercise_id: str
    records: tuple[ScoreRecord, ...]


@dataclass(frozen=True)
class MantraCountItem:
    count: int


@dataclass(frozen=True)
class HelpItem:
    text: str


@dataclass(frozen=True)
class Farewell:
    pass


RenderItem = Union[
    Message,
    ExerciseItem,
    AnswerItem,
    ContentItem,
    NothingToDo,
    UnitList,
    SavedFilterList,
    FilterItem,
    ScoreHistory,
    MantraCountItem,
    HelpItem,
    Farewell,
]
