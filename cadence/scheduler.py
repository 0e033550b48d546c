"""
Interface to the scheduler library.

The shell never selects exercises or stores history itself. It talks to a
scheduler backend through the two protocols below:

- SchedulerBackend: opens a course library on disk
- Library: an opened course library (exercise selection, scores,
  blacklist, review list, filters, unit lookups)

Backends are discovered from an import path ("package.module:attr"), or from
the `cadence.schedulers` entry point group when no path is configured.
"""

from __future__ import annotations

from collections.abc import Sequence
from importlib import import_module
from importlib.metadata import entry_points
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from loguru import logger

from .models import (
    Content,
    ExerciseView,
    FilterSpec,
    ListKind,
    SavedFilter,
    Scope,
    ScoreRecord,
    UnitKind,
)

ENTRY_POINT_GROUP = "cadence.schedulers"


# =============================================================================
# Errors raised by backends
# =============================================================================


class SchedulerError(Exception):
    """Raised by a scheduler backend when it rejects a request."""


class NotFoundError(SchedulerError):
    """Raised when a unit, saved filter or other identifier is unknown."""

    def __init__(self, what: str, identifier: str):
        super().__init__(f"no {what} with ID {identifier}")
        self.what = what
        self.identifier = identifier


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class Library(Protocol):
    """An opened course library."""

    def next_exercise(self, unit_filter: Optional[FilterSpec]) -> Optional[ExerciseView]:
        """Return the next exercise, or None when nothing is eligible."""
        ...

    def submit_score(self, exercise_id: str, score: int) -> None: ...

    def get_instructions(self, scope: Scope) -> Optional[Content]: ...

    def get_material(self, scope: Scope) -> Optional[Content]: ...

    def get_answer(self, exercise_id: str) -> Optional[Content]: ...

    def blacklist_add(self, unit_id: str) -> None: ...

    def blacklist_remove(self, unit_id: str) -> None: ...

    def blacklist_list(self) -> Sequence[str]: ...

    def review_list_add(self, unit_id: str) -> None: ...

    def review_list_remove(self, unit_id: str) -> None: ...

    def review_list_list(self) -> Sequence[str]: ...

    def set_filter(self, unit_filter: FilterSpec) -> None: ...

    def clear_filter(self) -> None: ...

    def list_saved_filters(self) -> Sequence[SavedFilter]: ...

    def scores(self, exercise_id: str, num_scores: int) -> Sequence[ScoreRecord]: ...

    def list_units(
        self,
        kind: ListKind,
        unit_id: Optional[str] = None,
        unit_filter: Optional[FilterSpec] = None,
    ) -> Sequence[str]: ...

    def unit_type(self, unit_id: str) -> Optional[UnitKind]: ...

    def search(self, terms: Sequence[str]) -> Sequence[str]: ...


@runtime_checkable
class SchedulerBackend(Protocol):
    """Entry point of a scheduler library."""

    def open_library(self, path: Path) -> Library: ...


class UnavailableBackend:
    """Placeholder used when no scheduler library is installed."""

    def open_library(self, path: Path) -> Library:
        raise SchedulerError(
            "no scheduler backend is installed; set CADENCE_SCHEDULER_BACKEND "
            f"or install a package providing the '{ENTRY_POINT_GROUP}' entry point"
        )


# =============================================================================
# Discovery
# =============================================================================


def _instantiate(target: object) -> SchedulerBackend:
    """Backends may be exported as instances, classes or factories."""
    backend = target
    if isinstance(target, type) or (callable(target) and not hasattr(target, "open_library")):
        backend = target()
    if not isinstance(backend, SchedulerBackend):
        raise TypeError(f"{target!r} does not provide open_library()")
    return backend


def import_backend(path: str) -> SchedulerBackend:
    """Import a backend from `package.module:attr`."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"invalid backend path '{path}' (expected package.module:attr)")
    module = import_module(module_name)
    target = module
    for part in attr.split("."):
        target = getattr(target, part)
    return _instantiate(target)


def load_backend(path: Optional[str] = None) -> SchedulerBackend:
    """
    Resolve the scheduler backend to use.

    Args:
        path: Explicit import path. Takes precedence over entry points.

    Returns:
        The configured backend, the first installed entry point, or an
        UnavailableBackend when nothing is installed.
    """
    if path:
        logger.debug(f"Loading scheduler backend from {path}")
        return import_backend(path)

    candidates = sorted(entry_points(group=ENTRY_POINT_GROUP), key=lambda ep: ep.name)
    if candidates:
        chosen = candidates[0]
        if len(candidates) > 1:
            logger.warning(
                f"Several scheduler backends installed, using '{chosen.name}' "
                f"(others: {', '.join(ep.name for ep in candidates[1:])})"
            )
        logger.debug(f"Loading scheduler backend from entry point {chosen.name}")
        return _instantiate(chosen.load())

    logger.debug("No scheduler backend installed")
    return UnavailableBackend()
