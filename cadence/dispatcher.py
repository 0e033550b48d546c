"""
Command dispatcher.

`dispatch` runs one parsed command against the session state and the
scheduler backend and returns a render-ready result. Handlers are
registered per command type with `@handles`.

Errors raised by the scheduler library are translated at this boundary:
NotFoundError becomes NotFound, any other SchedulerError becomes
SchedulerRejected. State is only changed after the scheduler accepted a
request.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from loguru import logger

from . import commands
from .commands import EntryAction
from .errors import DispatchError, LibraryOpenFailed, NotFound, SchedulerRejected
from .grammar import help_text
from .models import (
    CourseFilter,
    FilterSpec,
    LessonFilter,
    ListKind,
    MetadataFilter,
    ReviewListFilter,
    SavedFilterRef,
    Scope,
    UnitKind,
)
from .results import (
    AnswerItem,
    ContentItem,
    ExerciseItem,
    Farewell,
    FilterItem,
    HelpItem,
    MantraCountItem,
    Message,
    NothingToDo,
    RenderItem,
    SavedFilterList,
    ScoreHistory,
    UnitList,
)
from .scheduler import Library, NotFoundError, SchedulerBackend, SchedulerError
from .session import SessionState

Handler = Callable[..., RenderItem]
_HANDLERS: dict[type, Handler] = {}


def handles(command_type: type) -> Callable[[Handler], Handler]:
    def register(handler: Handler) -> Handler:
        _HANDLERS[command_type] = handler
        return handler

    return register


@contextmanager
def scheduler_errors() -> Iterator[None]:
    """Translate scheduler library errors into dispatch errors."""
    try:
        yield
    except NotFoundError as exc:
        raise NotFound(str(exc), exc) from exc
    except SchedulerError as exc:
        raise SchedulerRejected(exc) from exc


def dispatch(
    command: commands.Command,
    state: SessionState,
    scheduler: SchedulerBackend,
) -> RenderItem:
    """
    Execute a command.

    Args:
        command: A command produced by the grammar.
        state: The session state, mutated in place.
        scheduler: The backend used to open course libraries.

    Returns:
        The result to render.

    Raises:
        DispatchError: If the command cannot be carried out.
    """
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"no handler for {type(command).__name__}")
    logger.debug(f"Dispatching {command!r}")
    return handler(command, state, scheduler)


# =============================================================================
# Helpers
# =============================================================================


def _unit_exists(library: Library, unit_id: str) -> None:
    with scheduler_errors():
        unit_type = library.unit_type(unit_id)
    if unit_type is None:
        raise NotFound(f"unit {unit_id} does not exist")


def _check_unit_types(library: Library, unit_ids: tuple[str, ...], expected: UnitKind) -> None:
    for unit_id in unit_ids:
        with scheduler_errors():
            unit_type = library.unit_type(unit_id)
        if unit_type is not expected:
            raise NotFound(f"unit with ID {unit_id} is not a {expected.value}")


def _resolve_scope(state: SessionState, scope: Scope) -> Scope:
    if not scope.is_current:
        return scope
    exercise = state.require_exercise()
    return Scope(scope.kind, exercise.unit_id(scope.kind))


def _unit_types(library: Library, unit_ids: tuple[str, ...]) -> dict[str, Optional[UnitKind]]:
    with scheduler_errors():
        return {unit_id: library.unit_type(unit_id) for unit_id in unit_ids}


def submit_staged_score(state: SessionState, library: Library) -> Optional[str]:
    """Submit the staged score, if any. Leaves state untouched on failure.

    Returns the ID of the exercise that was scored.
    """
    if state.staged_score is None:
        return None
    exercise = state.require_exercise()
    with scheduler_errors():
        library.submit_score(exercise.id, state.staged_score)
    logger.info(f"Submitted score {state.staged_score} for exercise {exercise.id}")
    state.staged_score = None
    return exercise.id


def flush_staged_score(state: SessionState) -> None:
    """Submit a pending score on exit. Failures are logged, not raised."""
    if state.library is None or state.staged_score is None:
        return
    try:
        submit_staged_score(state, state.library)
    except DispatchError as exc:
        logger.warning(f"Could not submit the staged score on exit: {exc.cause or exc}")


# =============================================================================
# Library and exercise flow
# =============================================================================


@handles(commands.OpenLibrary)
def _open_library(cmd: commands.OpenLibrary, state: SessionState, scheduler: SchedulerBackend):
    path = Path(cmd.path).expanduser()
    try:
        library = scheduler.open_library(path)
    except (SchedulerError, OSError) as exc:
        raise LibraryOpenFailed(str(path), exc) from exc

    text = f"Successfully opened course library at {cmd.path}"
    if state.library is not None and state.staged_score is not None:
        previous = state.require_exercise().id
        try:
            submit_staged_score(state, state.library)
        except DispatchError as exc:
            logger.warning(f"Staged score for {previous} was not submitted: {exc.cause or exc}")
            text += f" (the staged score for {previous} could not be submitted: {exc.cause or exc})"

    state.reset(library, path)
    logger.info(f"Opened course library at {path}")
    return Message(text)


@handles(commands.Next)
def _next(cmd: commands.Next, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    # A failed submission aborts before anything changes.
    submit_staged_score(state, library)

    with scheduler_errors():
        exercise = library.next_exercise(state.active_filter)
    state.advance(exercise)
    if exercise is None:
        return NothingToDo()
    return ExerciseItem(exercise)


@handles(commands.Score)
def _score(cmd: commands.Score, state: SessionState, scheduler: SchedulerBackend):
    state.require_library()
    state.stage_score(cmd.value)
    return Message(f"Recorded mastery score {cmd.value} for current exercise")


@handles(commands.Current)
def _current(cmd: commands.Current, state: SessionState, scheduler: SchedulerBackend):
    state.require_library()
    return ExerciseItem(state.require_exercise())


@handles(commands.Answer)
def _answer(cmd: commands.Answer, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    exercise = state.require_exercise()
    with scheduler_errors():
        content = library.get_answer(exercise.id)
    return AnswerItem(exercise, content)


@handles(commands.Instructions)
def _instructions(cmd: commands.Instructions, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    scope = _resolve_scope(state, cmd.scope)
    with scheduler_errors():
        content = library.get_instructions(scope)
    label = str(scope.kind)
    return ContentItem(
        title=f"{label} instructions for {scope.unit_id}",
        content=content,
        missing=f"{label} has no instructions",
    )


@handles(commands.Material)
def _material(cmd: commands.Material, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    scope = _resolve_scope(state, cmd.scope)
    with scheduler_errors():
        content = library.get_material(scope)
    label = str(scope.kind)
    return ContentItem(
        title=f"{label} material for {scope.unit_id}",
        content=content,
        missing=f"{label} has no material",
    )


# =============================================================================
# Blacklist and review list
# =============================================================================


@handles(commands.Blacklist)
def _blacklist(cmd: commands.Blacklist, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()

    if cmd.action is EntryAction.SHOW:
        with scheduler_errors():
            entries = tuple(library.blacklist_list())
        return UnitList("Blacklist", entries, "No entries in the blacklist", _unit_types(library, entries))

    if cmd.action is EntryAction.REMOVE:
        with scheduler_errors():
            library.blacklist_remove(cmd.unit_id)
        return Message(f"Removed {cmd.unit_id} from the blacklist")

    if cmd.current is not None:
        unit_id = state.require_exercise().unit_id(cmd.current)
    else:
        unit_id = cmd.unit_id
        _unit_exists(library, unit_id)
    with scheduler_errors():
        library.blacklist_add(unit_id)
    return Message(f"Added unit {unit_id} to the blacklist")


@handles(commands.ReviewList)
def _review_list(cmd: commands.ReviewList, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()

    if cmd.action is EntryAction.SHOW:
        with scheduler_errors():
            entries = tuple(library.review_list_list())
        return UnitList("Review list", entries, "No entries in the review list", _unit_types(library, entries))

    if cmd.action is EntryAction.REMOVE:
        with scheduler_errors():
            library.review_list_remove(cmd.unit_id)
        return Message(f"Removed unit {cmd.unit_id} from the review list")

    _unit_exists(library, cmd.unit_id)
    with scheduler_errors():
        library.review_list_add(cmd.unit_id)
    return Message(f"Added unit {cmd.unit_id} to the review list")


# =============================================================================
# Filters
# =============================================================================


def _apply_filter(state: SessionState, library: Library, unit_filter: FilterSpec) -> None:
    with scheduler_errors():
        library.set_filter(unit_filter)
    state.active_filter = unit_filter
    logger.debug(f"Active filter is now {unit_filter!r}")


@handles(commands.FilterMetadata)
def _filter_metadata(cmd: commands.FilterMetadata, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    unit_filter = MetadataFilter(
        course_metadata=cmd.course_metadata,
        lesson_metadata=cmd.lesson_metadata,
        op=cmd.op,
    )
    _apply_filter(state, library, unit_filter)
    return Message("Set the unit filter to only show exercises with the given metadata")


@handles(commands.FilterCourses)
def _filter_courses(cmd: commands.FilterCourses, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    _check_unit_types(library, cmd.course_ids, UnitKind.COURSE)
    _apply_filter(state, library, CourseFilter(cmd.course_ids))
    return Message(f"Set the unit filter to only show exercises from the courses {', '.join(cmd.course_ids)}")


@handles(commands.FilterLessons)
def _filter_lessons(cmd: commands.FilterLessons, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    _check_unit_types(library, cmd.lesson_ids, UnitKind.LESSON)
    _apply_filter(state, library, LessonFilter(cmd.lesson_ids))
    return Message(f"Set the unit filter to only show exercises from the lessons {', '.join(cmd.lesson_ids)}")


@handles(commands.FilterReviewList)
def _filter_review_list(cmd: commands.FilterReviewList, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    _apply_filter(state, library, ReviewListFilter())
    return Message("Set the unit filter to only show exercises in the review list")


@handles(commands.FilterSetSaved)
def _filter_set_saved(cmd: commands.FilterSetSaved, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    _apply_filter(state, library, SavedFilterRef(cmd.filter_id))
    return Message(f"Set the unit filter to the saved filter with ID {cmd.filter_id}")


@handles(commands.FilterListSaved)
def _filter_list_saved(cmd: commands.FilterListSaved, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    with scheduler_errors():
        saved = tuple(library.list_saved_filters())
    return SavedFilterList(saved)


@handles(commands.FilterClear)
def _filter_clear(cmd: commands.FilterClear, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    with scheduler_errors():
        library.clear_filter()
    state.active_filter = None
    return Message("Cleared the unit filter")


@handles(commands.FilterShow)
def _filter_show(cmd: commands.FilterShow, state: SessionState, scheduler: SchedulerBackend):
    return FilterItem(state.active_filter)


# =============================================================================
# Queries
# =============================================================================

_LIST_TITLES = {
    ListKind.COURSES: ("Courses", "No courses in library"),
    ListKind.LESSONS: ("Lessons", "No lessons in course {unit_id}"),
    ListKind.EXERCISES: ("Exercises", "No exercises in lesson {unit_id}"),
    ListKind.DEPENDENCIES: ("Dependencies", "No dependencies for unit with ID {unit_id}"),
    ListKind.DEPENDENTS: ("Dependents", "No dependents for unit with ID {unit_id}"),
    ListKind.MATCHING_COURSES: ("Matching courses", "No matching courses"),
    ListKind.MATCHING_LESSONS: ("Matching lessons", "No matching lessons in course {unit_id}"),
}


@handles(commands.List)
def _list(cmd: commands.List, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()

    if cmd.kind in (ListKind.DEPENDENCIES, ListKind.DEPENDENTS):
        _unit_exists(library, cmd.unit_id)
        with scheduler_errors():
            is_exercise = library.unit_type(cmd.unit_id) is UnitKind.EXERCISE
        if is_exercise:
            raise NotFound(f"exercises do not have {cmd.kind.value}")

    unit_filter = state.active_filter if cmd.kind.uses_filter else None
    with scheduler_errors():
        unit_ids = tuple(library.list_units(cmd.kind, cmd.unit_id or None, unit_filter))

    title, empty = _LIST_TITLES[cmd.kind]
    unit_types = {} if cmd.kind.uses_filter else _unit_types(library, unit_ids)
    return UnitList(title, unit_ids, empty.format(unit_id=cmd.unit_id), unit_types)


@handles(commands.Scores)
def _scores(cmd: commands.Scores, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    exercise_id = cmd.unit_id or state.require_exercise().id
    with scheduler_errors():
        unit_type = library.unit_type(exercise_id)
    if unit_type is not UnitKind.EXERCISE:
        raise NotFound(f"unit with ID {exercise_id} is not a valid exercise")
    with scheduler_errors():
        records = tuple(library.scores(exercise_id, cmd.num_scores))
    return ScoreHistory(exercise_id, records)


@handles(commands.Search)
def _search(cmd: commands.Search, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    with scheduler_errors():
        unit_ids = tuple(library.search(cmd.terms))
    return UnitList("Search results", unit_ids, "No results found", _unit_types(library, unit_ids))


@handles(commands.UnitType)
def _unit_type(cmd: commands.UnitType, state: SessionState, scheduler: SchedulerBackend):
    library = state.require_library()
    with scheduler_errors():
        unit_type = library.unit_type(cmd.unit_id)
    if unit_type is None:
        raise NotFound(f"missing type for unit with ID {cmd.unit_id}")
    return Message(f"The type of the unit with ID {cmd.unit_id} is {unit_type}")


@handles(commands.MantraCount)
def _mantra_count(cmd: commands.MantraCount, state: SessionState, scheduler: SchedulerBackend):
    return MantraCountItem(state.mantra_count)


@handles(commands.Help)
def _help(cmd: commands.Help, state: SessionState, scheduler: SchedulerBackend):
    return HelpItem(help_text(cmd.topic))


@handles(commands.Quit)
def _quit(cmd: commands.Quit, state: SessionState, scheduler: SchedulerBackend):
    return Farewell()
