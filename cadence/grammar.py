"""
Command grammar of the shell.

The grammar is a typer application. Each command callback builds and
returns a `cadence.commands` value instead of acting, so parsing a line is
running the converted click group with `standalone_mode=False` and keeping
its return value.

Click expects the program name as token zero. `inject_program_name` adds it
so users type `next` rather than `cadence next`; typing it anyway is
accepted.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from functools import lru_cache
from typing import List, Optional

import click
import typer

from . import commands
from .commands import EntryAction
from .errors import ParseError
from .models import FilterOp, KeyValue, ListKind, Scope, UnitKind

PROGRAM_NAME = "cadence"
HELP_FLAGS = ("--help", "-h")
COMMENT_PREFIX = "#"

# Options that take one or more values, keyed by command path.
MULTI_VALUE_OPTIONS = {
    ("filter", "metadata"): frozenset({"--course-metadata", "-c", "--lesson-metadata", "-l"}),
}


def _typer(help_text: str) -> typer.Typer:
    return typer.Typer(
        help=help_text,
        add_completion=False,
        rich_markup_mode=None,
        no_args_is_help=False,
    )


app = _typer("Practice shell for a spaced-repetition scheduler.")

blacklist_app = _typer("Subcommands to manipulate the unit blacklist")
debug_app = _typer("Subcommands for debugging the course library")
filter_app = _typer("Subcommands for dealing with unit filters")
instructions_app = _typer("Subcommands for showing course and lesson instructions")
list_app = _typer("Subcommands for listing course, lesson, and exercise IDs")
material_app = _typer("Subcommands for showing course and lesson materials")
review_list_app = _typer("Subcommands for manipulating the review list")

app.add_typer(blacklist_app, name="blacklist")
app.add_typer(debug_app, name="debug")
app.add_typer(filter_app, name="filter")
app.add_typer(instructions_app, name="instructions")
app.add_typer(list_app, name="list")
app.add_typer(material_app, name="material")
app.add_typer(review_list_app, name="review-list")


# =============================================================================
# Top-level commands
# =============================================================================


@app.command("answer", help="Show the answer to the current exercise, if it exists")
def _answer():
    return commands.Answer()


@app.command("current", help="Display the current exercise")
def _current():
    return commands.Current()


@app.command("help", help="Show help for the shell or for the given command")
def _help(
    topic: Optional[List[str]] = typer.Argument(None, help="The command to describe"),
):
    return commands.Help(topic=tuple(topic or ()))


@app.command(
    "mantra-count",
    help="Show the number of mantras recited in the background during the current session",
)
def _mantra_count():
    return commands.MantraCount()


@app.command("next", help="Submit the score for the current exercise and proceed to the next")
def _next():
    return commands.Next()


@app.command("open", help="Open the course library at the given location")
def _open(
    library_path: str = typer.Argument(..., help="The path to the course library"),
):
    return commands.OpenLibrary(path=library_path)


@app.command("quit", help="Exit the shell")
def _quit():
    return commands.Quit()


app.command("exit", hidden=True)(_quit)


@app.command("score", help="Record the mastery score (1-5) for the current exercise")
def _score(
    score: int = typer.Argument(
        ...,
        min=commands.MIN_SCORE,
        max=commands.MAX_SCORE,
        help="The mastery score (1-5) for the current exercise",
    ),
):
    return commands.Score(value=score)


@app.command("scores", help="Show the most recent scores for the given exercise")
def _scores(
    exercise_id: str = typer.Argument("", help="The ID of the exercise (defaults to the current one)"),
    num_scores: int = typer.Argument(
        commands.DEFAULT_NUM_SCORES, min=1, help="The number of scores to show"
    ),
):
    return commands.Scores(unit_id=exercise_id, num_scores=num_scores)


@app.command("search", help="Search for courses, lessons, and exercises")
def _search(
    terms: List[str] = typer.Argument(..., help="The search query"),
):
    return commands.Search(terms=tuple(terms))


# =============================================================================
# blacklist
# =============================================================================


@blacklist_app.command("add", help="Add the given unit to the blacklist")
def _blacklist_add(unit_id: str = typer.Argument(..., help="The ID of the unit")):
    return commands.Blacklist(action=EntryAction.ADD, unit_id=unit_id)


@blacklist_app.command("course", help="Add the current exercise's course to the blacklist")
def _blacklist_course():
    return commands.Blacklist(action=EntryAction.ADD, current=UnitKind.COURSE)


@blacklist_app.command("exercise", help="Add the current exercise to the blacklist")
def _blacklist_exercise():
    return commands.Blacklist(action=EntryAction.ADD, current=UnitKind.EXERCISE)


@blacklist_app.command("lesson", help="Add the current exercise's lesson to the blacklist")
def _blacklist_lesson():
    return commands.Blacklist(action=EntryAction.ADD, current=UnitKind.LESSON)


@blacklist_app.command("remove", help="Remove unit from the blacklist")
def _blacklist_remove(
    unit_id: str = typer.Argument(..., help="The unit to remove from the blacklist"),
):
    return commands.Blacklist(action=EntryAction.REMOVE, unit_id=unit_id)


@blacklist_app.command("show", help="Show the units currently in the blacklist")
def _blacklist_show():
    return commands.Blacklist(action=EntryAction.SHOW)


# =============================================================================
# debug
# =============================================================================


@debug_app.command("unit-type", help="Print the type of the unit with the given ID")
def _debug_unit_type(unit_id: str = typer.Argument(..., help="The ID of the unit")):
    return commands.UnitType(unit_id=unit_id)


# =============================================================================
# filter
# =============================================================================


@filter_app.command("clear", help="Clear the unit filter if any has been set")
def _filter_clear():
    return commands.FilterClear()


@filter_app.command("course", help="Only show exercises from the given courses")
def _filter_course(ids: List[str] = typer.Argument(..., help="The IDs of the courses")):
    return commands.FilterCourses(course_ids=tuple(ids))


@filter_app.command("lesson", help="Only show exercises from the given lessons")
def _filter_lesson(ids: List[str] = typer.Argument(..., help="The IDs of the lessons")):
    return commands.FilterLessons(lesson_ids=tuple(ids))


@filter_app.command("list", help="List the saved unit filters")
def _filter_list():
    return commands.FilterListSaved()


def _pairs(ctx: typer.Context, option: str, values: Optional[List[str]]) -> tuple[KeyValue, ...]:
    try:
        return tuple(KeyValue.parse(value) for value in values or ())
    except ValueError as exc:
        raise typer.BadParameter(str(exc), ctx=ctx, param_hint=f"'{option}'") from exc


@filter_app.command("metadata", help="Only show exercises with the given metadata")
def _filter_metadata(
    ctx: typer.Context,
    course_metadata: Optional[List[str]] = typer.Option(
        None,
        "--course-metadata",
        "-c",
        help="Course metadata pairs (key:value) to filter on",
    ),
    lesson_metadata: Optional[List[str]] = typer.Option(
        None,
        "--lesson-metadata",
        "-l",
        help="Lesson metadata pairs (key:value) to filter on",
    ),
    match_all: bool = typer.Option(
        False, "--all", help="Include units which match all of the pairs (default)"
    ),
    match_any: bool = typer.Option(
        False, "--any", help="Include units which match any of the pairs"
    ),
):
    if match_all and match_any:
        raise click.UsageError("--all and --any cannot be used together", ctx=ctx)
    course_pairs = _pairs(ctx, "--course-metadata", course_metadata)
    lesson_pairs = _pairs(ctx, "--lesson-metadata", lesson_metadata)
    if not course_pairs and not lesson_pairs:
        raise click.UsageError(
            "at least one of --course-metadata or --lesson-metadata is required", ctx=ctx
        )
    return commands.FilterMetadata(
        course_metadata=course_pairs,
        lesson_metadata=lesson_pairs,
        op=FilterOp.ANY if match_any else FilterOp.ALL,
    )


@filter_app.command("review-list", help="Only show exercises from the units in the review list")
def _filter_review_list():
    return commands.FilterReviewList()


@filter_app.command("set", help="Set the unit filter to the saved filter with the given ID")
def _filter_set(filter_id: str = typer.Argument(..., help="The ID of the saved filter")):
    return commands.FilterSetSaved(filter_id=filter_id)


@filter_app.command("show", help="Show the current unit filter")
def _filter_show():
    return commands.FilterShow()


# =============================================================================
# instructions / material
# =============================================================================


@instructions_app.command(
    "course", help="Show the instructions for the given course (or the current course)"
)
def _instructions_course(course_id: str = typer.Argument("", help="The ID of the course")):
    return commands.Instructions(scope=Scope(UnitKind.COURSE, course_id))


@instructions_app.command(
    "lesson", help="Show the instructions for the given lesson (or the current lesson)"
)
def _instructions_lesson(lesson_id: str = typer.Argument("", help="The ID of the lesson")):
    return commands.Instructions(scope=Scope(UnitKind.LESSON, lesson_id))


@material_app.command(
    "course", help="Show the material for the given course (or the current course)"
)
def _material_course(course_id: str = typer.Argument("", help="The ID of the course")):
    return commands.Material(scope=Scope(UnitKind.COURSE, course_id))


@material_app.command(
    "lesson", help="Show the material for the given lesson (or the current lesson)"
)
def _material_lesson(lesson_id: str = typer.Argument("", help="The ID of the lesson")):
    return commands.Material(scope=Scope(UnitKind.LESSON, lesson_id))


# =============================================================================
# list
# =============================================================================


@list_app.command("courses", help="Show the IDs of all courses in the library")
def _list_courses():
    return commands.List(kind=ListKind.COURSES)


@list_app.command("dependencies", help="Show the dependencies of the given unit")
def _list_dependencies(unit_id: str = typer.Argument(..., help="The ID of the unit")):
    return commands.List(kind=ListKind.DEPENDENCIES, unit_id=unit_id)


@list_app.command("dependents", help="Show the dependents of the given unit")
def _list_dependents(unit_id: str = typer.Argument(..., help="The ID of the unit")):
    return commands.List(kind=ListKind.DEPENDENTS, unit_id=unit_id)


@list_app.command("exercises", help="Show the IDs of all exercises in the given lesson")
def _list_exercises(lesson_id: str = typer.Argument(..., help="The ID of the lesson")):
    return commands.List(kind=ListKind.EXERCISES, unit_id=lesson_id)


@list_app.command("lessons", help="Show the IDs of all lessons in the given course")
def _list_lessons(course_id: str = typer.Argument(..., help="The ID of the course")):
    return commands.List(kind=ListKind.LESSONS, unit_id=course_id)


@list_app.command("matching-courses", help="Show the courses which match the current filter")
def _list_matching_courses():
    return commands.List(kind=ListKind.MATCHING_COURSES)


@list_app.command(
    "matching-lessons", help="Show the lessons in the given course which match the current filter"
)
def _list_matching_lessons(course_id: str = typer.Argument(..., help="The ID of the course")):
    return commands.List(kind=ListKind.MATCHING_LESSONS, unit_id=course_id)


# =============================================================================
# review-list
# =============================================================================


@review_list_app.command("add", help="Add the given unit to the review list")
def _review_list_add(unit_id: str = typer.Argument(..., help="The ID of the unit")):
    return commands.ReviewList(action=EntryAction.ADD, unit_id=unit_id)


@review_list_app.command("remove", help="Remove the given unit from the review list")
def _review_list_remove(unit_id: str = typer.Argument(..., help="The ID of the unit")):
    return commands.ReviewList(action=EntryAction.REMOVE, unit_id=unit_id)


@review_list_app.command("show", help="Show all the units in the review list")
def _review_list_show():
    return commands.ReviewList(action=EntryAction.SHOW)


# =============================================================================
# Parsing
# =============================================================================


@lru_cache(maxsize=1)
def _root_command() -> click.Group:
    command = typer.main.get_command(app)
    if not isinstance(command, click.Group):
        # typer 0.26 and later bundle their own click; parse() relies on the public one.
        raise TypeError(
            f"typer {typer.__version__} built a {type(command).__module__}."
            f"{type(command).__name__}, not a click.Group; install typer<0.26"
        )
    return command


def inject_program_name(tokens: Sequence[str]) -> list[str]:
    """Return `tokens` with the program name as token zero.

    Lines that already start with the program name are returned unchanged,
    so applying this twice is the same as applying it once.
    """
    if tokens and tokens[0] == PROGRAM_NAME:
        return list(tokens)
    return [PROGRAM_NAME, *tokens]


def expand_multi_value_options(args: Sequence[str]) -> list[str]:
    """Repeat a multi-value flag before each extra value that follows it.

    `filter metadata -c a:b c:d` becomes `filter metadata -c a:b -c c:d`,
    which click parses as a repeated option.
    """
    flags = MULTI_VALUE_OPTIONS.get(tuple(args[:2]))
    if not flags:
        return list(args)

    expanded = list(args[:2])
    current: Optional[str] = None
    has_value = False
    for token in args[2:]:
        if token.startswith("-"):
            name, sep, _ = token.partition("=")
            current = name if name in flags else None
            has_value = bool(sep)
        elif current is not None:
            if has_value:
                expanded.append(current)
            has_value = True
        expanded.append(token)
    return expanded


def _command_path(topic: Sequence[str]) -> tuple[click.Command, click.Context]:
    """Resolve a command path like ("filter", "metadata") to its click command."""
    command: click.Command = _root_command()
    ctx = command.make_context(PROGRAM_NAME, [], resilient_parsing=True)
    for name in topic:
        if not isinstance(command, click.Group):
            raise ParseError(f"'{ctx.command_path}' has no subcommand '{name}'", ctx.get_usage())
        sub = command.get_command(ctx, name)
        if sub is None:
            raise ParseError(f"No such command '{name}'.", ctx.get_usage())
        command = sub
        ctx = command.make_context(name, [], parent=ctx, resilient_parsing=True)
    return command, ctx


def _help_topic(args: Sequence[str]) -> tuple[str, ...]:
    """Leading command names typed before a help flag."""
    topic: list[str] = []
    command: click.Command = _root_command()
    ctx = command.make_context(PROGRAM_NAME, [], resilient_parsing=True)
    for token in args:
        if token.startswith("-") or not isinstance(command, click.Group):
            break
        sub = command.get_command(ctx, token)
        if sub is None:
            raise ParseError(f"No such command '{token}'.", ctx.get_usage())
        topic.append(token)
        command = sub
        ctx = command.make_context(token, [], parent=ctx, resilient_parsing=True)
    return tuple(topic)


def help_text(topic: Sequence[str] = ()) -> str:
    """Return the help page of the shell or of a (nested) command."""
    command, ctx = _command_path(topic)
    return command.get_help(ctx)


def _from_click_error(exc: click.ClickException) -> ParseError:
    ctx = getattr(exc, "ctx", None)
    usage = ctx.get_usage() if ctx is not None else ""
    return ParseError(exc.format_message(), usage)


def parse(raw_line: str) -> Optional[commands.Command]:
    """
    Parse one line of input.

    Args:
        raw_line: The line as typed by the user.

    Returns:
        The parsed command, or None for blank lines and comments.

    Raises:
        ParseError: If the line is not a valid command.
    """
    line = raw_line.strip()
    if not line or line.startswith(COMMENT_PREFIX):
        return None

    try:
        tokens = shlex.split(line)
    except ValueError as exc:
        raise ParseError(f"cannot split input: {exc}") from exc

    args = inject_program_name(tokens)[1:]
    if not args:
        return commands.Help()
    if any(token in HELP_FLAGS for token in args):
        return commands.Help(topic=_help_topic(args))

    try:
        result = _root_command().main(
            args=expand_multi_value_options(args),
            prog_name=PROGRAM_NAME,
            standalone_mode=False,
        )
    except click.ClickException as exc:
        raise _from_click_error(exc) from exc

    if not isinstance(result, commands.COMMAND_TYPES):
        raise ParseError(f"incomplete command: {line}", _command_path(())[1].get_usage())
    if isinstance(result, commands.Help):
        _command_path(result.topic)
    return result
