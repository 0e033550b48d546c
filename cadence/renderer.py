"""
Terminal rendering for dispatcher results and errors.

Everything here is pure: results go in, rich renderables come out, and the
REPL decides where to print them. Text coming from the scheduler library is
wrapped in `Text` or `Markdown` so it is never parsed as rich markup.
"""

from __future__ import annotations

from functools import singledispatch

from rich.console import Group, RenderableType
from rich.markdown import Markdown
from rich.table import Table
from rich.text import Text

from .errors import ParseError, ShellError
from .models import (
    Content,
    ContentFormat,
    CourseFilter,
    ExerciseView,
    LessonFilter,
    MetadataFilter,
    ReviewListFilter,
    SavedFilterRef,
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
    SavedFilterList,
    ScoreHistory,
    UnitList,
)

STYLES = {
    "error": "bold red",
    "header": "bold cyan",
    "dim": "dim",
    "success": "green",
}


# =============================================================================
# Building blocks
# =============================================================================


def render_content(content: Content) -> RenderableType:
    if content.format is ContentFormat.MARKDOWN:
        return Markdown(content.body)
    return Text(content.body)


def exercise_header(exercise: ExerciseView) -> Text:
    """The three identity lines shared by exercises and answers."""
    return Text(
        "\n".join(
            (
                f"Course ID: {exercise.course_id}",
                f"Lesson ID: {exercise.lesson_id}",
                f"Exercise ID: {exercise.id}",
            )
        )
    )


def describe_filter(unit_filter) -> str:
    if isinstance(unit_filter, MetadataFilter):
        parts = []
        if unit_filter.course_metadata:
            parts.append("course metadata " + ", ".join(map(str, unit_filter.course_metadata)))
        if unit_filter.lesson_metadata:
            parts.append("lesson metadata " + ", ".join(map(str, unit_filter.lesson_metadata)))
        return f"Metadata filter ({unit_filter.op.value}): " + "; ".join(parts)
    if isinstance(unit_filter, SavedFilterRef):
        return f"Saved filter: {unit_filter.filter_id}"
    if isinstance(unit_filter, CourseFilter):
        return "Courses: " + ", ".join(unit_filter.course_ids)
    if isinstance(unit_filter, LessonFilter):
        return "Lessons: " + ", ".join(unit_filter.lesson_ids)
    if isinstance(unit_filter, ReviewListFilter):
        return "Review list"
    return repr(unit_filter)


# =============================================================================
# Results
# =============================================================================


@singledispatch
def render(item) -> RenderableType:
    """Return the renderable for a dispatcher result."""
    raise TypeError(f"cannot render {type(item).__name__}")


@render.register
def _(item: Message) -> RenderableType:
    return Text(item.text)


@render.register
def _(item: ExerciseItem) -> RenderableType:
    return Group(exercise_header(item.exercise), Text(""), render_content(item.exercise.prompt))


@render.register
def _(item: AnswerItem) -> RenderableType:
    header = exercise_header(item.exercise)
    if item.content is None:
        return Group(header, Text(""), Text("Exercise has no answer", style=STYLES["dim"]))
    return Group(header, Text("Answer:"), Text(""), render_content(item.content))


@render.register
def _(item: ContentItem) -> RenderableType:
    if item.content is None:
        return Text(item.missing, style=STYLES["dim"])
    return Group(Text(item.title, style=STYLES["header"]), Text(""), render_content(item.content))


@render.register
def _(item: NothingToDo) -> RenderableType:
    return Text("No exercises available. Nothing to do.")


@render.register
def _(item: UnitList) -> RenderableType:
    if not item.unit_ids:
        return Text(item.empty)
    if not item.unit_types:
        return Group(
            Text(f"{item.title}:", style=STYLES["header"]),
            Text(""),
            Text("\n".join(item.unit_ids)),
        )

    table = Table(title=item.title, title_justify="left", show_edge=False)
    table.add_column("Unit Type")
    table.add_column("Unit ID")
    for unit_id in item.unit_ids:
        unit_type = item.unit_types.get(unit_id)
        table.add_row(str(unit_type) if unit_type else "Unknown", Text(unit_id))
    return table


@render.register
def _(item: SavedFilterList) -> RenderableType:
    if not item.filters:
        return Text("No saved unit filters")
    table = Table(title="Saved unit filters", title_justify="left", show_edge=False)
    table.add_column("ID")
    table.add_column("Description")
    for saved in item.filters:
        table.add_row(Text(saved.id), Text(saved.description))
    return table


@render.register
def _(item: FilterItem) -> RenderableType:
    if item.unit_filter is None:
        return Text("No filter is set")
    return Group(Text("Filter:"), Text(describe_filter(item.unit_filter)))


@render.register
def _(item: ScoreHistory) -> RenderableType:
    if not item.records:
        return Text(f"No scores for exercise {item.exercise_id}")
    table = Table(title=f"Scores for exercise {item.exercise_id}", title_justify="left", show_edge=False)
    table.add_column("Date")
    table.add_column("Score", justify="right")
    for record in item.records:
        table.add_row(record.timestamp.strftime("%Y-%m-%d %H:%M"), str(record.score))
    return table


@render.register
def _(item: MantraCountItem) -> RenderableType:
    return Text(f"Mantra count: {item.count}")


@render.register
def _(item: HelpItem) -> RenderableType:
    return Text(item.text.rstrip())


@render.register
def _(item: Farewell) -> RenderableType:
    return Text("Goodbye!", style=STYLES["dim"])


# =============================================================================
# Errors
# =============================================================================


def render_error(error: ShellError) -> Text:
    """Return `Error: <message>`, preceded by the usage line for parse errors."""
    text = Text()
    if isinstance(error, ParseError) and error.usage:
        text.append(error.usage.rstrip() + "\n")
    text.append("Error: ", style=STYLES["error"])
    text.append(str(error))
    return text
