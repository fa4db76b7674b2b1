"""Lesson metadata helpers: box enrichment and the current/next lesson summary.

:func:`enrich` cross-references a schema's ``lesson_info`` records with its
``Lesson`` boxes so every lesson knows where it is drawn. :func:`summarize_day`
and :func:`format_summary` turn a day's lessons into the one-line
"current, next" text printed by ``skolschema next``.

Both are pure: no I/O, and the input schema is never mutated.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Optional

from skolschema.exceptions import MalformedResponseError
from skolschema.models import LessonInfo, Schema

LESSON_BOX_TYPE = "Lesson"


class MatchPolicy(str, enum.Enum):
    """Which box wins when several ``Lesson`` boxes reference the same lesson."""

    FIRST = "first"
    LAST = "last"


def enrich(schema: Schema, policy: MatchPolicy = MatchPolicy.LAST) -> list[LessonInfo]:
    """Return copies of ``schema.lesson_info`` with their ``block`` attached.

    A box matches a lesson when it is of type ``Lesson`` and its
    ``lesson_guids`` contain the lesson's ``guid_id``. Lessons without a
    matching box keep the zero-valued block.

    Args:
        schema: A fetched timetable schema.
        policy: ``LAST`` keeps the last matching box in ``box_list`` order,
            ``FIRST`` the first.
    """
    lesson_boxes = [box for box in schema.box_list if box.type == LESSON_BOX_TYPE]
    if policy is MatchPolicy.LAST:
        lesson_boxes.reverse()

    enriched = []
    for lesson in schema.lesson_info:
        lesson = lesson.model_copy(deep=True)
        for box in lesson_boxes:
            if lesson.guid_id in (box.lesson_guids or []):
                lesson.block = box.model_copy(deep=True)
                break
        enriched.append(lesson)
    return enriched


# --- Current / next lesson ---


@dataclass
class DaySummary:
    """Lessons in progress at a given time, and the next one to start."""

    current: list[LessonInfo] = field(default_factory=list)
    next: Optional[LessonInfo] = None


def _parse_time(value: str) -> time:
    try:
        return datetime.strptime(value, "%H:%M:%S").time()
    except ValueError as exc:
        raise MalformedResponseError(f"Invalid lesson time '{value}'") from exc


def summarize_day(lessons: list[LessonInfo], now: time) -> DaySummary:
    """Find the lessons running at *now* and the earliest one after it.

    A lesson is current when ``start <= now < end``. On equal start times
    the earlier lesson in *lessons* is the next one.

    Raises:
        MalformedResponseError: If a lesson time is not ``HH:MM:SS``.
    """
    summary = DaySummary()
    next_start: Optional[time] = None
    for lesson in lessons:
        start = _parse_time(lesson.time_start)
        end = _parse_time(lesson.time_end)
        if start > now:
            if next_start is None or start < next_start:
                next_start = start
                summary.next = lesson
        elif end > now:
            summary.current.append(lesson)
    return summary


def _label(lesson: LessonInfo) -> str:
    return lesson.texts[0][:3] if lesson.texts else ""


def format_summary(summary: DaySummary) -> str:
    """Format a summary as ``"Mat-10:00, 10:15-Eng"``.

    Current lessons print as ``<label>-<end>``, the next lesson as
    ``<start>-<label>``, where the label is the first three characters of
    the lesson's first text.
    """
    parts = [
        f"{_label(lesson)}-{_parse_time(lesson.time_end):%H:%M}"
        for lesson in summary.current
    ]
    current = "".join(parts)
    if summary.next is None:
        return current
    upcoming = f"{_parse_time(summary.next.time_start):%H:%M}-{_label(summary.next)}"
    return f"{current}, {upcoming}" if current else upcoming
