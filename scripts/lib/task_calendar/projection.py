"""Project parsed tasks onto calendar events.

Events are plain dicts. ``start``/``end`` are ``YYYY-MM-DD HH:MM`` for timed
events and ``YYYY-MM-DD`` for all-day ones.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from task_calendar.markdown import CalendarSection, TaskLine
from task_dates.grammar import DateFieldType
from task_dates.parser import find_field

DATE_TIME_FORMAT = '%Y-%m-%d %H:%M'
DATE_ONLY_FORMAT = '%Y-%m-%d'

# Kanban and single-field timed tasks have no end of their own
DEFAULT_EVENT_DURATION = timedelta(minutes=30)

COMPLETED_COLOR = 'var(--text-muted)'
ACCENT_COLOR = 'var(--interactive-accent)'


def _point(value: datetime, timed: bool) -> tuple[str, str]:
    if timed:
        return (
            value.strftime(DATE_TIME_FORMAT),
            (value + DEFAULT_EVENT_DURATION).strftime(DATE_TIME_FORMAT),
        )
    day = value.strftime(DATE_ONLY_FORMAT)
    return day, day


def event_bounds(task: TaskLine) -> tuple[str, str]:
    """Start/end strings the calendar should render for a task."""
    if task.is_kanban and task.has_time:
        return _point(task.date, True)

    start_field = find_field(task.all_dates, DateFieldType.Start)
    due_field = find_field(task.all_dates, DateFieldType.Due)

    if start_field and due_field:
        if start_field.has_time or due_field.has_time:
            end = due_field.date
            if not due_field.has_time:
                # Stretch to the end of the due day
                end = end.replace(hour=23, minute=59)
            return start_field.date.strftime(DATE_TIME_FORMAT), end.strftime(DATE_TIME_FORMAT)
        return (
            start_field.date.strftime(DATE_ONLY_FORMAT),
            due_field.date.strftime(DATE_ONLY_FORMAT),
        )

    single = start_field or due_field
    if single:
        return _point(single.date, single.has_time)

    return _point(task.date, task.has_time)


def task_to_event(task: TaskLine, color: str | None = None) -> dict:
    start, end = event_bounds(task)
    if color is None:
        color = COMPLETED_COLOR if task.completed else ACCENT_COLOR
    return {
        'id': task.id,
        'title': task.title,
        'start': start,
        'end': end,
        'color': color,
        'metadata': {
            'line_index': task.line_index,
            'completed': task.completed,
        },
        # Kanban dates have no duration to drag out
        'duration_editable': not task.is_kanban,
    }


def section_events(
    sections: dict[str, CalendarSection],
    section_id: str | None = None,
    show_completed: bool = True,
    color_for=None,
) -> list[dict]:
    """Events for one section, or for every section when ``section_id`` is None.

    Args:
        color_for: Optional callable (task) -> colour string
    """
    if section_id is None:
        tasks = [task for section in sections.values() for task in section.tasks]
    else:
        section = sections.get(section_id)
        tasks = section.tasks if section else []

    events = []
    for task in tasks:
        if task.completed and not show_completed:
            continue
        events.append(task_to_event(task, color_for(task) if color_for else None))
    return events
