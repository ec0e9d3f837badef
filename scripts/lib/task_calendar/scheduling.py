"""Turn calendar drag, resize and range-selection gestures into task text.

The calendar reports plain datetimes. All-day drops arrive at midnight or
noon, and all-day ranges end at an exclusive next-day midnight. The helpers
here translate that back into inclusive dates and keep any explicit times the
task already had.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from task_calendar.markdown import TaskLine
from task_dates.formatter import format_date, has_time_component
from task_dates.grammar import DateFieldType, ParsedDateField
from task_dates.parser import find_field
from task_dates.reconstruct import format_fields, reconstruct_line, strip_task_line

logger = logging.getLogger(__name__)


def is_default_drop_time(value: datetime) -> bool:
    """Midnight or noon: what the calendar reports when no time was picked."""
    return (value.hour, value.minute) in ((0, 0), (12, 0))


def _end_of_day(value: datetime) -> datetime:
    return value.replace(hour=23, minute=59)


def _with_clock(value: datetime, source: datetime) -> datetime:
    return value.replace(hour=source.hour, minute=source.minute)


def normalize_all_day_end(
    new_start: datetime,
    new_end: datetime,
    task: TaskLine,
    start_field: ParsedDateField | None = None,
    due_field: ParsedDateField | None = None,
) -> datetime:
    """Convert a calendar end into an inclusive end.

    A default-time end on a later day than the start is an exclusive bound,
    so it moves back one day. Tasks that carry explicit times get 23:59 on
    that day instead of midnight.
    """
    if not is_default_drop_time(new_end):
        return new_end
    if new_end.date() <= new_start.date():
        return new_end

    end = new_end - timedelta(days=1)
    has_explicit_time = (
        task.has_time
        or (start_field is not None and start_field.has_time)
        or (due_field is not None and due_field.has_time)
    )
    if has_explicit_time:
        end = _end_of_day(end)
    return end


def _include_time(field: ParsedDateField, value: datetime) -> bool:
    """Keep a field's time, or add one the user explicitly picked."""
    return field.has_time or (has_time_component(value) and not is_default_drop_time(value))


def reschedule_line(line: str, task: TaskLine, new_start: datetime, new_end: datetime) -> str:
    """Rewrite a task line after the event was dragged to a new position.

    Start + due pairs keep their duration: the due date moves by
    the same delta as the start, rather than following the dropped end.
    Other tasks only move their primary date.
    """
    start_has_time = has_time_component(new_start)
    date_updates = format_fields(task.all_dates)

    start_field = find_field(task.all_dates, DateFieldType.Start)
    due_field = find_field(task.all_dates, DateFieldType.Due)

    if start_field and due_field:
        final_start = new_start
        final_end = due_field.date + (new_start - start_field.date)

        if start_field.has_time and is_default_drop_time(new_start):
            final_start = _with_clock(final_start, start_field.date)
        if due_field.has_time and is_default_drop_time(new_end):
            final_end = _with_clock(final_end, due_field.date)

        was_multi_day = start_field.date.date() != due_field.date.date()
        if was_multi_day and final_start.date() == final_end.date() and final_end <= final_start:
            final_end = _end_of_day(final_end)

        date_updates[DateFieldType.Start] = format_date(
            DateFieldType.Start,
            final_start,
            start_field.format,
            _include_time(start_field, new_start),
        )
        date_updates[DateFieldType.Due] = format_date(
            DateFieldType.Due,
            final_end,
            due_field.format,
            _include_time(due_field, new_end),
        )
    else:
        primary = find_field(task.all_dates, task.date_type)
        if primary:
            date_updates[primary.type] = format_date(
                primary.type,
                new_start,
                primary.format,
                start_has_time or primary.has_time,
            )
        else:
            field_type = task.date_type or DateFieldType.Due
            date_updates[field_type] = format_date(field_type, new_start, 'tasks', start_has_time)

    return reconstruct_line(strip_task_line(line), date_updates)


def resize_line(line: str, task: TaskLine, new_start: datetime, new_end: datetime) -> str:
    """Rewrite a task line after the event was resized.

    Raises:
        ValueError: Kanban tasks have no duration to resize
    """
    if task.is_kanban:
        raise ValueError("Kanban format does not support resize")

    date_updates = format_fields(task.all_dates)
    start_has_time = has_time_component(new_start)
    end_has_time = has_time_component(new_end)

    start_field = find_field(task.all_dates, DateFieldType.Start)
    due_field = find_field(task.all_dates, DateFieldType.Due)
    primary = find_field(task.all_dates, task.date_type)

    final_start = new_start
    final_end = normalize_all_day_end(new_start, new_end, task, start_field, due_field)
    is_multi_day = final_start.date() != final_end.date()

    was_multi_day = (
        start_field is not None
        and due_field is not None
        and start_field.date.date() != due_field.date.date()
    )
    if was_multi_day and not is_multi_day:
        # Collapsing to one day: put back the times the fields had
        if start_field.has_time and is_default_drop_time(new_start):
            final_start = _with_clock(final_start, start_field.date)
        if due_field.has_time and is_default_drop_time(new_end):
            final_end = _with_clock(final_end, due_field.date)
        if final_end <= final_start:
            final_end = _end_of_day(final_end)

    if start_field:
        date_updates[DateFieldType.Start] = format_date(
            DateFieldType.Start,
            final_start,
            start_field.format,
            _include_time(start_field, new_start),
        )
    if due_field:
        date_updates[DateFieldType.Due] = format_date(
            DateFieldType.Due,
            final_end,
            due_field.format,
            _include_time(due_field, new_end),
        )

    if is_multi_day or (start_has_time and end_has_time):
        if not start_field:
            date_updates[DateFieldType.Start] = format_date(
                DateFieldType.Start, final_start, 'tasks', start_has_time,
            )
        if not due_field:
            date_updates[DateFieldType.Due] = format_date(
                DateFieldType.Due, final_end, 'tasks', end_has_time,
            )
    elif not start_field and not due_field and primary:
        date_updates[primary.type] = format_date(
            primary.type,
            final_start,
            primary.format,
            start_has_time or primary.has_time,
        )

    return reconstruct_line(strip_task_line(line), date_updates)


def plan_selection(date_format: str, start: datetime, end: datetime) -> dict:
    """Work out which dates and times a new task takes from a calendar selection.

    Kanban keeps only a start time. Dataview and tasks formats keep both
    start and end times. Simple never carries a time.

    Returns:
        dict with start_date, end_date (None unless multi-day), start_time, end_time
    """
    start_date = start.strftime('%Y-%m-%d')
    end_date = end.strftime('%Y-%m-%d')

    start_time = None
    end_time = None
    if date_format == 'kanban':
        if has_time_component(start):
            start_time = start.strftime('%H:%M')
    elif date_format in ('dataview', 'tasks'):
        if has_time_component(start):
            start_time = start.strftime('%H:%M')
        if has_time_component(end):
            end_time = end.strftime('%H:%M')

    logger.debug(f"Selection {start}..{end} planned as {date_format} format")
    return {
        'start_date': start_date,
        'end_date': end_date if end_date != start_date else None,
        'start_time': start_time,
        'end_time': end_time,
    }
