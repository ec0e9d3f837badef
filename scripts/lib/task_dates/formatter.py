"""Render date fields back into their textual conventions."""

from __future__ import annotations

from datetime import datetime

from task_dates.grammar import DATE_SYMBOLS, DateFieldType

DATE_LABELS = {
    DateFieldType.Due: 'Due',
    DateFieldType.Start: 'Start',
    DateFieldType.Scheduled: 'Scheduled',
    DateFieldType.Created: 'Created',
    DateFieldType.Done: 'Done',
    DateFieldType.Cancelled: 'Cancelled',
}


def has_time_component(value: datetime) -> bool:
    """True when the value is not exactly midnight.

    Midnight and "no time" cannot be told apart, so a task scheduled at 00:00
    is treated as all-day.
    """
    return value.hour != 0 or value.minute != 0


def format_date(
    field_type: DateFieldType,
    date: datetime,
    format: str = 'tasks',
    include_time: bool = False,
) -> str:
    """Format a date so the matching grammar reads it back as the same field.

    Args:
        field_type: Kind of date field
        date: Value to write
        format: 'tasks', 'dataview-bracket', 'dataview-paren', 'simple' or 'kanban'
        include_time: Emit the time of day when it is not midnight
            (ignored by the simple format, which has no time syntax)
    """
    date_str = date.strftime('%Y-%m-%d')
    time_str = date.strftime('%H:%M')
    with_time = include_time and has_time_component(date)

    if format == 'tasks':
        symbol = DATE_SYMBOLS[field_type][0]
        if with_time:
            return f'{symbol} {date_str} {time_str}'
        return f'{symbol} {date_str}'
    if format == 'dataview-bracket':
        if with_time:
            return f'[{field_type.value}:: {date_str}T{time_str}]'
        return f'[{field_type.value}:: {date_str}]'
    if format == 'dataview-paren':
        if with_time:
            return f'({field_type.value}:: {date_str}T{time_str})'
        return f'({field_type.value}:: {date_str})'
    if format == 'simple':
        return f'@ {date_str}'
    if format == 'kanban':
        if with_time:
            return f'@{{{date_str}}} @@{{{time_str}}}'
        return f'@{{{date_str}}}'
    return date_str


def build_date_part(
    format: str,
    start_date: str,
    end_date: str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
) -> str:
    """Date suffix for a newly created task.

    Args:
        format: Recognised date format ('tasks', 'dataview', 'simple', 'kanban')
        start_date: YYYY-MM-DD
        end_date: YYYY-MM-DD, only for multi-day selections
        start_time: HH:MM
        end_time: HH:MM

    Ranges (multi-day, or a same-day time range) become a start + due pair.
    Kanban keeps only the start time and simple never carries a time.
    """
    if format == 'kanban':
        time_part = f' @@{{{start_time}}}' if start_time else ''
        return f'@{{{start_date}}}{time_part}'

    if format == 'simple':
        return f'@ {start_date}'

    if format == 'dataview':
        def field(key, day, clock):
            return f'[{key}:: {day}T{clock}]' if clock else f'[{key}:: {day}]'
    else:
        def field(key, day, clock):
            symbol = DATE_SYMBOLS[DateFieldType(key)][0]
            return f'{symbol} {day} {clock}' if clock else f'{symbol} {day}'

    if end_date:
        return f"{field('start', start_date, start_time)} {field('due', end_date, end_time)}"
    if start_time and end_time:
        return f"{field('start', start_date, start_time)} {field('due', start_date, end_time)}"
    return field('due', start_date, start_time)


def get_date_type_label(field_type: DateFieldType) -> str:
    return DATE_LABELS.get(field_type, field_type.value)


def get_date_type_emoji(field_type: DateFieldType) -> str:
    return DATE_SYMBOLS[field_type][0]
