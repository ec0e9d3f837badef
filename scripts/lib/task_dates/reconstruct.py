"""Strip date fields out of a line and rebuild it with updated ones."""

from __future__ import annotations

import re
from typing import Mapping

from task_dates.formatter import format_date
from task_dates.grammar import KANBAN_TIME_PATTERN, DateFieldType, ParsedDateField
from task_dates.parser import extract_all_dates

# Order date fields are written back in, whatever order they were read in
CANONICAL_ORDER = (
    DateFieldType.Start,
    DateFieldType.Scheduled,
    DateFieldType.Due,
    DateFieldType.Created,
    DateFieldType.Done,
    DateFieldType.Cancelled,
)


def strip_dates(line: str) -> str:
    """Remove every date field from a line.

    A line without dates comes back untouched. Otherwise whitespace runs are
    collapsed to one space and the ends trimmed. Kanban ``@@{HH:mm}`` tokens
    go too when the line has kanban dates.
    """
    dates = extract_all_dates(line)
    if not dates:
        return line

    result = line
    # Right to left so earlier offsets stay valid
    for field in reversed(dates):
        result = result[:field.start] + result[field.end:]

    # The line-wide kanban time belongs to the kanban dates it decorates
    if any(field.format == 'kanban' for field in dates):
        result = re.sub(KANBAN_TIME_PATTERN, '', result)

    return re.sub(r'\s+', ' ', result).strip()


def strip_task_line(line: str) -> str:
    """Like strip_dates, but keeps the line's leading indentation."""
    indent = line[:len(line) - len(line.lstrip())]
    stripped = strip_dates(line)
    if stripped.startswith(indent):
        return stripped
    return indent + stripped


def format_fields(fields: list[ParsedDateField]) -> dict[DateFieldType, str]:
    """Re-render parsed fields in their own format, keyed by type.

    A later field of the same type replaces an earlier one.
    """
    return {
        field.type: format_date(field.type, field.date, field.format, field.has_time)
        for field in fields
    }


def reconstruct_line(base_line: str, date_updates: Mapping[DateFieldType, str]) -> str:
    """Append formatted date fields to a stripped line in canonical order.

    Only types present in ``date_updates`` are written.
    """
    result = base_line.rstrip()
    for field_type in CANONICAL_ORDER:
        formatted = date_updates.get(field_type)
        if formatted:
            result += ' ' + formatted
    return result
