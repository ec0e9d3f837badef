"""Date extraction across all grammars, and primary-date selection."""

from __future__ import annotations

import logging

from task_dates.grammar import GRAMMARS, DateFieldType, ParsedDateField

logger = logging.getLogger(__name__)

DEFAULT_DATE_PRIORITY = (
    DateFieldType.Due,
    DateFieldType.Scheduled,
    DateFieldType.Start,
    DateFieldType.Created,
    DateFieldType.Done,
    DateFieldType.Cancelled,
)


def extract_all_dates(line: str, format_filter: str | None = None) -> list[ParsedDateField]:
    """Extract every date field from a line, ordered by position.

    Args:
        line: Task line (or any text) to scan
        format_filter: Only run one grammar family ('tasks', 'dataview',
            'simple' or 'kanban'); all of them when None

    When two grammars claim overlapping spans the field that starts first
    wins and the other one is dropped.
    """
    if not line:
        return []

    found: list[ParsedDateField] = []
    for name, extract in GRAMMARS.items():
        if format_filter and format_filter != name:
            continue
        found.extend(extract(line))

    found.sort(key=lambda field: field.start)

    filtered: list[ParsedDateField] = []
    for field in found:
        if filtered and filtered[-1].end > field.start:
            logger.debug(f"Dropping overlapping date field {field.raw!r} at {field.start}")
            continue
        filtered.append(field)
    return filtered


def get_primary_date(
    line: str,
    priority_order=DEFAULT_DATE_PRIORITY,
    format_filter: str | None = None,
) -> ParsedDateField | None:
    """Pick the representative date of a line.

    The first type in ``priority_order`` present on the line wins. If none of
    them is present the left-most field is returned. None when the line has
    no dates at all.
    """
    all_dates = extract_all_dates(line, format_filter)
    if not all_dates:
        return None

    for field_type in priority_order:
        for field in all_dates:
            if field.type == field_type:
                return field

    return all_dates[0]


def get_date_by_type(line: str, field_type: DateFieldType) -> ParsedDateField | None:
    """First field of the given type, or None."""
    return find_field(extract_all_dates(line), field_type)


def find_field(fields: list[ParsedDateField], field_type: DateFieldType | None) -> ParsedDateField | None:
    for field in fields:
        if field.type == field_type:
            return field
    return None


def has_date(line: str) -> bool:
    return bool(extract_all_dates(line))
