"""Date field grammars for markdown task lines.

Four independent conventions are recognised. Each one scans the whole line
and returns every valid occurrence it finds:

- Tasks plugin emoji: ``📅 2025-11-29`` or ``📅 2025-11-29 14:30``
- Dataview inline fields: ``[due:: 2025-11-29]``, ``(start:: 2025-11-29T14:30)``
- Simple: ``@ 2025-11-29`` (always a due date)
- Kanban: ``@{2025-11-29}`` plus an optional line-wide ``@@{14:30}``

Patterns are kept as source strings and matched with fresh iterators on every
call, so nothing here carries scan state from one line to the next.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType


class DateFieldType(Enum):
    """Kinds of date a task line can carry."""

    Due = 'due'
    Start = 'start'
    Scheduled = 'scheduled'
    Created = 'created'
    Done = 'completed'
    Cancelled = 'cancelled'


# Grammar families accepted as a format filter
DATE_FORMATS = ('tasks', 'dataview', 'simple', 'kanban')

# Concrete conventions a parsed field can come from
FIELD_FORMATS = ('tasks', 'dataview-bracket', 'dataview-paren', 'simple', 'kanban')

# First symbol of each tuple is the one written back out
DATE_SYMBOLS = MappingProxyType({
    DateFieldType.Due: ('📅', '📆', '🗓'),
    DateFieldType.Start: ('🛫',),
    DateFieldType.Scheduled: ('⏳', '⌛'),
    DateFieldType.Created: ('➕',),
    DateFieldType.Done: ('✅',),
    DateFieldType.Cancelled: ('❌',),
})

DATAVIEW_KEY_ALIASES = MappingProxyType({
    'due': DateFieldType.Due,
    'due date': DateFieldType.Due,
    'duedate': DateFieldType.Due,
    'start': DateFieldType.Start,
    'start date': DateFieldType.Start,
    'startdate': DateFieldType.Start,
    'scheduled': DateFieldType.Scheduled,
    'scheduled date': DateFieldType.Scheduled,
    'scheduleddate': DateFieldType.Scheduled,
    'created': DateFieldType.Created,
    'created date': DateFieldType.Created,
    'createddate': DateFieldType.Created,
    'done': DateFieldType.Done,
    'done date': DateFieldType.Done,
    'donedate': DateFieldType.Done,
    'completed': DateFieldType.Done,
    'completed date': DateFieldType.Done,
    'completeddate': DateFieldType.Done,
    'completion': DateFieldType.Done,
    'completion date': DateFieldType.Done,
    'completiondate': DateFieldType.Done,
    'cancelled': DateFieldType.Cancelled,
    'canceled': DateFieldType.Cancelled,
    'cancelled date': DateFieldType.Cancelled,
    'canceled date': DateFieldType.Cancelled,
    'cancelleddate': DateFieldType.Cancelled,
    'canceleddate': DateFieldType.Cancelled,
})

DATAVIEW_WRAPPERS = MappingProxyType({'[': ']', '(': ')'})
_BRACKET_CHARS = tuple(DATAVIEW_WRAPPERS) + tuple(DATAVIEW_WRAPPERS.values())

_TIME_SUFFIX = r'(?:\s+(\d{1,2}:\d{2}))?'

EMOJI_DATE_PATTERNS = (
    (DateFieldType.Due, r'[📅📆🗓]\uFE0F?\s*(\d{4}-\d{2}-\d{2})' + _TIME_SUFFIX),
    (DateFieldType.Start, r'🛫\uFE0F?\s*(\d{4}-\d{2}-\d{2})' + _TIME_SUFFIX),
    (DateFieldType.Scheduled, r'[⏳⌛]\uFE0F?\s*(\d{4}-\d{2}-\d{2})' + _TIME_SUFFIX),
    (DateFieldType.Created, r'➕\uFE0F?\s*(\d{4}-\d{2}-\d{2})' + _TIME_SUFFIX),
    (DateFieldType.Done, r'✅\uFE0F?\s*(\d{4}-\d{2}-\d{2})' + _TIME_SUFFIX),
    (DateFieldType.Cancelled, r'❌\uFE0F?\s*(\d{4}-\d{2}-\d{2})' + _TIME_SUFFIX),
)

DATAVIEW_VALUE_PATTERN = r'(\d{4}-\d{2}-\d{2})(?:T(\d{1,2}:\d{2}))?'
SIMPLE_DATE_PATTERN = r'@\s*(\d{4}-\d{2}-\d{2})'
KANBAN_DATE_PATTERN = r'@\{(\d{4}-\d{2}-\d{2})\}'
KANBAN_TIME_PATTERN = r'@@\{(\d{1,2}:\d{2})\}'


@dataclass(frozen=True)
class ParsedDateField:
    """One date occurrence inside a line.

    ``start``/``end`` are half-open offsets into the source line and ``raw``
    is the exact text between them.
    """

    type: DateFieldType
    date: datetime
    raw: str
    start: int
    end: int
    format: str
    has_time: bool = False

    def to_dict(self) -> dict:
        return {
            'type': self.type.value,
            'date': self.date.strftime('%Y-%m-%d %H:%M' if self.has_time else '%Y-%m-%d'),
            'raw': self.raw,
            'start': self.start,
            'end': self.end,
            'format': self.format,
            'has_time': self.has_time,
        }


def parse_date_literal(date_str: str) -> datetime | None:
    """Parse a strict ``YYYY-MM-DD`` literal, or None for an impossible date."""
    try:
        return datetime.strptime(date_str, '%Y-%m-%d')
    except ValueError:
        return None


def parse_clock(time_str: str) -> tuple[int, int] | None:
    """Parse ``H:mm``/``HH:mm`` into (hours, minutes), or None when out of range."""
    hours, minutes = (int(part) for part in time_str.split(':'))
    if hours > 23 or minutes > 59:
        return None
    return hours, minutes


def extract_emoji_dates(line: str) -> list[ParsedDateField]:
    """Tasks plugin emoji fields, with an optional trailing time."""
    results = []
    for field_type, pattern in EMOJI_DATE_PATTERNS:
        for match in re.finditer(pattern, line):
            date = parse_date_literal(match.group(1))
            if date is None:
                continue

            has_time = False
            if match.group(2):
                clock = parse_clock(match.group(2))
                if clock is None:
                    continue
                date = date.replace(hour=clock[0], minute=clock[1])
                has_time = True

            results.append(ParsedDateField(
                type=field_type,
                date=date,
                raw=match.group(0),
                start=match.start(),
                end=match.end(),
                format='tasks',
                has_time=has_time,
            ))
    return results


def _find_separator(line: str, start: int) -> tuple[str, int] | None:
    """Locate the nearest unescaped ``::`` at or after ``start``.

    Returns the normalised key before it and the index where the value begins.
    """
    sep = line.find('::', start)
    while sep > 0 and line[sep - 1] == '\\':
        sep = line.find('::', sep + 2)
    if sep < 0:
        return None
    key = ' '.join(line[start:sep].split()).lower()
    return key, sep + 2


def _find_closing_bracket(line: str, start: int, open_char: str, close_char: str) -> tuple[str, int] | None:
    """Scan for the bracket that closes the field, honouring nesting and escapes."""
    nesting = 0
    escaped = False

    for i in range(start, len(line)):
        char = line[i]

        if char == '\\':
            escaped = not escaped
            continue
        if escaped:
            escaped = False
            continue

        if char == open_char:
            nesting += 1
        elif char == close_char:
            nesting -= 1

        if nesting < 0:
            return line[start:i].strip(), i + 1

    return None


def extract_dataview_dates(line: str) -> list[ParsedDateField]:
    """Dataview inline fields in both ``[key:: value]`` and ``(key:: value)`` form."""
    results = []

    for open_char, close_char in DATAVIEW_WRAPPERS.items():
        search_index = 0

        while search_index < len(line):
            found = line.find(open_char, search_index)
            if found < 0:
                break

            separator = _find_separator(line, found + 1)
            if separator is None:
                search_index = found + 1
                continue
            key, value_index = separator

            # A bracket inside the key means this opener belongs to something else
            key_region = line[found + 1:value_index - 2]
            if any(char in key_region for char in _BRACKET_CHARS):
                search_index = found + 1
                continue

            closing = _find_closing_bracket(line, value_index, open_char, close_char)
            if closing is None:
                search_index = found + 1
                continue
            value, end = closing
            search_index = end

            field_type = DATAVIEW_KEY_ALIASES.get(key)
            if field_type is None:
                continue

            value_match = re.match(DATAVIEW_VALUE_PATTERN, value)
            if not value_match:
                continue
            date = parse_date_literal(value_match.group(1))
            if date is None:
                continue

            has_time = False
            if value_match.group(2):
                clock = parse_clock(value_match.group(2))
                if clock is None:
                    continue
                date = date.replace(hour=clock[0], minute=clock[1])
                has_time = True

            results.append(ParsedDateField(
                type=field_type,
                date=date,
                raw=line[found:end],
                start=found,
                end=end,
                format='dataview-bracket' if open_char == '[' else 'dataview-paren',
                has_time=has_time,
            ))

    return results


def extract_simple_dates(line: str) -> list[ParsedDateField]:
    """``@ YYYY-MM-DD`` markers, always read as due dates."""
    results = []
    for match in re.finditer(SIMPLE_DATE_PATTERN, line):
        date = parse_date_literal(match.group(1))
        if date is None:
            continue
        results.append(ParsedDateField(
            type=DateFieldType.Due,
            date=date,
            raw=match.group(0),
            start=match.start(),
            end=match.end(),
            format='simple',
        ))
    return results


def extract_kanban_dates(line: str) -> list[ParsedDateField]:
    """Kanban ``@{YYYY-MM-DD}`` dates.

    Only the first ``@@{HH:mm}`` token on the line is read, and it applies to
    every date token on that line.
    """
    clock = None
    time_match = re.search(KANBAN_TIME_PATTERN, line)
    if time_match:
        clock = parse_clock(time_match.group(1))

    results = []
    for match in re.finditer(KANBAN_DATE_PATTERN, line):
        date = parse_date_literal(match.group(1))
        if date is None:
            continue
        if clock is not None:
            date = date.replace(hour=clock[0], minute=clock[1])
        results.append(ParsedDateField(
            type=DateFieldType.Due,
            date=date,
            raw=match.group(0),
            start=match.start(),
            end=match.end(),
            format='kanban',
            has_time=clock is not None,
        ))
    return results


GRAMMARS = MappingProxyType({
    'tasks': extract_emoji_dates,
    'dataview': extract_dataview_dates,
    'simple': extract_simple_dates,
    'kanban': extract_kanban_dates,
})
