"""File-level task edits for a calendar markdown file.

Every operation takes the full file content and returns new content. A task
carries the line it was parsed from; if that line no longer matches the
content, the edit is refused with ValueError so the caller can re-read the
file.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime

from task_calendar.markdown import DEFAULT_SECTION_ID, CalendarSection, TaskLine
from task_calendar.scheduling import reschedule_line, resize_line
from task_dates.formatter import build_date_part, format_date
from task_dates.grammar import DateFieldType
from task_dates.parser import find_field

logger = logging.getLogger(__name__)

CHECKBOX_PATTERN = r'^(\s*-\s*\[).\]'

COMPLETION_PATTERNS = {
    'tasks': re.compile(r'\s*✅\uFE0F?\s*\d{4}-\d{2}-\d{2}(?:\s+\d{1,2}:\d{2})?'),
    'dataview': re.compile(
        r'\s*[\[(](?:done|completed|completion|done date|completion date)::\s*'
        r'\d{4}-\d{2}-\d{2}(?:T\d{1,2}:\d{2})?[\])]',
        re.IGNORECASE,
    ),
}


def _checked_line_index(lines: list[str], task: TaskLine) -> int:
    if task.line_index >= len(lines) or lines[task.line_index] != task.markdown:
        raise ValueError("File has changed, please refresh")
    return task.line_index


def _set_check_mark(line: str, mark: str) -> str:
    return re.sub(CHECKBOX_PATTERN, lambda m: f'{m.group(1)}{mark}]', line, count=1)


def _completion_field(date_format: str, today: date | None) -> str | None:
    """Completion date suffix for formats that record one."""
    if date_format not in COMPLETION_PATTERNS:
        return None
    day = today or date.today()
    stamp = datetime(day.year, day.month, day.day)
    return format_date(
        DateFieldType.Done,
        stamp,
        'tasks' if date_format == 'tasks' else 'dataview-bracket',
    )


def create_task(
    content: str,
    sections: dict[str, CalendarSection],
    active_section_id: str,
    title: str,
    date_format: str,
    start_date: str,
    end_date: str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
) -> str:
    """Insert a new task at the end of the active section."""
    if not title.strip():
        raise ValueError("Task title must not be empty")

    lines = content.split('\n')
    date_part = build_date_part(date_format, start_date, end_date, start_time, end_time)
    new_line = f'- [ ] {title.strip()} {date_part}'

    insert_index = len(lines)
    section = sections.get(active_section_id)
    if section:
        insert_index = section.end_line
        if section.tasks:
            insert_index = section.tasks[-1].line_index + 1
        elif section.id != DEFAULT_SECTION_ID:
            insert_index = section.start_line

    lines.insert(min(insert_index, len(lines)), new_line)
    return '\n'.join(lines)


def create_section(content: str, name: str) -> str:
    """Append a ``##`` heading for a new calendar section."""
    if not name.strip():
        raise ValueError("Section name must not be empty")
    prefix = '\n' if content.endswith('\n') else '\n\n'
    return f'{content}{prefix}## {name.strip()}\n'


def update_task(
    content: str,
    task: TaskLine,
    title: str | None = None,
    new_date: datetime | None = None,
    completed: bool | None = None,
) -> str:
    """Rewrite a task from the edit popover fields.

    Non-primary date fields keep their existing text. Only the primary field
    is reformatted, in its own format.
    """
    lines = content.split('\n')
    index = _checked_line_index(lines, task)

    indent = re.match(r'^(\s*)', task.markdown).group(1)
    done = task.completed if completed is None else completed
    mark = 'x' if done else ' '
    title = task.title if title is None else title
    primary_date = new_date or task.date

    if task.all_dates:
        primary = find_field(task.all_dates, task.date_type)
        parts = []
        for field in task.all_dates:
            if field is primary:
                parts.append(format_date(field.type, primary_date, field.format))
            else:
                parts.append(field.raw)
        date_metadata = ''.join(f' {part}' for part in parts)
    else:
        date_metadata = f" 📅 {primary_date.strftime('%Y-%m-%d')}"

    lines[index] = f'{indent}- [{mark}] {title}{date_metadata}'
    return '\n'.join(lines)


def delete_task(content: str, task: TaskLine) -> str:
    lines = content.split('\n')
    index = _checked_line_index(lines, task)
    del lines[index]
    return '\n'.join(lines)


def move_task(content: str, task: TaskLine, new_start: datetime, new_end: datetime) -> str:
    """Apply a drag-and-drop reschedule.

    If the stored line moved, fall back to the first line that still holds
    both the title and the old date.
    """
    lines = content.split('\n')
    index = task.line_index
    if index >= len(lines) or lines[index] != task.markdown:
        old_date = task.date.strftime('%Y-%m-%d')
        matches = [i for i, line in enumerate(lines) if task.title in line and old_date in line]
        if not matches:
            raise ValueError("Sync conflict: Task line not found. Please refresh.")
        index = matches[0]
        logger.warning(f"Task line moved from {task.line_index} to {index}, rescheduling there")

    lines[index] = reschedule_line(lines[index], task, new_start, new_end)
    return '\n'.join(lines)


def resize_task(content: str, task: TaskLine, new_start: datetime, new_end: datetime) -> str:
    lines = content.split('\n')
    index = _checked_line_index(lines, task)
    lines[index] = resize_line(lines[index], task, new_start, new_end)
    return '\n'.join(lines)


def toggle_completion(content: str, task: TaskLine, date_format: str, today: date | None = None) -> str:
    """Flip a task's check mark in place.

    Tasks and dataview formats also gain a completion date when completed
    and lose it when reopened.
    """
    lines = content.split('\n')
    index = _checked_line_index(lines, task)
    completing = not task.completed
    line = _set_check_mark(lines[index], 'x' if completing else ' ')

    if completing:
        done_field = _completion_field(date_format, today)
        if done_field:
            line = f'{line.rstrip()} {done_field}'
    elif date_format in COMPLETION_PATTERNS:
        line = COMPLETION_PATTERNS[date_format].sub('', line)

    lines[index] = line
    return '\n'.join(lines)


def move_to_completed_section(
    content: str,
    task: TaskLine,
    section_name: str,
    date_format: str,
    today: date | None = None,
) -> str:
    """Complete a task and move it under ``## <section_name>``.

    The heading is created at the end of the file when missing. The task
    goes right after the heading, so the newest completion is listed first.
    """
    if not section_name:
        return toggle_completion(content, task, date_format, today)

    lines = content.split('\n')
    index = _checked_line_index(lines, task)

    line = _set_check_mark(lines[index], 'x')
    done_field = _completion_field(date_format, today)
    if done_field:
        line = f'{line.rstrip()} {done_field}'

    del lines[index]

    header = f'## {section_name}'
    header_index = next((i for i, text in enumerate(lines) if text.strip() == header), None)
    if header_index is not None:
        lines.insert(header_index + 1, line)
    else:
        if lines and lines[-1].strip():
            lines.append('')
        lines.append(header)
        lines.append(line)

    return '\n'.join(lines)


def complete_task(
    content: str,
    task: TaskLine,
    date_format: str,
    move_on_complete: bool = False,
    completed_section_name: str = '',
    today: date | None = None,
) -> str:
    """Checkbox click: move completed tasks when configured, otherwise toggle."""
    if move_on_complete and not task.completed:
        return move_to_completed_section(content, task, completed_section_name, date_format, today)
    return toggle_completion(content, task, date_format, today)
