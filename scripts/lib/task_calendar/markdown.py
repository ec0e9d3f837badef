"""Parse a calendar markdown file into sections and dated task lines.

Tasks are grouped by the nearest preceding ``#`` or ``##`` heading. Tasks
above the first heading belong to the ``Default`` section. ``##`` sections
remember the ``#`` section they sit under.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

from task_dates.grammar import DateFieldType, ParsedDateField
from task_dates.parser import DEFAULT_DATE_PRIORITY, extract_all_dates, get_primary_date
from task_dates.reconstruct import strip_dates

FRONTMATTER_KEY = 'calendar-plugin'

BASIC_FRONTMATTER = f"""---
{FRONTMATTER_KEY}: basic
---

"""

DEFAULT_SECTION_ID = 'Default'

TASK_PREFIX_PATTERN = r'^(\s*-\s*\[(.)\])\s*'
SECTION_PATTERN = r'^(#{1,2})\s+(.*)'


@dataclass
class TaskLine:
    id: str
    line_index: int
    markdown: str
    title: str
    date: datetime
    date_type: DateFieldType
    all_dates: list[ParsedDateField]
    has_time: bool
    is_kanban: bool
    completed: bool
    section_id: str


@dataclass
class CalendarSection:
    id: str
    name: str
    level: int
    parent_id: str | None
    start_line: int
    end_line: int
    tasks: list[TaskLine] = field(default_factory=list)


def has_calendar_frontmatter(content: str) -> bool:
    """Check whether the frontmatter marks this file as a calendar."""
    match = re.match(r'^---\s*\n([\s\S]*?)\n---', content)
    if not match:
        return False
    return FRONTMATTER_KEY in match.group(1)


def parse_task_line(
    line: str,
    line_index: int,
    section_id: str = DEFAULT_SECTION_ID,
    date_priority=DEFAULT_DATE_PRIORITY,
    date_format: str | None = None,
) -> TaskLine | None:
    """Parse one checkbox line. None when it is not a task or carries no date."""
    prefix_match = re.match(TASK_PREFIX_PATTERN, line)
    if not prefix_match:
        return None

    content = line[prefix_match.end():]
    primary = get_primary_date(content, date_priority, date_format)
    if primary is None:
        return None

    return TaskLine(
        id=str(line_index),
        line_index=line_index,
        markdown=line,
        title=strip_dates(content).strip() or 'Untitled Task',
        date=primary.date,
        date_type=primary.type,
        all_dates=extract_all_dates(content, date_format),
        has_time=primary.has_time,
        is_kanban=primary.format == 'kanban',
        completed=prefix_match.group(2) != ' ',
        section_id=section_id,
    )


def parse_markdown(
    content: str,
    date_priority=DEFAULT_DATE_PRIORITY,
    date_format: str | None = None,
) -> tuple[dict[str, CalendarSection], dict[str, TaskLine]]:
    """Split content into sections and collect dated tasks.

    Returns:
        tuple: (sections keyed by id in file order, tasks keyed by id)
    """
    lines = content.split('\n')
    sections: dict[str, CalendarSection] = {
        DEFAULT_SECTION_ID: CalendarSection(
            id=DEFAULT_SECTION_ID,
            name='Default',
            level=0,
            parent_id=None,
            start_line=0,
            end_line=len(lines),
        ),
    }
    tasks: dict[str, TaskLine] = {}
    current_section_id = DEFAULT_SECTION_ID
    current_level1_id = None

    for index, line in enumerate(lines):
        heading_match = re.match(SECTION_PATTERN, line)
        if heading_match:
            sections[current_section_id].end_line = index

            level = len(heading_match.group(1))
            heading_text = heading_match.group(2).strip()

            section_id = heading_text
            if section_id in sections:
                section_id = f'{heading_text}_{index}'

            parent_id = None
            if level == 1:
                current_level1_id = section_id
            else:
                parent_id = current_level1_id

            sections[section_id] = CalendarSection(
                id=section_id,
                name=heading_text,
                level=level,
                parent_id=parent_id,
                start_line=index + 1,
                end_line=len(lines),
            )
            current_section_id = section_id
            continue

        task = parse_task_line(line, index, current_section_id, date_priority, date_format)
        if task is None:
            continue
        tasks[task.id] = task
        sections[current_section_id].tasks.append(task)

    return sections, tasks
