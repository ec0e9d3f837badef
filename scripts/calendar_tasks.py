#!/usr/bin/env python3
"""
Markdown Task Calendar CLI - dated checkbox tasks as calendar events.

Usage:
    calendar_tasks.py dates "- [ ] Ship 📅 2025-11-29" [--format tasks|dataview|simple|kanban] [--json]
    calendar_tasks.py primary "<line>"
    calendar_tasks.py strip "<line>"
    calendar_tasks.py format due 2025-11-29 [--style tasks] [--time 14:30]
    calendar_tasks.py sections
    calendar_tasks.py events [--section NAME | --all] [--json]
    calendar_tasks.py add "Task title" --start "2025-11-29 09:00" [--end ...] [--section NAME]
    calendar_tasks.py move LINE --start ... --end ...
    calendar_tasks.py resize LINE --start ... --end ...
    calendar_tasks.py complete LINE
    calendar_tasks.py delete LINE
    calendar_tasks.py new-section "Name"
    calendar_tasks.py color LINE [--dark] [--all]
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))
from calendar_utils import atomic_write, get_calendar_file, load_settings, parse_date_priority

from task_calendar.colors import get_event_color
from task_calendar.editing import (
    complete_task,
    create_section,
    create_task,
    delete_task,
    move_task,
    resize_task,
)
from task_calendar.markdown import DEFAULT_SECTION_ID, parse_markdown
from task_calendar.projection import section_events
from task_calendar.scheduling import plan_selection
from task_dates.formatter import format_date, get_date_type_label
from task_dates.grammar import DATE_FORMATS, FIELD_FORMATS
from task_dates.parser import extract_all_dates, get_primary_date
from task_dates.reconstruct import strip_dates

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

_WHEN_FORMATS = ('%Y-%m-%d %H:%M', '%Y-%m-%dT%H:%M', '%Y-%m-%d')


def parse_when(value: str) -> datetime:
    """argparse type for YYYY-MM-DD, YYYY-MM-DD HH:MM or YYYY-MM-DDTHH:MM."""
    for fmt in _WHEN_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
    raise argparse.ArgumentTypeError(f"invalid date/time {value!r} (use YYYY-MM-DD or YYYY-MM-DD HH:MM)")


def _load_calendar(settings):
    """Read and parse the calendar file, exiting when it is missing."""
    calendar_file = get_calendar_file()
    if not calendar_file.exists():
        print(f"\n❌ Calendar file not found: {calendar_file}\n", file=sys.stderr)
        print("Set TASK_CALENDAR_FILE to your calendar markdown file.", file=sys.stderr)
        sys.exit(1)

    content = calendar_file.read_text(encoding='utf-8')
    sections, tasks = parse_markdown(content, settings.date_priority, settings.recognized_date_format)
    return calendar_file, content, sections, tasks


def _get_task(tasks, line_id):
    task = tasks.get(str(line_id))
    if task is None:
        raise ValueError(f"No dated task on line {line_id}")
    return task


def _save(calendar_file, content, message):
    atomic_write(calendar_file, content)
    print(f"✅ {message}")


def cmd_dates(args):
    """Show every date field found in a line."""
    fields = extract_all_dates(args.line, args.format)
    if args.json:
        print(json.dumps([field.to_dict() for field in fields], indent=2))
        return
    if not fields:
        print("No dates found.")
        return
    for field in fields:
        info = field.to_dict()
        print(f"{get_date_type_label(field.type):<10} {info['date']:<16} {field.format:<17} [{field.start}:{field.end}] {field.raw}")


def cmd_primary(args):
    settings = load_settings()
    field = get_primary_date(args.line, settings.date_priority, args.format)
    if args.json:
        print(json.dumps(field.to_dict() if field else None, indent=2))
        return
    if field is None:
        print("No dates found.")
        return
    print(f"{get_date_type_label(field.type)}: {field.to_dict()['date']}")


def cmd_strip(args):
    print(strip_dates(args.line))


def cmd_format(args):
    field_type = parse_date_priority([args.type])[0]
    when = args.date
    if args.time:
        clock = datetime.strptime(args.time.strip(), '%H:%M')
        when = args.date.replace(hour=clock.hour, minute=clock.minute)
    print(format_date(field_type, when, args.style, bool(args.time)))


def cmd_sections(args):
    settings = load_settings()
    _, _, sections, _ = _load_calendar(settings)
    payload = [
        {
            'id': section.id,
            'name': section.name,
            'level': section.level,
            'parent_id': section.parent_id,
            'tasks': len(section.tasks),
        }
        for section in sections.values()
    ]
    if args.json:
        print(json.dumps(payload, indent=2))
        return
    for item in payload:
        indent = '  ' if item['level'] == 2 else ''
        print(f"{indent}{item['name']} ({item['tasks']} tasks)")


def cmd_events(args):
    """Calendar events for a section (Default unless --section/--all)."""
    settings = load_settings()
    calendar_file, _, sections, _ = _load_calendar(settings)
    section_id = None if args.all else (args.section or DEFAULT_SECTION_ID)

    def color_for(task):
        return get_event_color(
            task, str(calendar_file), sections, settings.colors,
            is_dark_mode=args.dark, is_all_sections_view=args.all,
        )

    events = section_events(sections, section_id, settings.show_completed, color_for)
    if args.json:
        print(json.dumps(events, indent=2))
        return
    if not events:
        print("No events found.")
        return
    for event in events:
        checkbox = '✅' if event['metadata']['completed'] else '⬜'
        span = event['start'] if event['start'] == event['end'] else f"{event['start']} → {event['end']}"
        print(f"{checkbox} [{event['id']}] {event['title']} ({span})")


def cmd_add(args):
    """Create a task from a date or date range, as a calendar selection would."""
    settings = load_settings()
    calendar_file, content, sections, _ = _load_calendar(settings)
    plan = plan_selection(settings.recognized_date_format, args.start, args.end or args.start)
    new_content = create_task(
        content,
        sections,
        args.section or DEFAULT_SECTION_ID,
        args.title,
        settings.recognized_date_format,
        plan['start_date'],
        plan['end_date'],
        plan['start_time'],
        plan['end_time'],
    )
    _save(calendar_file, new_content, f"Task created: {args.title.strip()}")


def cmd_move(args):
    settings = load_settings()
    calendar_file, content, _, tasks = _load_calendar(settings)
    task = _get_task(tasks, args.id)
    new_content = move_task(content, task, args.start, args.end)
    time_str = f" {args.start.strftime('%H:%M')}" if args.start.hour or args.start.minute else ''
    _save(calendar_file, new_content, f"Rescheduled to {args.start.strftime('%Y-%m-%d')}{time_str}")


def cmd_resize(args):
    settings = load_settings()
    calendar_file, content, _, tasks = _load_calendar(settings)
    task = _get_task(tasks, args.id)
    _save(calendar_file, resize_task(content, task, args.start, args.end), "Task date updated")


def cmd_complete(args):
    settings = load_settings()
    calendar_file, content, _, tasks = _load_calendar(settings)
    task = _get_task(tasks, args.id)
    new_content = complete_task(
        content,
        task,
        settings.recognized_date_format,
        settings.move_on_complete,
        settings.completed_section_name,
        args.today.date() if args.today else None,
    )
    if task.completed:
        message = "Task uncompleted"
    elif settings.move_on_complete and settings.completed_section_name:
        message = f'Moved to "{settings.completed_section_name}"'
    else:
        message = "Task completed"
    _save(calendar_file, new_content, message)


def cmd_delete(args):
    settings = load_settings()
    calendar_file, content, _, tasks = _load_calendar(settings)
    task = _get_task(tasks, args.id)
    _save(calendar_file, delete_task(content, task), "Task deleted")


def cmd_new_section(args):
    settings = load_settings()
    calendar_file, content, _, _ = _load_calendar(settings)
    _save(calendar_file, create_section(content, args.name), f'Calendar "{args.name.strip()}" created')


def cmd_color(args):
    settings = load_settings()
    calendar_file, _, sections, tasks = _load_calendar(settings)
    task = _get_task(tasks, args.id)
    print(get_event_color(
        task, str(calendar_file), sections, settings.colors,
        is_dark_mode=args.dark, is_all_sections_view=args.all,
    ))


def main():
    parser = argparse.ArgumentParser(description='Markdown Task Calendar CLI')
    subparsers = parser.add_subparsers(dest='command', required=True)

    dates_parser = subparsers.add_parser('dates', help='List date fields in a line')
    dates_parser.add_argument('line', help='Task line')
    dates_parser.add_argument('--format', choices=DATE_FORMATS, help='Only this date format')
    dates_parser.add_argument('--json', action='store_true', help='JSON output')
    dates_parser.set_defaults(func=cmd_dates)

    primary_parser = subparsers.add_parser('primary', help='Show the primary date of a line')
    primary_parser.add_argument('line', help='Task line')
    primary_parser.add_argument('--format', choices=DATE_FORMATS, help='Only this date format')
    primary_parser.add_argument('--json', action='store_true', help='JSON output')
    primary_parser.set_defaults(func=cmd_primary)

    strip_parser = subparsers.add_parser('strip', help='Remove date fields from a line')
    strip_parser.add_argument('line', help='Task line')
    strip_parser.set_defaults(func=cmd_strip)

    format_parser = subparsers.add_parser('format', help='Format a date field')
    format_parser.add_argument('type', help='Date type (due, start, scheduled, created, done, cancelled)')
    format_parser.add_argument('date', type=parse_when, help='Date (YYYY-MM-DD)')
    format_parser.add_argument('--style', default='tasks', choices=FIELD_FORMATS)
    format_parser.add_argument('--time', help='Time of day (HH:MM)')
    format_parser.set_defaults(func=cmd_format)

    sections_parser = subparsers.add_parser('sections', help='List calendar sections')
    sections_parser.add_argument('--json', action='store_true', help='JSON output')
    sections_parser.set_defaults(func=cmd_sections)

    events_parser = subparsers.add_parser('events', help='Show calendar events')
    events_parser.add_argument('--section', help='Section id (default: Default)')
    events_parser.add_argument('--all', action='store_true', help='All sections together')
    events_parser.add_argument('--dark', action='store_true', help='Resolve dark-mode colours')
    events_parser.add_argument('--json', action='store_true', help='JSON output')
    events_parser.set_defaults(func=cmd_events)

    add_parser = subparsers.add_parser('add', help='Add a task')
    add_parser.add_argument('title', help='Task title')
    add_parser.add_argument('--start', required=True, type=parse_when, help='Start date/time')
    add_parser.add_argument('--end', type=parse_when, help='End date/time')
    add_parser.add_argument('--section', help='Section id to add to')
    add_parser.set_defaults(func=cmd_add)

    for name, func, help_text in (
        ('move', cmd_move, 'Drag a task to a new date'),
        ('resize', cmd_resize, 'Resize a task to a new range'),
    ):
        gesture = subparsers.add_parser(name, help=help_text)
        gesture.add_argument('id', type=int, help='Task line number (0-based)')
        gesture.add_argument('--start', required=True, type=parse_when, help='New start as reported by the calendar')
        gesture.add_argument('--end', required=True, type=parse_when, help='New end as reported by the calendar')
        gesture.set_defaults(func=func)

    complete_parser = subparsers.add_parser('complete', help='Toggle task completion')
    complete_parser.add_argument('id', type=int, help='Task line number (0-based)')
    complete_parser.add_argument('--today', type=parse_when, help='Completion date override')
    complete_parser.set_defaults(func=cmd_complete)

    delete_parser = subparsers.add_parser('delete', help='Delete a task')
    delete_parser.add_argument('id', type=int, help='Task line number (0-based)')
    delete_parser.set_defaults(func=cmd_delete)

    section_parser = subparsers.add_parser('new-section', help='Append a calendar section')
    section_parser.add_argument('name', help='Section name')
    section_parser.set_defaults(func=cmd_new_section)

    color_parser = subparsers.add_parser('color', help='Resolve the colour of a task')
    color_parser.add_argument('id', type=int, help='Task line number (0-based)')
    color_parser.add_argument('--dark', action='store_true', help='Dark mode')
    color_parser.add_argument('--all', action='store_true', help='All-sections view')
    color_parser.set_defaults(func=cmd_color)

    args = parser.parse_args()
    try:
        args.func(args)
    except ValueError as exc:
        logger.error(str(exc))
        sys.exit(1)


if __name__ == '__main__':
    main()
