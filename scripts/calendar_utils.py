#!/usr/bin/env python3
"""
Shared configuration and file helpers for the markdown task calendar.

Configuration via environment variables:
- TASK_CALENDAR_FILE: Path to the calendar markdown file
- TASK_CALENDAR_SETTINGS_FILE: Path to a JSON settings file
- TASK_CALENDAR_DATE_FORMAT: Recognised date format (tasks, dataview, simple, kanban)
- TASK_CALENDAR_DATE_PRIORITY: Comma-separated date types, highest priority first
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

_SCRIPT_DIR = Path(__file__).parent.resolve()
if str(_SCRIPT_DIR / "lib") not in sys.path:
    sys.path.insert(0, str(_SCRIPT_DIR / "lib"))

from task_calendar.colors import ColorSettings
from task_dates.grammar import DATE_FORMATS, DateFieldType
from task_dates.parser import DEFAULT_DATE_PRIORITY

DEFAULT_CALENDAR_FILE = Path.home() / "Obsidian" / "Calendar.md"
SETTINGS_FILENAME = ".calendar-settings.json"

# Saved settings may use the camelCase keys of the Obsidian plugin data.json
_CAMEL_KEYS = {
    'defaultView': 'default_view',
    'weekStart': 'week_start',
    'showCompleted': 'show_completed',
    'showEventCheckbox': 'show_event_checkbox',
    'moveOnComplete': 'move_on_complete',
    'completedSectionName': 'completed_section_name',
    'datePriority': 'date_priority',
    'recognizedDateFormat': 'recognized_date_format',
}


@dataclass
class CalendarSettings:
    default_view: str = 'month'
    week_start: int = 1
    show_completed: bool = True
    show_event_checkbox: bool = False
    move_on_complete: bool = False
    completed_section_name: str = 'Done'
    date_priority: list[DateFieldType] = field(default_factory=lambda: list(DEFAULT_DATE_PRIORITY))
    recognized_date_format: str = 'tasks'
    colors: ColorSettings = field(default_factory=ColorSettings)


def parse_date_priority(value) -> list[DateFieldType]:
    """Accept a list or comma-separated string of date type names."""
    if isinstance(value, str):
        value = [part for part in value.split(',') if part.strip()]
    priority = []
    for name in value:
        key = str(name).strip().lower()
        if key == 'done':
            key = DateFieldType.Done.value
        try:
            priority.append(DateFieldType(key))
        except ValueError:
            raise ValueError(f"Unknown date type in priority: {name!r}") from None
    return priority


def validate_date_format(value: str) -> str:
    if value not in DATE_FORMATS:
        raise ValueError(f"Unknown date format {value!r} (expected one of: {', '.join(DATE_FORMATS)})")
    return value


def get_calendar_file() -> Path:
    """Calendar file from TASK_CALENDAR_FILE, or the default location."""
    return Path(os.getenv('TASK_CALENDAR_FILE', DEFAULT_CALENDAR_FILE)).expanduser()


def get_settings_file(calendar_file: Path | None = None) -> Path:
    explicit = os.getenv('TASK_CALENDAR_SETTINGS_FILE')
    if explicit:
        return Path(explicit).expanduser()
    return (calendar_file or get_calendar_file()).parent / SETTINGS_FILENAME


def settings_from_dict(data: dict) -> CalendarSettings:
    """Merge saved settings over the defaults."""
    settings = CalendarSettings()
    for raw_key, value in data.items():
        key = _CAMEL_KEYS.get(raw_key, raw_key)
        if key == 'colors':
            settings.colors = ColorSettings.from_dict(value or {})
        elif key == 'date_priority':
            settings.date_priority = parse_date_priority(value)
        elif key == 'recognized_date_format':
            settings.recognized_date_format = validate_date_format(value)
        elif hasattr(settings, key):
            setattr(settings, key, value)
    return settings


def load_settings(settings_file: Path | None = None) -> CalendarSettings:
    """Load settings from JSON (when present), then apply env overrides.

    Raises:
        ValueError: The settings file is not a JSON object, or a value is unknown
    """
    path = settings_file or get_settings_file()
    data = {}
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Settings file {path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a JSON object")

    settings = settings_from_dict(data)

    env_format = os.getenv('TASK_CALENDAR_DATE_FORMAT')
    if env_format:
        settings.recognized_date_format = validate_date_format(env_format.strip().lower())
    env_priority = os.getenv('TASK_CALENDAR_DATE_PRIORITY')
    if env_priority:
        settings.date_priority = parse_date_priority(env_priority)

    return settings


def atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
