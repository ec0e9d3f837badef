"""Event colour resolution.

Priority, highest first:
1. Conditional rules, in list order (first enabled, applicable, matching rule wins)
2. Section colour (only when all sections are shown together)
3. Calendar file colour
4. Global default
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import date

from task_calendar.markdown import CalendarSection, TaskLine
from task_dates.grammar import DateFieldType

CONDITION_TYPES = {
    'is_overdue': 'Is Overdue',
    'is_completed': 'Is Completed',
    'has_tag': 'Has Tag',
    'title_contains': 'Title Contains',
    'section_is': 'In Section',
    'has_due': 'Has Due Date',
    'always': 'Always',
}

VALUE_CONDITIONS = {'has_tag', 'title_contains', 'section_is'}


@dataclass
class ColorTheme:
    light: str
    dark: str

    @classmethod
    def from_dict(cls, data: dict, fallback: ColorTheme | None = None) -> ColorTheme:
        return cls(
            light=data.get('light', fallback.light if fallback else ''),
            dark=data.get('dark', fallback.dark if fallback else ''),
        )

    def resolve(self, is_dark_mode: bool) -> str:
        return self.dark if is_dark_mode else self.light


@dataclass
class ColorRule:
    id: str
    enabled: bool
    name: str
    condition_type: str
    color: ColorTheme
    condition_value: str | None = None
    apply_to_files: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> ColorRule:
        condition_type = data.get('condition_type', data.get('conditionType'))
        if condition_type not in CONDITION_TYPES:
            raise ValueError(f"Unknown color condition: {condition_type!r}")
        return cls(
            id=str(data.get('id', '')),
            enabled=bool(data.get('enabled', True)),
            name=data.get('name', ''),
            condition_type=condition_type,
            color=ColorTheme.from_dict(data.get('color', {})),
            condition_value=data.get('condition_value', data.get('conditionValue')),
            apply_to_files=list(data.get('apply_to_files', data.get('applyToFiles')) or []),
        )


@dataclass
class CalendarSourceConfig:
    color: ColorTheme | None = None
    section_colors: dict[str, ColorTheme] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> CalendarSourceConfig:
        color = data.get('color')
        section_colors = data.get('section_colors', data.get('sectionColors')) or {}
        return cls(
            color=ColorTheme.from_dict(color) if color else None,
            section_colors={key: ColorTheme.from_dict(value) for key, value in section_colors.items()},
        )


DEFAULT_EVENT_COLOR = ColorTheme(light='#6366f1', dark='#818cf8')


@dataclass
class ColorSettings:
    default_event_color: ColorTheme = field(
        default_factory=lambda: ColorTheme(DEFAULT_EVENT_COLOR.light, DEFAULT_EVENT_COLOR.dark)
    )
    color_rules: list[ColorRule] = field(default_factory=list)
    calendar_sources: dict[str, CalendarSourceConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> ColorSettings:
        """Build settings from saved JSON, filling gaps from the defaults."""
        default_color = data.get('default_event_color', data.get('defaultEventColor')) or {}
        rules = data.get('color_rules', data.get('colorRules')) or []
        sources = data.get('calendar_sources', data.get('calendarSources')) or {}
        return cls(
            default_event_color=ColorTheme.from_dict(default_color, DEFAULT_EVENT_COLOR),
            color_rules=[ColorRule.from_dict(rule) for rule in rules],
            calendar_sources={path: CalendarSourceConfig.from_dict(cfg) for path, cfg in sources.items()},
        )


def get_condition_type_label(condition_type: str) -> str:
    return CONDITION_TYPES.get(condition_type, condition_type)


def condition_requires_value(condition_type: str) -> bool:
    return condition_type in VALUE_CONDITIONS


def check_condition(
    task: TaskLine,
    rule: ColorRule,
    sections: dict[str, CalendarSection],
    today: date | None = None,
) -> bool:
    condition = rule.condition_type
    value = rule.condition_value

    if condition == 'is_overdue':
        if task.completed or task.date is None:
            return False
        return task.date.date() < (today or date.today())
    if condition == 'is_completed':
        return task.completed
    if condition == 'has_tag':
        if not value:
            return False
        tag = value if value.startswith('#') else f'#{value}'
        return tag in task.title or tag in task.markdown
    if condition == 'title_contains':
        if not value:
            return False
        return value.lower() in task.title.lower()
    if condition == 'section_is':
        if not value:
            return False
        section = sections.get(task.section_id)
        return section is not None and section.name.lower() == value.lower()
    if condition == 'has_due':
        return any(field.type == DateFieldType.Due for field in task.all_dates)
    if condition == 'always':
        return True
    return False


def get_event_color(
    task: TaskLine,
    file_path: str,
    sections: dict[str, CalendarSection],
    colors: ColorSettings,
    is_dark_mode: bool = False,
    is_all_sections_view: bool = False,
    today: date | None = None,
) -> str:
    """Colour for one event."""
    for rule in colors.color_rules:
        if not rule.enabled:
            continue
        if rule.apply_to_files and file_path not in rule.apply_to_files:
            continue
        if check_condition(task, rule, sections, today):
            return rule.color.resolve(is_dark_mode)

    source = colors.calendar_sources.get(file_path)
    if is_all_sections_view and source and task.section_id in source.section_colors:
        return source.section_colors[task.section_id].resolve(is_dark_mode)
    if source and source.color:
        return source.color.resolve(is_dark_mode)
    return colors.default_event_color.resolve(is_dark_mode)


def hash_string_to_color(text: str, is_dark_mode: bool = False) -> str:
    """Deterministic HSL colour for a string, such as a file path."""
    value = 0
    for char in text:
        # Same 32-bit rolling hash as a JS ``(hash << 5) - hash`` loop
        value = (ord(char) + ((value << 5) - value)) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 0x100000000

    hue = abs(value) % 360
    saturation = 55 if is_dark_mode else 65
    lightness = 55 if is_dark_mode else 45
    return f'hsl({hue}, {saturation}%, {lightness}%)'


def generate_random_color_theme() -> ColorTheme:
    hue = random.randrange(360)
    return ColorTheme(light=f'hsl({hue}, 65%, 45%)', dark=f'hsl({hue}, 55%, 55%)')


def is_color_dark(color: str) -> bool:
    """Luminance check for ``#rrggbb`` colours. Anything else counts as light."""
    if not color.startswith('#'):
        return False
    hex_value = color[1:]
    red = int(hex_value[0:2], 16)
    green = int(hex_value[2:4], 16)
    blue = int(hex_value[4:6], 16)
    luminance = (0.299 * red + 0.587 * green + 0.114 * blue) / 255
    return luminance < 0.5
