"""Tests for date field extraction across the four grammars."""

import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "scripts" / "lib"))

from task_dates.grammar import (
    DateFieldType,
    extract_dataview_dates,
    extract_emoji_dates,
    extract_kanban_dates,
    extract_simple_dates,
    parse_clock,
    parse_date_literal,
)
from task_dates.parser import (
    extract_all_dates,
    get_date_by_type,
    get_primary_date,
    has_date,
)


def _assert_spans(line, fields):
    for field in fields:
        assert line[field.start:field.end] == field.raw


class TestEmojiGrammar:
    def test_due_date(self):
        line = "- [ ] Ship 📅 2025-11-29"
        fields = extract_emoji_dates(line)
        assert len(fields) == 1
        field = fields[0]
        assert field.type == DateFieldType.Due
        assert field.date == datetime(2025, 11, 29)
        assert field.raw == "📅 2025-11-29"
        assert field.format == "tasks"
        assert field.has_time is False
        _assert_spans(line, fields)

    def test_due_date_with_time(self):
        fields = extract_emoji_dates("Call 📅 2025-11-29 14:30")
        assert fields[0].date == datetime(2025, 11, 29, 14, 30)
        assert fields[0].has_time is True
        assert fields[0].raw == "📅 2025-11-29 14:30"

    def test_all_symbols(self):
        line = "🛫 2025-11-01 ⏳ 2025-11-02 📅 2025-11-03 ➕ 2025-10-30 ✅ 2025-11-04 ❌ 2025-11-05"
        types = {field.type for field in extract_emoji_dates(line)}
        assert types == set(DateFieldType)

    def test_alternate_symbols(self):
        assert extract_emoji_dates("📆 2025-01-02")[0].type == DateFieldType.Due
        assert extract_emoji_dates("🗓 2025-01-02")[0].type == DateFieldType.Due
        assert extract_emoji_dates("⌛ 2025-01-02")[0].type == DateFieldType.Scheduled

    def test_variation_selector(self):
        fields = extract_emoji_dates("Pay \u2705\ufe0f 2025-01-02")
        assert len(fields) == 1
        assert fields[0].type == DateFieldType.Done

    def test_impossible_date_is_skipped(self):
        assert extract_emoji_dates("📅 2025-02-30") == []

    def test_out_of_range_time_drops_field(self):
        assert extract_emoji_dates("📅 2025-02-03 25:00") == []


class TestDataviewGrammar:
    def test_bracket_field(self):
        line = "Task [due:: 2025-11-29]"
        fields = extract_dataview_dates(line)
        assert len(fields) == 1
        assert fields[0].type == DateFieldType.Due
        assert fields[0].format == "dataview-bracket"
        assert fields[0].raw == "[due:: 2025-11-29]"
        _assert_spans(line, fields)

    def test_paren_field_with_time(self):
        fields = extract_dataview_dates("Task (start:: 2025-11-29T09:15)")
        assert fields[0].type == DateFieldType.Start
        assert fields[0].format == "dataview-paren"
        assert fields[0].date == datetime(2025, 11, 29, 9, 15)
        assert fields[0].has_time is True

    def test_key_aliases(self):
        line = "[Due Date:: 2025-01-01] [completion:: 2025-01-02] [canceled:: 2025-01-03] [scheduleddate:: 2025-01-04]"
        types = [field.type for field in extract_dataview_dates(line)]
        assert types == [
            DateFieldType.Due,
            DateFieldType.Done,
            DateFieldType.Cancelled,
            DateFieldType.Scheduled,
        ]

    def test_unknown_key_is_ignored(self):
        fields = extract_dataview_dates("[priority:: high] [due:: 2025-11-29]")
        assert [field.type for field in fields] == [DateFieldType.Due]

    def test_nested_brackets_in_value(self):
        line = "[due:: 2025-11-29 [note]] after"
        fields = extract_dataview_dates(line)
        assert len(fields) == 1
        assert fields[0].raw == "[due:: 2025-11-29 [note]]"
        _assert_spans(line, fields)

    def test_bracket_inside_key_rejects_candidate(self):
        assert extract_dataview_dates("[see [x] due:: 2025-11-29]") == []

    def test_escaped_separator(self):
        assert extract_dataview_dates(r"[due\:: 2025-11-29]") == []

    def test_unclosed_field(self):
        assert extract_dataview_dates("[due:: 2025-11-29") == []

    def test_invalid_value(self):
        assert extract_dataview_dates("[due:: 2025-13-01]") == []
        assert extract_dataview_dates("[due:: tomorrow]") == []


class TestSimpleAndKanban:
    def test_simple_is_always_due(self):
        fields = extract_simple_dates("Pay rent @ 2025-12-01")
        assert len(fields) == 1
        assert fields[0].type == DateFieldType.Due
        assert fields[0].format == "simple"
        assert fields[0].raw == "@ 2025-12-01"

    def test_simple_without_space(self):
        assert extract_simple_dates("Pay rent @2025-12-01")[0].date == datetime(2025, 12, 1)

    def test_kanban_with_time(self):
        fields = extract_kanban_dates("@{2025-03-01} @@{09:00}")
        assert len(fields) == 1
        assert fields[0].type == DateFieldType.Due
        assert fields[0].has_time is True
        assert fields[0].date == datetime(2025, 3, 1, 9, 0)
        assert fields[0].raw == "@{2025-03-01}"

    def test_kanban_time_applies_to_every_date(self):
        fields = extract_kanban_dates("@{2025-03-01} @{2025-03-02} @@{09:00} @@{17:00}")
        assert [field.date for field in fields] == [
            datetime(2025, 3, 1, 9, 0),
            datetime(2025, 3, 2, 9, 0),
        ]

    def test_kanban_invalid_time_keeps_date(self):
        fields = extract_kanban_dates("Card @{2025-03-01} @@{25:00}")
        assert fields[0].has_time is False
        assert fields[0].date == datetime(2025, 3, 1)


def test_literal_helpers():
    assert parse_date_literal("2024-02-29") == datetime(2024, 2, 29)
    assert parse_date_literal("2023-02-29") is None
    assert parse_clock("9:05") == (9, 5)
    assert parse_clock("24:00") is None


def test_release_line_scenario():
    line = "- [ ] Ship release 📅 2025-11-29 🛫 2025-11-20"
    fields = extract_all_dates(line)
    assert [field.type for field in fields] == [DateFieldType.Due, DateFieldType.Start]
    assert fields[0].start == line.index("📅")
    assert fields[1].start == line.index("🛫")
    assert fields[1].date == datetime(2025, 11, 20)
    _assert_spans(line, fields)
    assert get_primary_date(line).type == DateFieldType.Due


def test_format_filter_runs_one_grammar():
    fields = extract_all_dates("Task [due:: 2025-01-15] [start:: 2025-01-10] 📅 2025-02-01", "dataview")
    assert [field.type for field in fields] == [DateFieldType.Due, DateFieldType.Start]
    assert all(field.format == "dataview-bracket" for field in fields)


def test_unknown_format_filter_finds_nothing():
    assert extract_all_dates("📅 2025-02-01", "bogus") == []


def test_mixed_formats_in_one_line():
    line = "Plan 🛫 2025-01-10 [due:: 2025-01-15] @ 2025-01-20 @{2025-01-25}"
    fields = extract_all_dates(line)
    assert [field.format for field in fields] == ["tasks", "dataview-bracket", "simple", "kanban"]
    _assert_spans(line, fields)


def test_overlap_keeps_earliest_field():
    line = "[due:: 2025-11-29 📅 2025-12-01]"
    fields = extract_all_dates(line)
    assert len(fields) == 1
    assert fields[0].format == "dataview-bracket"
    assert fields[0].date == datetime(2025, 11, 29)


def test_overlap_with_simple_marker():
    fields = extract_all_dates("[due:: 2025-11-29 @ 2025-12-01]")
    assert [field.format for field in fields] == ["dataview-bracket"]


def test_no_dates():
    assert extract_all_dates("") == []
    assert extract_all_dates("- [ ] Just a task") == []
    assert has_date("- [ ] Just a task") is False
    assert has_date("- [ ] Dated @ 2025-01-01") is True


def test_extraction_is_repeatable():
    line = "A @{2025-03-01} @@{09:00} 📅 2025-03-02"
    assert extract_all_dates(line) == extract_all_dates(line)


class TestPrimaryDate:
    line = "Plan ➕ 2025-10-30 🛫 2025-11-01 ⏳ 2025-11-03 📅 2025-11-05"

    def test_default_priority_prefers_due(self):
        assert get_primary_date(self.line).type == DateFieldType.Due

    def test_custom_priority(self):
        primary = get_primary_date(self.line, [DateFieldType.Start, DateFieldType.Due])
        assert primary.type == DateFieldType.Start

    def test_falls_back_to_leftmost(self):
        primary = get_primary_date("Done ✅ 2025-11-02 ➕ 2025-10-30", [DateFieldType.Due])
        assert primary.type == DateFieldType.Done

    def test_empty_priority_returns_first_by_position(self):
        assert get_primary_date(self.line, []).type == DateFieldType.Created

    def test_no_dates(self):
        assert get_primary_date("nothing here") is None
        assert get_primary_date("nothing here", []) is None

    def test_format_filter(self):
        primary = get_primary_date("📅 2025-01-01 @ 2025-02-02", format_filter="simple")
        assert primary.format == "simple"

    def test_get_date_by_type(self):
        assert get_date_by_type(self.line, DateFieldType.Scheduled).date == datetime(2025, 11, 3)
        assert get_date_by_type(self.line, DateFieldType.Cancelled) is None
