import json
import os
import subprocess
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]

CALENDAR = """---
calendar-plugin: basic
---

- [ ] Inbox 📅 2025-01-05
# Work
- [ ] Report 📅 2025-01-06
- [x] Review 📅 2025-01-07 ✅ 2025-01-07
- [ ] Card @{2025-01-08} @@{18:00}
"""


def _write_calendar(tmp_path):
    calendar = tmp_path / "Calendar.md"
    calendar.write_text(CALENDAR, encoding="utf-8")
    return calendar


def _env(tmp_path, calendar=None):
    env = os.environ.copy()
    env["TASK_CALENDAR_FILE"] = str(calendar or tmp_path / "Calendar.md")
    env["TASK_CALENDAR_SETTINGS_FILE"] = str(tmp_path / "settings.json")
    env.pop("TASK_CALENDAR_DATE_FORMAT", None)
    env.pop("TASK_CALENDAR_DATE_PRIORITY", None)
    return env


def _run(env, *args):
    return subprocess.run(
        ["python3", "scripts/calendar_tasks.py", *args],
        capture_output=True,
        text=True,
        check=False,
        env=env,
        cwd=REPO_ROOT,
    )


def test_dates_json(tmp_path):
    proc = _run(_env(tmp_path), "dates", "- [ ] Ship release 📅 2025-11-29 🛫 2025-11-20", "--json")
    assert proc.returncode == 0
    payload = json.loads(proc.stdout)
    assert [item["type"] for item in payload] == ["due", "start"]
    assert payload[1]["date"] == "2025-11-20"
    assert payload[0]["format"] == "tasks"


def test_primary_and_strip(tmp_path):
    env = _env(tmp_path)
    line = "- [ ] Ship release 📅 2025-11-29 🛫 2025-11-20"

    primary = _run(env, "primary", line, "--json")
    assert primary.returncode == 0
    assert json.loads(primary.stdout)["type"] == "due"

    stripped = _run(env, "strip", line)
    assert stripped.returncode == 0
    assert stripped.stdout == "- [ ] Ship release\n"


def test_format(tmp_path):
    proc = _run(_env(tmp_path), "format", "due", "2025-11-29", "--style", "dataview-bracket", "--time", "14:30")
    assert proc.returncode == 0
    assert proc.stdout.strip() == "[due:: 2025-11-29T14:30]"

    done = _run(_env(tmp_path), "format", "done", "2025-11-29")
    assert done.stdout.strip() == "✅ 2025-11-29"


def test_sections_and_events(tmp_path):
    calendar = _write_calendar(tmp_path)
    env = _env(tmp_path, calendar)

    sections = _run(env, "sections", "--json")
    assert sections.returncode == 0
    assert [item["name"] for item in json.loads(sections.stdout)] == ["Default", "Work"]

    events = _run(env, "events", "--section", "Work", "--json")
    assert events.returncode == 0
    payload = json.loads(events.stdout)
    assert [event["title"] for event in payload] == ["Report", "Review", "Card"]
    assert payload[0]["color"] == "#6366f1"
    assert payload[2]["start"] == "2025-01-08 18:00"
    assert payload[2]["duration_editable"] is False

    everything = _run(env, "events", "--all", "--json")
    assert len(json.loads(everything.stdout)) == 4


def test_hide_completed_setting(tmp_path):
    calendar = _write_calendar(tmp_path)
    (tmp_path / "settings.json").write_text(json.dumps({"showCompleted": False}))
    proc = _run(_env(tmp_path, calendar), "events", "--all", "--json")
    assert proc.returncode == 0
    assert "Review" not in [event["title"] for event in json.loads(proc.stdout)]


def test_add_move_and_complete(tmp_path):
    calendar = _write_calendar(tmp_path)
    env = _env(tmp_path, calendar)

    added = _run(env, "add", "Write docs", "--start", "2025-01-09 09:00", "--end", "2025-01-09 10:00", "--section", "Work")
    assert added.returncode == 0
    lines = calendar.read_text(encoding="utf-8").split("\n")
    assert lines[9] == "- [ ] Write docs 🛫 2025-01-09 09:00 📅 2025-01-09 10:00"

    moved = _run(env, "move", "6", "--start", "2025-01-10", "--end", "2025-01-11")
    assert moved.returncode == 0
    assert calendar.read_text(encoding="utf-8").split("\n")[6] == "- [ ] Report 📅 2025-01-10"

    completed = _run(env, "complete", "6", "--today", "2025-01-12")
    assert completed.returncode == 0
    assert calendar.read_text(encoding="utf-8").split("\n")[6] == "- [x] Report 📅 2025-01-10 ✅ 2025-01-12"


def test_new_section_and_delete(tmp_path):
    calendar = _write_calendar(tmp_path)
    env = _env(tmp_path, calendar)

    assert _run(env, "delete", "4").returncode == 0
    assert "Inbox" not in calendar.read_text(encoding="utf-8")

    assert _run(env, "new-section", "Home").returncode == 0
    assert calendar.read_text(encoding="utf-8").endswith("\n## Home\n")


def test_kanban_resize_is_refused(tmp_path):
    calendar = _write_calendar(tmp_path)
    proc = _run(_env(tmp_path, calendar), "resize", "8", "--start", "2025-01-08", "--end", "2025-01-10")
    assert proc.returncode == 1
    assert "Kanban format does not support resize" in proc.stderr
    assert calendar.read_text(encoding="utf-8") == CALENDAR


def test_unknown_task(tmp_path):
    calendar = _write_calendar(tmp_path)
    proc = _run(_env(tmp_path, calendar), "delete", "5")
    assert proc.returncode == 1
    assert "No dated task on line 5" in proc.stderr


def test_missing_calendar_file(tmp_path):
    proc = _run(_env(tmp_path), "events")
    assert proc.returncode == 1
    assert "Calendar file not found" in proc.stderr
