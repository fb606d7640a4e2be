import curses
from datetime import datetime, timezone
from pathlib import Path

import timers
from timers import Throbber, TimerRecord, build_rows, decode_key, pretty_duration


def on_day(day, name, running=False):
    start = datetime(2024, 5, day, 9, 0, tzinfo=timezone.utc)
    return TimerRecord(name=name, start_time=start, running=running)


class TestBuildRows:
    def test_empty(self):
        assert build_rows([], Throbber()) == ([], [])

    def test_date_headers_between_groups(self):
        records = [on_day(17, "A"), on_day(17, "B"), on_day(18, "C")]
        rows, mask = build_rows(records, Throbber())
        assert mask == [False, True, True, False, True]
        assert rows[0].cells[0] == "17-05-2024"
        assert rows[3].cells[0] == "18-05-2024"
        assert [rows[i].cells[0] for i in (1, 2, 4)] == ["A", "B", "C"]

    def test_spinner_only_on_running_row(self):
        throbber = Throbber()
        throbber.advance()
        rows, _ = build_rows([on_day(17, "A"), on_day(17, "B", running=True)], throbber)
        assert rows[1].cells[3] == ""
        assert rows[2].cells[3] == "\\"


class TestThrobber:
    def test_cycles_through_frames(self):
        throbber = Throbber()
        frames = []
        for _ in range(5):
            frames.append(throbber.frame)
            throbber.advance()
        assert frames == ["-", "\\", "|", "/", "-"]


class TestDecodeKey:
    def test_control_characters(self):
        assert decode_key("\n") == timers.ENTER
        assert decode_key("\r") == timers.ENTER
        assert decode_key("\t") == timers.TAB
        assert decode_key("\x7f") == timers.BACKSPACE
        assert decode_key("\x1b") == timers.ESC
        assert decode_key("\x03") == timers.CTRL_C
        assert decode_key("\x01") is None

    def test_special_keys(self):
        assert decode_key(curses.KEY_UP) == timers.UP
        assert decode_key(curses.KEY_BACKSPACE) == timers.BACKSPACE
        assert decode_key(curses.KEY_RESIZE) is None

    def test_printable(self):
        assert decode_key("a") == "a"
        assert decode_key(" ") == " "
        assert decode_key("é") == "é"


class TestFormatting:
    def test_pretty_duration(self):
        assert pretty_duration(0) == "00:00:00"
        assert pretty_duration(3725) == "01:02:05"
        assert pretty_duration(90000) == "25:00:00"

    def test_record_formatting(self):
        record = on_day(3, "A")
        record.elapsed = 61
        assert record.formatted_duration() == "00:01:01"
        assert record.formatted_date() == "03-05-2024"


class TestDataDir:
    def test_xdg_data_home(self, monkeypatch, tmp_path):
        monkeypatch.setattr(timers.sys, "platform", "linux")
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
        assert timers.user_data_dir() == tmp_path / "timers"

    def test_windows_appdata(self, monkeypatch, tmp_path):
        monkeypatch.setattr(timers.sys, "platform", "win32")
        monkeypatch.setenv("APPDATA", str(tmp_path))
        assert timers.user_data_dir() == Path(tmp_path) / "timers"


def test_main_fails_when_storage_is_unreachable(monkeypatch, tmp_path, capsys):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    monkeypatch.setattr(timers, "user_data_dir", lambda: blocker / "timers")
    assert timers.main() == 1
    assert "timers:" in capsys.readouterr().err
