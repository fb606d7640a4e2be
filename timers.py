#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Terminal Timers
===============

Single‑file Python app with a curses interface for tracking named work
intervals from the terminal.

Features
--------
- Start a named timer with an optional description (the previous one stops)
- Start/Stop the latest timer, live elapsed time with a spinner
- Timers grouped by start date
- Edit name/description, delete with a double key press
- SQLite persistence in user data folder

Dependencies
------------
- Python 3.9+
- curses (bundled on Linux/macOS; on Windows: install `windows-curses`)

Usage
-----
python timers.py

Keys
----
Main screen: i add, e edit, space start/stop, j/k move, dd delete, q quit.
Add/Edit: Tab switches field, Enter submits, Esc cancels.

License: MIT
"""
from __future__ import annotations

import curses
import logging
import os
import sqlite3
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

APP_NAME = "timers"
DB_NAME = "timers.db"
LOG_NAME = "timers.log"

POLL_INTERVAL_MS = 16
DELETE_WINDOW_S = 0.5

logger = logging.getLogger(APP_NAME)

# ----------------------------
# Utility helpers
# ----------------------------

def user_data_dir() -> Path:
    """Return a per‑user data directory suitable for the platform."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming"
        return Path(base) / APP_NAME
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else:
        # Linux and others
        base = os.environ.get("XDG_DATA_HOME") or (Path.home() / ".local" / "share")
        return Path(base) / APP_NAME


def pretty_duration(seconds: int) -> str:
    neg = seconds < 0
    seconds = abs(int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    sign = "-" if neg else ""
    return f"{sign}{h:02d}:{m:02d}:{s:02d}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def configure_logging(path: Path, level: int = logging.INFO) -> None:
    """Send the app log to a file; the terminal belongs to curses."""
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)


# ----------------------------
# Errors
# ----------------------------

class TimersError(Exception):
    pass


class ValidationError(TimersError):
    """A required field was left empty."""


class NotFoundError(TimersError):
    """The timer is not (or no longer) in the database."""


class StorageError(TimersError):
    """The database could not be opened, read or written."""


# ----------------------------
# Data layer
# ----------------------------

@dataclass
class TimerRecord:
    name: str
    description: str = ""
    start_time: datetime = field(default_factory=utcnow)
    elapsed: int = 0  # whole seconds
    running: bool = False
    id: Optional[int] = None

    def formatted_duration(self) -> str:
        return pretty_duration(self.elapsed)

    def formatted_date(self) -> str:
        return self.start_time.strftime("%d-%m-%Y")


def _parse_start(text: str) -> datetime:
    start = datetime.fromisoformat(text)
    if start.tzinfo is None:
        return start.replace(tzinfo=timezone.utc)
    return start.astimezone(timezone.utc)


class Store:
    FIELDS = ("name", "description", "duration", "running")

    def __init__(self, path: Path):
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(self.path)
            self.conn.row_factory = sqlite3.Row
            self._init_schema()
        except (OSError, sqlite3.Error) as ex:
            raise StorageError(f"Cannot open database {self.path}: {ex}") from ex

    def _init_schema(self):
        cur = self.conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS timers(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT NOT NULL,
                start_time TEXT NOT NULL, -- RFC 3339, UTC
                duration INTEGER NOT NULL,
                running BOOLEAN NOT NULL
            );
            """
        )
        self.conn.commit()

    @contextmanager
    def _query(self, action: str) -> Iterator[sqlite3.Cursor]:
        try:
            yield self.conn.cursor()
            self.conn.commit()
        except sqlite3.Error as ex:
            self.conn.rollback()
            raise StorageError(f"Cannot {action}: {ex}") from ex

    def insert(self, record: TimerRecord) -> int:
        with self._query("insert timer") as cur:
            cur.execute(
                "INSERT INTO timers(name, description, start_time, duration, running) VALUES(?,?,?,?,?)",
                (
                    record.name,
                    record.description,
                    record.start_time.isoformat(),
                    record.elapsed,
                    record.running,
                ),
            )
            record.id = int(cur.lastrowid)
        return record.id

    def list_all(self) -> List[TimerRecord]:
        with self._query("load timers") as cur:
            cur.execute("SELECT id, name, description, start_time, duration, running FROM timers ORDER BY id")
            rows = cur.fetchall()
        return [
            TimerRecord(
                id=int(r["id"]),
                name=r["name"],
                description=r["description"],
                start_time=_parse_start(r["start_time"]),
                elapsed=int(r["duration"]),
                running=bool(r["running"]),
            )
            for r in rows
        ]

    def update_fields(self, timer_id: Optional[int], **fields) -> None:
        """Update only the given columns of one timer."""
        unknown = set(fields) - set(self.FIELDS)
        if unknown:
            raise ValueError(f"Unknown timer fields: {', '.join(sorted(unknown))}")
        if not fields:
            return
        assignments = ", ".join(f"{name}=?" for name in fields)
        with self._query("update timer") as cur:
            cur.execute(f"UPDATE timers SET {assignments} WHERE id=?", (*fields.values(), timer_id))
            found = cur.rowcount
        if not found:
            raise NotFoundError(f"Timer {timer_id} does not exist")

    def update_progress(self, records: Iterable[TimerRecord]) -> None:
        """Write duration and running state of many timers in one transaction."""
        params = [(r.elapsed, r.running, r.id) for r in records if r.id is not None]
        with self._query("save progress") as cur:
            cur.executemany("UPDATE timers SET duration=?, running=? WHERE id=?", params)

    def delete(self, timer_id: Optional[int]) -> None:
        with self._query("delete timer") as cur:
            cur.execute("DELETE FROM timers WHERE id=?", (timer_id,))
            found = cur.rowcount
        if not found:
            raise NotFoundError(f"Timer {timer_id} does not exist")

    def count(self) -> int:
        with self._query("count timers") as cur:
            cur.execute("SELECT COUNT(*) FROM timers")
            return int(cur.fetchone()[0])

    def close(self) -> None:
        self.conn.close()


# ----------------------------
# Session model
# ----------------------------

class TimerList:
    """In-memory timers plus the selection shown on the main screen.

    At most one timer runs at a time. Elapsed time grows in whole seconds
    through ``tick``; the fraction left over stays in the tick reference.
    """

    def __init__(self, store: Store, clock: Callable[[], float] = time.monotonic):
        self.store = store
        self.timers: List[TimerRecord] = []
        self.selected: Optional[int] = None
        self.selectable: List[bool] = []
        self._clock = clock
        self._tick_ref = clock()

    def load(self) -> None:
        records = self.store.list_all()
        running = [r for r in records if r.running]
        for r in running[:-1]:
            r.running = False
        self.timers = records
        self._tick_ref = self._clock()
        if len(running) > 1:
            logger.warning("%d timers were marked running, kept only the latest", len(running))
            self.save_progress()

    def running_timer(self) -> Optional[TimerRecord]:
        for timer in self.timers:
            if timer.running:
                return timer
        return None

    def add(self, name: str, description: str) -> TimerRecord:
        name = name.strip()
        if not name:
            raise ValidationError("Timer name cannot be empty")
        record = TimerRecord(name=name, description=description.strip(), running=True)
        self.store.insert(record)
        current = self.running_timer()
        if current is not None:
            self.stop(current)
        self.timers.append(record)
        self._tick_ref = self._clock()
        logger.info("started timer %s (%s)", record.id, record.name)
        return record

    def stop(self, record: TimerRecord) -> None:
        if not record.running:
            return
        # Fold whole seconds since the last boundary before freezing.
        self.tick(self._clock())
        record.running = False

    def resume(self, record: TimerRecord) -> None:
        current = self.running_timer()
        if current is record:
            return
        if current is not None:
            self.stop(current)
        record.running = True
        self._tick_ref = self._clock()

    def toggle_last(self) -> Optional[TimerRecord]:
        """Start/stop the most recently added timer; other timers are never toggled."""
        if not self.timers:
            return None
        last = self.timers[-1]
        if last.running:
            self.stop(last)
        else:
            self.resume(last)
        return last

    def tick(self, now: float) -> int:
        running = self.running_timer()
        if running is None:
            self._tick_ref = now
            return 0
        whole = int(now - self._tick_ref)
        if whole < 1:
            return 0
        running.elapsed += whole
        self._tick_ref += whole
        return whole

    def save_progress(self) -> None:
        self.store.update_progress(self.timers)

    def edit(self, record: TimerRecord, name: str, description: str) -> None:
        name = name.strip()
        if not name:
            raise ValidationError("Timer name cannot be empty")
        description = description.strip()
        self.store.update_fields(record.id, name=name, description=description)
        record.name = name
        record.description = description

    def delete(self, record: TimerRecord) -> None:
        """Delete from the database first; a StorageError leaves the list untouched."""
        try:
            self.store.delete(record.id)
        except NotFoundError:
            # already gone from the database, drop it here as well
            self._drop(record)
            raise
        self._drop(record)
        logger.info("deleted timer %s (%s)", record.id, record.name)

    def _drop(self, record: TimerRecord) -> None:
        self.timers = [t for t in self.timers if t is not record]

    # --- selection ---
    def set_selectable(self, mask: Iterable[bool]) -> None:
        """Store the renderer's mask and keep the selection on a timer row.

        A selection that vanished or sits on a header moves to the nearest
        timer row above it, or to the first one when there is none above.
        """
        self.selectable = list(mask)
        if not any(self.selectable):
            self.selected = None
            return
        if self.selected is None:
            self.selected = self.selectable.index(True)
            return
        if self.selected < len(self.selectable) and self.selectable[self.selected]:
            return
        for row in range(min(self.selected, len(self.selectable) - 1), -1, -1):
            if self.selectable[row]:
                self.selected = row
                return
        self.selected = self.selectable.index(True)

    def select_next(self, selectable_mask: Optional[List[bool]] = None) -> None:
        self._step_selection(1, selectable_mask)

    def select_previous(self, selectable_mask: Optional[List[bool]] = None) -> None:
        self._step_selection(-1, selectable_mask)

    def _step_selection(self, step: int, selectable_mask: Optional[List[bool]]) -> None:
        mask = self.selectable if selectable_mask is None else selectable_mask
        if not any(mask):
            return
        current = self.selected if self.selected is not None and self.selected < len(mask) else 0
        row = current
        while True:
            row = (row + step) % len(mask)
            if mask[row] or row == current:
                break
        self.selected = row

    def timer_index_for_selection(
        self, selected_row_index: Optional[int], selectable_mask: Optional[List[bool]] = None
    ) -> Optional[int]:
        """Map a table row to a timer index, skipping the date header rows."""
        mask = self.selectable if selectable_mask is None else selectable_mask
        if selected_row_index is None or not 0 <= selected_row_index < len(mask):
            return None
        if not mask[selected_row_index]:
            return None
        index = sum(1 for selectable in mask[:selected_row_index] if selectable)
        return index if index < len(self.timers) else None

    def selected_timer(self) -> Optional[TimerRecord]:
        index = self.timer_index_for_selection(self.selected)
        return None if index is None else self.timers[index]


# ----------------------------
# Screen state machine
# ----------------------------

class Screen(Enum):
    MAIN = auto()
    ADD_TIMER = auto()
    EDIT_TIMER = auto()
    CONFIRM_EXIT = auto()


class EditingField(Enum):
    NAME = auto()
    DESCRIPTION = auto()


_TRANSITIONS: Dict[Screen, Set[Screen]] = {
    Screen.MAIN: {Screen.ADD_TIMER, Screen.EDIT_TIMER, Screen.CONFIRM_EXIT},
    Screen.ADD_TIMER: {Screen.MAIN},
    Screen.EDIT_TIMER: {Screen.MAIN},
    Screen.CONFIRM_EXIT: {Screen.MAIN},
}


class ScreenState:
    def __init__(self):
        self.screen = Screen.MAIN
        self.editing: Optional[EditingField] = None
        self.name_input = ""
        self.description_input = ""
        self.editing_record: Optional[TimerRecord] = None
        self.exit_selected = False  # True for Yes
        self.message = ""

    @property
    def is_editing(self) -> bool:
        return self.screen in (Screen.ADD_TIMER, Screen.EDIT_TIMER)

    def _go(self, target: Screen) -> None:
        if target not in _TRANSITIONS[self.screen]:
            raise ValueError(f"Cannot switch from {self.screen.name} to {target.name}")
        self.screen = target

    def _clear_buffers(self) -> None:
        self.name_input = ""
        self.description_input = ""
        self.editing_record = None

    def open_add(self) -> None:
        self._go(Screen.ADD_TIMER)
        self._clear_buffers()
        self.editing = EditingField.NAME

    def open_edit(self, record: TimerRecord) -> None:
        self._go(Screen.EDIT_TIMER)
        self.name_input = record.name
        self.description_input = record.description
        self.editing_record = record
        self.editing = EditingField.NAME

    def open_exit(self) -> None:
        self._go(Screen.CONFIRM_EXIT)
        self.exit_selected = False

    def deny_exit(self) -> None:
        self._go(Screen.MAIN)

    def toggle_exit_button(self) -> None:
        self.exit_selected = not self.exit_selected

    def toggle_field(self) -> None:
        if self.editing is EditingField.NAME:
            self.editing = EditingField.DESCRIPTION
        else:
            self.editing = EditingField.NAME

    def submit(self) -> bool:
        """Return True when the form is ready to be committed."""
        if self.editing is EditingField.DESCRIPTION:
            return True
        self.editing = EditingField.DESCRIPTION
        return False

    def finish(self) -> None:
        self._go(Screen.MAIN)
        self._clear_buffers()
        self.editing = None

    def cancel(self) -> None:
        self.finish()

    def type_char(self, ch: str) -> None:
        if self.editing is EditingField.NAME:
            self.name_input += ch
        elif self.editing is EditingField.DESCRIPTION:
            self.description_input += ch

    def backspace(self) -> None:
        if self.editing is EditingField.NAME:
            self.name_input = self.name_input[:-1]
        elif self.editing is EditingField.DESCRIPTION:
            self.description_input = self.description_input[:-1]


# ----------------------------
# Terminal layer
# ----------------------------

ENTER = "enter"
TAB = "tab"
BACKSPACE = "backspace"
ESC = "esc"
UP = "up"
DOWN = "down"
LEFT = "left"
RIGHT = "right"
CTRL_C = "ctrl-c"

_SPECIAL_KEYS = {
    curses.KEY_UP: UP,
    curses.KEY_DOWN: DOWN,
    curses.KEY_LEFT: LEFT,
    curses.KEY_RIGHT: RIGHT,
    curses.KEY_BACKSPACE: BACKSPACE,
    curses.KEY_ENTER: ENTER,
}

_CONTROL_CHARS = {
    "\n": ENTER,
    "\r": ENTER,
    "\t": TAB,
    "\x7f": BACKSPACE,
    "\x08": BACKSPACE,
    "\x1b": ESC,
    "\x03": CTRL_C,
}


def decode_key(raw) -> Optional[str]:
    """Turn a ``get_wch`` result into a key name or a printable character."""
    if isinstance(raw, int):
        return _SPECIAL_KEYS.get(raw)
    if raw in _CONTROL_CHARS:
        return _CONTROL_CHARS[raw]
    if not raw.isprintable():
        return None
    return raw


def read_key(stdscr) -> Optional[str]:
    try:
        raw = stdscr.get_wch()
    except curses.error:
        # nothing arrived within the poll interval
        return None
    return decode_key(raw)


class Throbber:
    FRAMES = ("-", "\\", "|", "/")

    def __init__(self):
        self.index = 0

    def advance(self) -> None:
        self.index = (self.index + 1) % len(self.FRAMES)

    @property
    def frame(self) -> str:
        return self.FRAMES[self.index]


@dataclass(frozen=True)
class Row:
    cells: Tuple[str, str, str, str]
    selectable: bool


def build_rows(timers: List[TimerRecord], throbber: Throbber) -> Tuple[List[Row], List[bool]]:
    """Lay out timer rows with a date header before each new start date."""
    rows: List[Row] = []
    current_date = None
    for timer in timers:
        day = timer.formatted_date()
        if day != current_date:
            current_date = day
            rows.append(Row((day, "", "", ""), False))
        spinner = throbber.frame if timer.running else ""
        rows.append(Row((timer.name, timer.description, timer.formatted_duration(), spinner), True))
    return rows, [r.selectable for r in rows]


HINTS = {
    Screen.MAIN: "<q> Exit | <i> Add timer | <e> Edit timer | <space> Start/Stop timer | <j> Down | <k> Up | <dd> Delete timer",
    Screen.ADD_TIMER: "<Tab> Next field | <Enter> Submit | <Esc> Cancel",
    Screen.EDIT_TIMER: "<Tab> Next field | <Enter> Submit | <Esc> Cancel",
    Screen.CONFIRM_EXIT: "<y> Yes | <n> No | <Enter> Choose",
}


def _addstr(win, y: int, x: int, text: str, attr: int = 0) -> None:
    h, w = win.getmaxyx()
    if y < 0 or y >= h or x >= w:
        return
    try:
        win.addnstr(y, x, text, max(0, w - x - 1), attr)
    except curses.error:
        # curses refuses writes that touch the last cell of a window
        pass


def _format_cells(cells: Tuple[str, str, str, str], width: int) -> str:
    name, description, duration, spinner = cells
    name_w = max(8, width // 5)
    dur_w = 9
    desc_w = max(0, width - name_w - dur_w - 6)
    return f"{name[:name_w]:<{name_w}} {description[:desc_w]:<{desc_w}} {duration:>{dur_w}} {spinner:<2}"


def _centered(percent_x: int, percent_y: int, h: int, w: int) -> Tuple[int, int, int, int]:
    ph = min(h, max(7, h * percent_y // 100))
    pw = min(w, max(30, w * percent_x // 100))
    return (h - ph) // 2, (w - pw) // 2, ph, pw


class CursesRenderer:
    TITLE, HEADER, HINT, DATE = 1, 2, 3, 4

    def __init__(self):
        self._colors = False

    def setup(self) -> None:
        try:
            curses.curs_set(0)
        except curses.error:
            pass  # terminal cannot hide the cursor
        if curses.has_colors():
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(self.TITLE, curses.COLOR_GREEN, -1)
            curses.init_pair(self.HEADER, curses.COLOR_YELLOW, -1)
            curses.init_pair(self.HINT, curses.COLOR_RED, -1)
            curses.init_pair(self.DATE, curses.COLOR_BLACK, curses.COLOR_WHITE)
            self._colors = True

    def _color(self, pair: int) -> int:
        return curses.color_pair(pair) if self._colors else 0

    def draw(self, stdscr, app: App) -> None:
        rows = app.layout()
        stdscr.erase()
        h, w = stdscr.getmaxyx()

        _addstr(stdscr, 0, 1, APP_NAME, self._color(self.TITLE) | curses.A_BOLD)
        _addstr(stdscr, 1, 1, _format_cells(("Name", "Description", "Duration", ""), w - 2), self._color(self.HEADER))

        table_top, table_h = 2, max(0, h - 4)
        selected = app.timers.selected
        offset = 0
        if selected is not None and selected >= table_h:
            offset = selected - table_h + 1
        for i, row in enumerate(rows[offset:offset + table_h]):
            attr = curses.A_BOLD | self._color(self.DATE) if not row.selectable else 0
            if offset + i == selected:
                attr |= curses.A_REVERSE
            _addstr(stdscr, table_top + i, 1, _format_cells(row.cells, w - 2), attr)

        if app.screen.message:
            _addstr(stdscr, h - 2, 1, app.screen.message, curses.A_BOLD)
        _addstr(stdscr, h - 1, 1, HINTS[app.screen.screen], self._color(self.HINT))
        stdscr.noutrefresh()

        if app.screen.is_editing:
            self._draw_form(app.screen, h, w)
        elif app.screen.screen is Screen.CONFIRM_EXIT:
            self._draw_exit(app.screen, h, w)
        curses.doupdate()

    def _popup(self, title: str, h: int, w: int):
        y, x, ph, pw = _centered(60, 25, h, w)
        try:
            win = curses.newwin(ph, pw, y, x)
        except curses.error:
            return None
        win.erase()
        win.box()
        _addstr(win, 0, 2, f" {title} ", curses.A_BOLD)
        return win

    def _draw_form(self, state: ScreenState, h: int, w: int) -> None:
        title = "Add timer" if state.screen is Screen.ADD_TIMER else "Edit timer"
        win = self._popup(title, h, w)
        if win is None:
            return
        fields = (
            (EditingField.NAME, "Name:        ", state.name_input),
            (EditingField.DESCRIPTION, "Description: ", state.description_input),
        )
        for i, (which, label, value) in enumerate(fields):
            active = state.editing is which
            text = label + value + ("_" if active else "")
            _addstr(win, 2 + i * 2, 2, text, curses.A_REVERSE if active else 0)
        win.noutrefresh()

    def _draw_exit(self, state: ScreenState, h: int, w: int) -> None:
        win = self._popup("Y/N", h, w)
        if win is None:
            return
        _addstr(win, 2, 2, "Would you like to exit? (y/n)", self._color(self.HINT))
        _addstr(win, 4, 4, "[ Yes ]", curses.A_REVERSE if state.exit_selected else 0)
        _addstr(win, 4, 14, "[ No ]", 0 if state.exit_selected else curses.A_REVERSE)
        win.noutrefresh()


# ----------------------------
# Input dispatcher / event loop
# ----------------------------

class App:
    def __init__(self, store: Store, clock: Callable[[], float] = time.monotonic, renderer=None):
        self.store = store
        self.clock = clock
        self.timers = TimerList(store, clock=clock)
        self.screen = ScreenState()
        self.throbber = Throbber()
        self.renderer = renderer or CursesRenderer()
        self.should_quit = False
        self._delete_armed_at: Optional[float] = None

        self.timers.load()

    def layout(self) -> List[Row]:
        rows, mask = build_rows(self.timers.timers, self.throbber)
        self.timers.set_selectable(mask)
        return rows

    def run(self, stdscr) -> None:
        curses.raw()
        stdscr.keypad(True)
        stdscr.timeout(POLL_INTERVAL_MS)
        self.renderer.setup()
        logger.info("session started with %d timers", len(self.timers.timers))
        try:
            while not self.should_quit:
                self.step(self.clock())
                self.renderer.draw(stdscr, self)
                key = read_key(stdscr)
                if key is None:
                    continue
                self.handle_key(key, self.clock())
        finally:
            self._save_progress()
            logger.info("session ended")

    def step(self, now: float) -> int:
        seconds = self.timers.tick(now)
        if seconds:
            self.throbber.advance()
            self._save_progress()
        if self._delete_armed_at is not None and now - self._delete_armed_at > DELETE_WINDOW_S:
            self._delete_armed_at = None
        return seconds

    def _save_progress(self) -> None:
        try:
            self.timers.save_progress()
        except StorageError as ex:
            # the in-memory timers stay authoritative; the next tick writes again
            logger.error("saving progress failed: %s", ex)
            self.screen.message = f"Could not save progress: {ex}"

    # --- key dispatch ---
    def handle_key(self, key: str, now: Optional[float] = None) -> None:
        now = self.clock() if now is None else now
        self.screen.message = ""
        if key == CTRL_C and self.screen.screen in (Screen.MAIN, Screen.CONFIRM_EXIT):
            self.should_quit = True
            return
        if self.screen.screen is Screen.MAIN:
            self._on_main_key(key, now)
        elif self.screen.screen is Screen.CONFIRM_EXIT:
            self._on_exit_key(key)
        else:
            self._on_form_key(key)

    def _on_main_key(self, key: str, now: float) -> None:
        if key == "d":
            armed = self._delete_armed_at
            if armed is not None and now - armed <= DELETE_WINDOW_S:
                self._delete_armed_at = None
                self.on_delete()
            else:
                self._delete_armed_at = now
            return
        self._delete_armed_at = None

        if key == "q":
            self.screen.open_exit()
        elif key in ("j", DOWN):
            self.timers.select_next()
        elif key in ("k", UP):
            self.timers.select_previous()
        elif key == "i":
            self.screen.open_add()
        elif key == "e":
            self.on_edit_selected()
        elif key == " ":
            self.on_toggle()

    def _on_exit_key(self, key: str) -> None:
        if key == "y":
            self.should_quit = True
        elif key in ("n", "q", ESC):
            self.screen.deny_exit()
        elif key in (LEFT, RIGHT, TAB, "h", "l"):
            self.screen.toggle_exit_button()
        elif key == ENTER:
            if self.screen.exit_selected:
                self.should_quit = True
            else:
                self.screen.deny_exit()

    def _on_form_key(self, key: str) -> None:
        if key == ENTER:
            if self.screen.submit():
                self.on_commit()
        elif key == BACKSPACE:
            self.screen.backspace()
        elif key == ESC:
            self.screen.cancel()
        elif key == TAB:
            self.screen.toggle_field()
        elif len(key) == 1:
            self.screen.type_char(key)

    # --- actions ---
    def on_toggle(self):
        if self.timers.toggle_last() is not None:
            self._save_progress()

    def on_edit_selected(self):
        record = self.timers.selected_timer()
        if record is None:
            self.screen.message = "No timer selected"
            return
        self.screen.open_edit(record)

    def on_commit(self):
        state = self.screen
        try:
            if state.screen is Screen.ADD_TIMER:
                self.timers.add(state.name_input, state.description_input)
            else:
                self.timers.edit(state.editing_record, state.name_input, state.description_input)
        except ValidationError as ex:
            state.editing = EditingField.NAME
            state.message = str(ex)
            return
        except (NotFoundError, StorageError) as ex:
            logger.error("saving timer failed: %s", ex)
            state.cancel()
            state.message = str(ex)
            return
        state.finish()
        self._save_progress()

    def on_delete(self):
        record = self.timers.selected_timer()
        if record is None:
            return
        try:
            self.timers.delete(record)
        except (NotFoundError, StorageError) as ex:
            logger.error("deleting timer failed: %s", ex)
            self.screen.message = str(ex)


# ----------------------------
# Entry point
# ----------------------------

def main() -> int:
    data_dir = user_data_dir()
    try:
        configure_logging(data_dir / LOG_NAME)
        store = Store(data_dir / DB_NAME)
    except (OSError, StorageError) as ex:
        logger.critical("cannot start: %s", ex)
        print(f"{APP_NAME}: {ex}", file=sys.stderr)
        return 1

    try:
        app = App(store)
    except StorageError as ex:
        store.close()
        logger.critical("cannot start: %s", ex)
        print(f"{APP_NAME}: {ex}", file=sys.stderr)
        return 1

    # short Esc delay so cancelling a form feels immediate
    os.environ.setdefault("ESCDELAY", "25")
    try:
        curses.wrapper(app.run)
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
