"""Interactive two-field tag editor.

EditSession is a plain state machine over key actions so it can be driven
without a terminal; run() adds the blocking curses input loop and
terminal_mode() owns raw-mode setup and teardown.
"""

from __future__ import annotations

import curses
import locale
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from idntag.errors import IdentifyError
from idntag.field import FieldBuffer
from idntag.render import RenderSurface

logger = logging.getLogger(__name__)

ARTIST = 0
TITLE = 1

IdentifyFn = Callable[[Path], tuple[str, str]]


class Action(StrEnum):
    """Editor actions decoded from key presses."""

    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    DELETE_BACKWARD = "delete_backward"
    DELETE_FORWARD = "delete_forward"
    PREV_FIELD = "prev_field"
    NEXT_FIELD = "next_field"
    HOME = "home"
    END = "end"
    KILL_TO_END = "kill_to_end"
    KILL_TO_START = "kill_to_start"
    DETECT = "detect"
    SUBMIT = "submit"
    SAVE = "save"
    CANCEL = "cancel"
    INSERT = "insert"
    RESIZE = "resize"
    IGNORE = "ignore"


class SessionState(StrEnum):
    EDITING = "editing"
    SAVED = "saved"
    CANCELLED = "cancelled"


# Function keys arrive from get_wch() as ints
KEYCODE_ACTIONS: dict[int, Action] = {
    curses.KEY_RESIZE: Action.RESIZE,
    curses.KEY_LEFT: Action.MOVE_LEFT,
    curses.KEY_RIGHT: Action.MOVE_RIGHT,
    curses.KEY_UP: Action.PREV_FIELD,
    curses.KEY_BTAB: Action.PREV_FIELD,
    curses.KEY_DOWN: Action.NEXT_FIELD,
    curses.KEY_BACKSPACE: Action.DELETE_BACKWARD,
    curses.KEY_DC: Action.DELETE_FORWARD,
    curses.KEY_HOME: Action.HOME,
    curses.KEY_END: Action.END,
    curses.KEY_ENTER: Action.SUBMIT,
    curses.KEY_F0 + 10: Action.SAVE,
}

# Characters, including control characters delivered in raw mode
CHAR_ACTIONS: dict[str, Action] = {
    "\x01": Action.HOME,  # Ctrl-A
    "\x03": Action.CANCEL,  # Ctrl-C
    "\x04": Action.DETECT,  # Ctrl-D
    "\x05": Action.END,  # Ctrl-E
    "\x08": Action.DELETE_BACKWARD,  # Ctrl-H
    "\x0b": Action.KILL_TO_END,  # Ctrl-K
    "\x15": Action.KILL_TO_START,  # Ctrl-U
    "\x18": Action.SAVE,  # Ctrl-X
    "\x7f": Action.DELETE_BACKWARD,
    "\t": Action.NEXT_FIELD,
    "\n": Action.SUBMIT,
    "\r": Action.SUBMIT,
}


def decode_key(key: str | int) -> tuple[Action, str | None]:
    """
    Map a get_wch() result to an editor action.

    Returns:
        Tuple of (action, character to insert for Action.INSERT else None)
    """
    if isinstance(key, int):
        return KEYCODE_ACTIONS.get(key, Action.IGNORE), None

    if key in CHAR_ACTIONS:
        return CHAR_ACTIONS[key], None

    if len(key) == 1 and key.isprintable():
        return Action.INSERT, key

    return Action.IGNORE, None


@dataclass
class EditResult:
    """Field contents confirmed by the user."""

    artist: str
    title: str


class EditSession:
    """
    Editing state for one file: two fields, the active field and the outcome.

    Starts in EDITING with the artist field active and both cursors at the end
    of their initial text. handle() applies one action and reports whether the
    field lines need a redraw.
    """

    def __init__(
        self,
        path: Path,
        artist: str,
        title: str,
        identify: IdentifyFn | None = None,
    ):
        self.path = path
        self.fields = [FieldBuffer.from_text("Artist", artist), FieldBuffer.from_text("Title", title)]
        self.active = ARTIST
        self.state = SessionState.EDITING
        self._identify = identify

    @property
    def artist(self) -> FieldBuffer:
        return self.fields[ARTIST]

    @property
    def title(self) -> FieldBuffer:
        return self.fields[TITLE]

    @property
    def active_field(self) -> FieldBuffer:
        return self.fields[self.active]

    def _focus(self, index: int) -> bool:
        self.active = index
        self.active_field.move_end()
        return True

    def _switch_field(self) -> bool:
        return self._focus((self.active + 1) % 2)

    def _detect(self) -> bool:
        if self._identify is None:
            logger.debug("Detect requested but no identifier configured")
            return False

        try:
            artist, title = self._identify(self.path)
        except IdentifyError as e:
            logger.info("Identification failed for %s: %s", self.path, e)
            return True

        self.artist.set_text(artist)
        self.title.set_text(title)
        self.active = ARTIST
        return True

    def handle(self, action: Action, char: str | None = None) -> bool:
        """
        Apply one action to the session.

        Returns:
            True if the field lines should be redrawn
        """
        if self.state is not SessionState.EDITING:
            return False

        cur = self.active_field

        if action is Action.MOVE_LEFT:
            return cur.move_left()
        if action is Action.MOVE_RIGHT:
            return cur.move_right()
        if action is Action.DELETE_BACKWARD:
            return cur.delete_backward()
        if action is Action.DELETE_FORWARD:
            return cur.delete_forward()
        if action in (Action.PREV_FIELD, Action.NEXT_FIELD):
            return self._switch_field()
        if action is Action.HOME:
            return cur.move_home()
        if action is Action.END:
            return cur.move_end()
        if action is Action.KILL_TO_END:
            return cur.delete_to_end()
        if action is Action.KILL_TO_START:
            return cur.delete_to_start()
        if action is Action.DETECT:
            return self._detect()
        if action is Action.SUBMIT:
            # Enter moves on from artist and saves from title
            if self.active == TITLE:
                self.state = SessionState.SAVED
                return False
            return self._focus(TITLE)
        if action is Action.SAVE:
            self.state = SessionState.SAVED
            return False
        if action is Action.CANCEL:
            self.state = SessionState.CANCELLED
            return False
        if action is Action.INSERT and char is not None:
            return cur.insert_char(char)

        return False

    def result(self) -> EditResult | None:
        """Final contents when saved, None when cancelled or still editing."""
        if self.state is not SessionState.SAVED:
            return None
        return EditResult(artist=self.artist.text, title=self.title.text)

    def _full_redraw(self, surface: RenderSurface, rows: int, cols: int) -> None:
        surface.draw_frame(rows, cols, self.artist, self.title)
        surface.redraw_fields(self.artist, self.title, self.active)

    def run(self, screen: Any) -> EditResult | None:
        """Blocking input loop on an initialized curses screen."""
        surface = RenderSurface(screen)
        rows, cols = screen.getmaxyx()
        self._full_redraw(surface, rows, cols)

        while self.state is SessionState.EDITING:
            try:
                key = screen.get_wch()
            except curses.error:
                # No input available (e.g. interrupted read); wait again.
                continue

            action, char = decode_key(key)

            if action is Action.RESIZE:
                rows, cols = screen.getmaxyx()
                logger.debug(f"Terminal resized to {rows}x{cols}")
                self._full_redraw(surface, rows, cols)
                continue

            if self.handle(action, char):
                surface.redraw_fields(self.artist, self.title, self.active)

        return self.result()


@contextmanager
def terminal_mode() -> Iterator[Any]:
    """
    Put the terminal in raw, no-echo, keypad mode for the editor.

    The terminal is restored on every exit path, including cancel and
    exceptions raised inside the block.
    """
    locale.setlocale(locale.LC_ALL, "")
    screen = curses.initscr()
    try:
        curses.noecho()
        curses.raw()
        screen.keypad(True)
        try:
            curses.curs_set(1)
        except curses.error:
            logger.debug("Terminal does not support cursor visibility changes")
        yield screen
    finally:
        screen.keypad(False)
        curses.noraw()
        curses.echo()
        curses.endwin()


def edit_tags(
    path: Path,
    artist: str,
    title: str,
    identify: IdentifyFn | None = None,
) -> EditResult | None:
    """
    Open the interactive editor for one file.

    Returns:
        EditResult on save, None when the user cancelled
    """
    session = EditSession(path, artist, title, identify=identify)
    with terminal_mode() as screen:
        return session.run(screen)
