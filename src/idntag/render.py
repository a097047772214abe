"""Curses drawing for the tag editor.

The frame (border, caption, labels) is drawn in full only at session start
and on resize; field lines are redrawn on their own after every edit.
"""

from __future__ import annotations

import curses
import logging
from typing import Any

from idntag.field import FieldBuffer
from idntag.layout import (
    ARTIST_LABEL,
    CAPTION,
    TITLE_LABEL,
    caption_col,
    compute_layout,
    field_positions,
)
from idntag.textunit import clip_to_width, column_of, decode_lossy

logger = logging.getLogger(__name__)


class RenderSurface:
    """
    Draws the editor onto a curses window.

    The window is only used through clear/border/addstr/move/refresh, so
    tests can pass any object providing those methods.
    """

    def __init__(self, screen: Any):
        self.screen = screen

    def _put(self, row: int, col: int, text: str, attr: int = 0) -> None:
        try:
            self.screen.addstr(row, col, text, attr)
        except curses.error as e:
            # Writes past the window edge fail on very small terminals.
            logger.debug(f"Skipped draw at ({row}, {col}): {e}")

    def draw_frame(self, rows: int, cols: int, artist: FieldBuffer, title: FieldBuffer) -> None:
        """Clear the screen, draw border and labels, and assign field geometry."""
        self.screen.clear()
        try:
            self.screen.border()
        except curses.error as e:
            logger.debug(f"Skipped border: {e}")

        pos = field_positions(compute_layout(rows, cols), rows)

        artist.row, artist.col, artist.width = pos.artist_row, pos.col, pos.width
        title.row, title.col, title.width = pos.title_row, pos.col, pos.width

        self._put(0, caption_col(cols), CAPTION)
        self._put(pos.artist_label_row, pos.col, ARTIST_LABEL)
        self._put(pos.title_label_row, pos.col, TITLE_LABEL)

        self.screen.refresh()

    def draw_field(self, field: FieldBuffer, active: bool) -> None:
        """Draw the visible part of a field, padded to its full width."""
        visible, used = clip_to_width(field.content, field.width)
        text = decode_lossy(visible) + " " * max(0, field.width - used)
        attr = curses.A_REVERSE if active else curses.A_NORMAL
        self._put(field.row, field.col, text, attr)

    def place_cursor(self, field: FieldBuffer, active: bool) -> None:
        """Move the terminal cursor to the field's logical cursor cell."""
        if not active:
            return

        offset = min(field.cursor, len(field.content))
        col = min(column_of(field.content, offset), field.width)
        try:
            self.screen.move(field.row, field.col + col)
        except curses.error as e:
            logger.debug(f"Cursor move failed: {e}")
        self.screen.refresh()

    def redraw_fields(self, artist: FieldBuffer, title: FieldBuffer, active_index: int) -> None:
        """Redraw both field lines and reposition the cursor."""
        self.draw_field(artist, active_index == 0)
        self.draw_field(title, active_index == 1)
        self.place_cursor(artist if active_index == 0 else title, True)
