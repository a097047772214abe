"""Screen layout for the two-field tag editor."""

from __future__ import annotations

from dataclasses import dataclass

MIN_FIELD_WIDTH = 20
MAX_FIELD_WIDTH = 70
FIELD_MARGIN = 5

CAPTION = " Edit ID3 tag "
ARTIST_LABEL = "Artist:"
TITLE_LABEL = "Title:"


@dataclass(frozen=True)
class Layout:
    """Field width and top-left anchor of the form."""

    field_width: int
    start_row: int
    start_col: int


@dataclass(frozen=True)
class FieldPositions:
    """Rows of each label and field line; all lines share one column."""

    artist_label_row: int
    artist_row: int
    title_label_row: int
    title_row: int
    col: int
    width: int


def compute_layout(rows: int, cols: int) -> Layout:
    field_width = max(MIN_FIELD_WIDTH, min(MAX_FIELD_WIDTH, cols - FIELD_MARGIN))
    start_row = max(1, rows // 2 - 4)
    # Truncate toward zero; on terminals narrower than the field this is negative
    start_col = int((cols - field_width) / 2)
    return Layout(field_width=field_width, start_row=start_row, start_col=start_col)


def field_positions(layout: Layout, rows: int) -> FieldPositions:
    """
    Place the label and field lines below the layout anchor.

    A blank spacer line separates the artist field from the title label
    when the terminal has more than 8 rows.
    """
    spacer = 1 if rows > 8 else 0
    return FieldPositions(
        artist_label_row=layout.start_row,
        artist_row=layout.start_row + 1,
        title_label_row=layout.start_row + 2 + spacer,
        title_row=layout.start_row + 3 + spacer,
        col=layout.start_col,
        width=layout.field_width,
    )


def caption_col(cols: int, caption: str = CAPTION) -> int:
    return max(0, (cols - len(caption)) // 2)


## Tests


def test_compute_layout_clamps_width():
    assert compute_layout(24, 80).field_width == 70
    assert compute_layout(24, 40).field_width == 35
    assert compute_layout(24, 10).field_width == 20


def test_compute_layout_anchor():
    layout = compute_layout(24, 80)
    assert layout.start_row == 8
    assert layout.start_col == 5
    assert compute_layout(6, 80).start_row == 1


def test_field_positions_spacer():
    tall = field_positions(compute_layout(24, 80), 24)
    assert tall.artist_row == 9
    assert tall.title_label_row == 11
    assert tall.title_row == 12

    short = field_positions(compute_layout(8, 80), 8)
    assert short.artist_row == short.artist_label_row + 1
    assert short.title_label_row == short.artist_label_row + 2
    assert short.title_row == short.artist_label_row + 3


def test_compute_layout_narrow_terminal_truncates_toward_zero():
    assert compute_layout(24, 9).start_col == -5
    assert compute_layout(24, 10).start_col == -5
    assert compute_layout(24, 21).start_col == 0
