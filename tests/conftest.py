"""Pytest configuration and shared fixtures for idntag tests."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pytest

# =============================================================================
# Audio Fixtures
# =============================================================================


def create_minimal_mp3(path: Path) -> None:
    """Create a minimal valid MP3 file for testing."""
    # ID3v2.4 header with 0 size
    id3_header = b"ID3\x04\x00\x00\x00\x00\x00\x00"
    # Frame sync + MPEG-1 Layer III header, then a frame's worth of padding
    mpeg_frame = b"\xff\xfb\x90\x00" + b"\x00" * 417

    with open(path, "wb") as f:
        f.write(id3_header)
        f.write(mpeg_frame)


@pytest.fixture
def mp3_file(tmp_path: Path) -> Path:
    """Provide an untagged MP3 file in a temporary directory."""
    path = tmp_path / "track01.mp3"
    create_minimal_mp3(path)
    return path


# =============================================================================
# Curses Fixtures
# =============================================================================


class FakeScreen:
    """
    Minimal stand-in for a curses window.

    Records every addstr call and the last cursor move; get_wch() replays a
    scripted key sequence.
    """

    def __init__(self, rows: int = 24, cols: int = 80, keys: Iterable[str | int] = ()):
        self.rows = rows
        self.cols = cols
        self.keys = list(keys)
        self.writes: list[tuple[int, int, str, int]] = []
        self.cursor: tuple[int, int] | None = None
        self.clears = 0
        self.refreshes = 0

    def getmaxyx(self) -> tuple[int, int]:
        return self.rows, self.cols

    def clear(self) -> None:
        self.clears += 1
        self.writes.clear()

    def border(self) -> None:
        pass

    def addstr(self, row: int, col: int, text: str, attr: int = 0) -> None:
        self.writes.append((row, col, text, attr))

    def move(self, row: int, col: int) -> None:
        self.cursor = (row, col)

    def refresh(self) -> None:
        self.refreshes += 1

    def get_wch(self) -> str | int:
        if not self.keys:
            raise AssertionError("FakeScreen ran out of scripted keys")
        return self.keys.pop(0)

    def line_at(self, row: int) -> tuple[int, str, int] | None:
        """Most recent (col, text, attr) written to row."""
        for r, c, text, attr in reversed(self.writes):
            if r == row:
                return c, text, attr
        return None


@pytest.fixture
def fake_screen() -> FakeScreen:
    return FakeScreen()


@pytest.fixture
def make_screen():
    """Factory for FakeScreen instances with a scripted key sequence."""

    def _make(keys: Iterable[str | int] = (), rows: int = 24, cols: int = 80) -> FakeScreen:
        return FakeScreen(rows=rows, cols=cols, keys=keys)

    return _make
