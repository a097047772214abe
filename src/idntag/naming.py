"""Filename suggestions and renaming from artist/title tags."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from idntag.errors import RenameError
from idntag.textunit import iter_chars

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
UNNAMED = "unnamed"

PATH_SEPARATORS = frozenset("/\\")
# Reserved on Windows and some network filesystems
NON_PORTABLE = frozenset('<>:"|?*')

_SPACES = re.compile(r" +")
_UNDERSCORES = re.compile(r"_+")


def _is_control(cp: int) -> bool:
    return cp < 0x20 or cp == 0x7F


def sanitize_filename(name: str, portable: bool = False) -> str:
    """
    Make a tag value safe for use as a filename component.

    Control characters and path separators are dropped; other Unicode is
    kept as is, which assumes a POSIX filesystem. With portable=True the
    characters reserved on Windows are dropped too. Spaces become
    underscores and runs of underscores collapse.
    """
    buf = name.encode("utf-8")
    kept: list[str] = []
    for pos, length in iter_chars(buf):
        chunk = buf[pos : pos + length]
        try:
            ch = chunk.decode("utf-8")
        except UnicodeDecodeError:
            continue
        if _is_control(ord(ch)) or ch in PATH_SEPARATORS:
            continue
        if portable and ch in NON_PORTABLE:
            continue
        kept.append(ch)

    out = "".join(kept)
    out = _SPACES.sub("_", out)
    out = _UNDERSCORES.sub("_", out)
    out = out.strip("_")

    return out or UNNAMED


def suggest_renamed_path(path: Path, artist: str, title: str, portable: bool = False) -> Path:
    """
    Suggest "Artist-Title.ext" next to path, avoiding existing files.

    Empty artist or title becomes "Unknown". When the name is taken, _1, _2,
    ... is appended before the extension. A file that already carries the
    suggested name keeps it.
    """
    # A blank tag is a missing value, not a name: "Unknown" rather than
    # sanitize_filename()'s "unnamed", which is reserved for names that
    # sanitize away to nothing (e.g. "///").
    artist_part = sanitize_filename(artist, portable) if artist.strip() else UNKNOWN
    title_part = sanitize_filename(title, portable) if title.strip() else UNKNOWN
    base = f"{artist_part}-{title_part}"
    ext = path.suffix

    candidate = path.parent / f"{base}{ext}"
    counter = 1
    while candidate.exists():
        if candidate == path:
            return candidate
        candidate = path.parent / f"{base}_{counter}{ext}"
        counter += 1

    return candidate


def rename_file(old_path: Path, new_path: Path) -> None:
    """Rename a file, refusing to replace an existing destination."""
    if old_path == new_path:
        return
    if new_path.exists():
        raise RenameError(f"Destination already exists: {new_path.name}")

    try:
        os.rename(old_path, new_path)
    except OSError as e:
        raise RenameError(f"Failed to rename {old_path.name} to {new_path.name}: {e.strerror or e}") from e

    logger.info("Renamed %s -> %s", old_path, new_path)


## Tests


def test_sanitize_filename():
    assert sanitize_filename("AC/DC") == "ACDC"
    assert sanitize_filename("  Hello   World  ") == "Hello_World"
    assert sanitize_filename("a\tb\x7fc") == "abc"
    assert sanitize_filename("___") == UNNAMED
    assert sanitize_filename("坂本 龍一") == "坂本_龍一"


def test_sanitize_filename_portable():
    assert sanitize_filename('What?: "Yes"', portable=True) == "What_Yes"
    assert sanitize_filename('What?: "Yes"') == 'What?:_"Yes"'
