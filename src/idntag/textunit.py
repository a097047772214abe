"""UTF-8 and terminal-cell helpers for the tag editor.

Field contents are kept as UTF-8 bytes with a byte-offset cursor. These
functions make cursor movement, clipping and cursor placement aware of
multi-byte sequences and double-width glyphs (CJK etc.), with wcwidth()
providing the terminal cell width of a decoded character.
"""

from __future__ import annotations

from collections.abc import Iterator

from wcwidth import wcwidth


def char_length(buf: bytes, offset: int) -> int:
    """
    Number of bytes of the UTF-8 character starting at offset.

    Uses the leading-byte pattern only. An invalid leading byte or a
    sequence truncated by the end of the buffer counts as a single byte,
    so callers walking the buffer always make progress.

    Returns:
        1-4 for an in-bounds offset, 0 past the end of the buffer
    """
    if offset < 0 or offset >= len(buf):
        return 0

    c = buf[offset]
    remaining = len(buf) - offset
    if c < 0x80:
        return 1
    if (c & 0xE0) == 0xC0:
        return 2 if remaining >= 2 else 1
    if (c & 0xF0) == 0xE0:
        return 3 if remaining >= 3 else 1
    if (c & 0xF8) == 0xF0:
        return 4 if remaining >= 4 else 1

    return 1


def prev_char_start(buf: bytes, offset: int) -> int:
    """Byte offset of the character before offset (0 when at the start)."""
    if offset <= 0 or offset > len(buf):
        return 0

    i = offset
    while i > 0:
        i -= 1
        # continuation bytes are 10xxxxxx
        if (buf[i] & 0xC0) != 0x80:
            return i

    return 0


def char_width(ch: str) -> int:
    """Terminal cell width of a single decoded character (0, 1 or 2)."""
    w = wcwidth(ch)
    if w < 0:
        return 1
    return w


def char_display_width(buf: bytes, offset: int, length: int) -> int:
    """
    Cell width of the UTF-8 sequence buf[offset:offset + length].

    Undecodable bytes and characters wcwidth() reports as negative
    (controls) fall back to width 1.
    """
    if length <= 0 or offset >= len(buf):
        return 0

    try:
        ch = buf[offset : offset + length].decode("utf-8")
    except UnicodeDecodeError:
        return 1

    if len(ch) != 1:
        return 1

    return char_width(ch)


def iter_chars(buf: bytes, start: int = 0, stop: int | None = None) -> Iterator[tuple[int, int]]:
    """Yield (offset, length) for each character between start and stop."""
    end = len(buf) if stop is None else min(stop, len(buf))
    pos = start
    while pos < end:
        length = char_length(buf, pos)
        yield pos, length
        pos += length


def string_display_width(buf: bytes) -> int:
    """Total cell width of a UTF-8 buffer."""
    return sum(char_display_width(buf, pos, length) for pos, length in iter_chars(buf))


def column_of(buf: bytes, offset: int) -> int:
    """Display column reached after the characters before offset."""
    return sum(char_display_width(buf, pos, length) for pos, length in iter_chars(buf, 0, offset))


def clip_to_width(buf: bytes, max_width: int) -> tuple[bytes, int]:
    """
    Longest prefix of buf that fits in max_width cells.

    Characters are never split; the prefix stops before the first character
    that would overflow.

    Returns:
        Tuple of (prefix bytes, prefix width in cells)
    """
    width = 0
    end = 0
    for pos, length in iter_chars(buf):
        w = char_display_width(buf, pos, length)
        if width + w > max_width:
            break
        width += w
        end = pos + length

    return buf[:end], width


def encode_char(ch: str) -> bytes:
    """UTF-8 encoding of a single character."""
    return ch.encode("utf-8")


def decode_lossy(buf: bytes) -> str:
    """Decode UTF-8 for display, replacing invalid bytes."""
    return buf.decode("utf-8", errors="replace")


## Tests


def test_char_length_forms():
    buf = "aé€😀".encode()
    assert char_length(buf, 0) == 1
    assert char_length(buf, 1) == 2
    assert char_length(buf, 3) == 3
    assert char_length(buf, 6) == 4
    assert char_length(buf, len(buf)) == 0


def test_char_length_invalid_and_truncated():
    assert char_length(b"\xff", 0) == 1
    assert char_length(b"\x80abc", 0) == 1
    # three-byte lead with only two bytes left
    assert char_length(b"\xe2\x82", 0) == 1


def test_prev_char_start():
    buf = "héllo".encode()
    assert prev_char_start(buf, 3) == 1
    assert prev_char_start(buf, 1) == 0
    assert prev_char_start(buf, 0) == 0


def test_string_display_width():
    assert string_display_width(b"") == 0
    assert string_display_width(b"hello") == 5
    assert string_display_width("日本".encode()) == 4
    assert string_display_width("héllo".encode()) == 5


def test_clip_to_width_keeps_wide_chars_whole():
    buf = "a日本".encode()
    clipped, width = clip_to_width(buf, 4)
    assert clipped == "a日".encode()
    assert width == 3


def test_column_of():
    buf = "日a".encode()
    assert column_of(buf, 0) == 0
    assert column_of(buf, 3) == 2
    assert column_of(buf, len(buf)) == 3
