"""Editable text field used by the tag editor.

Content is UTF-8 bytes; the cursor is a byte offset that always sits on a
character boundary. Geometry (row, col, width) is assigned by the render pass
and width doubles as the field capacity in terminal cells.
"""

from __future__ import annotations

from dataclasses import dataclass

from idntag.textunit import (
    char_length,
    char_width,
    decode_lossy,
    encode_char,
    prev_char_start,
    string_display_width,
)


@dataclass
class FieldBuffer:
    """A single editable field (artist or title)."""

    label: str
    content: bytes = b""
    cursor: int = 0
    row: int = 0
    col: int = 0
    width: int = 0

    @classmethod
    def from_text(cls, label: str, text: str) -> FieldBuffer:
        """Create a field holding text with the cursor at the end."""
        content = text.encode("utf-8")
        return cls(label=label, content=content, cursor=len(content))

    @property
    def text(self) -> str:
        return decode_lossy(self.content)

    def set_text(self, text: str) -> None:
        """Replace the content and move the cursor to the end."""
        self.content = text.encode("utf-8")
        self.cursor = len(self.content)

    def insert_char(self, ch: str) -> bool:
        """
        Insert a printable character at the cursor.

        Rejected when the character is not printable or when the field would
        exceed its width in terminal cells.

        Returns:
            True if the character was inserted
        """
        if len(ch) != 1 or not ch.isprintable():
            return False

        if string_display_width(self.content) + char_width(ch) > self.width:
            return False

        encoded = encode_char(ch)
        self.content = self.content[: self.cursor] + encoded + self.content[self.cursor :]
        self.cursor += len(encoded)
        return True

    def delete_backward(self) -> bool:
        if self.cursor == 0:
            return False

        start = prev_char_start(self.content, self.cursor)
        self.content = self.content[:start] + self.content[self.cursor :]
        self.cursor = start
        return True

    def delete_forward(self) -> bool:
        if self.cursor >= len(self.content):
            return False

        length = char_length(self.content, self.cursor)
        self.content = self.content[: self.cursor] + self.content[self.cursor + length :]
        return True

    def delete_to_end(self) -> bool:
        if self.cursor >= len(self.content):
            return False

        self.content = self.content[: self.cursor]
        return True

    def delete_to_start(self) -> bool:
        if self.cursor == 0:
            return False

        self.content = self.content[self.cursor :]
        self.cursor = 0
        return True

    def move_left(self) -> bool:
        if self.cursor == 0:
            return False

        self.cursor = prev_char_start(self.content, self.cursor)
        return True

    def move_right(self) -> bool:
        if self.cursor >= len(self.content):
            return False

        self.cursor = min(len(self.content), self.cursor + char_length(self.content, self.cursor))
        return True

    def move_home(self) -> bool:
        moved = self.cursor != 0
        self.cursor = 0
        return moved

    def move_end(self) -> bool:
        moved = self.cursor != len(self.content)
        self.cursor = len(self.content)
        return moved

    @property
    def display_width(self) -> int:
        """Width of the whole content in terminal cells."""
        return string_display_width(self.content)
