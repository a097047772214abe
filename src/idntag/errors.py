"""Exception hierarchy for idntag.

Per-file errors are caught by the file processor and turn into a FAIL report
line for that file; only InputError aborts the whole run.
"""

from __future__ import annotations


class IdntagError(Exception):
    """Base class for all idntag errors."""

    pass


class InputError(IdntagError):
    """Bad command-line input (unknown path, no paths, no operation)."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class UnsupportedFileError(IdntagError):
    """File extension is not handled by any tag store."""

    pass


class TagError(IdntagError):
    """Metadata could not be read, written or cleared."""

    pass


class IdentifyError(IdntagError):
    """Acoustic identification failed or produced no usable match."""

    pass


class RenameError(IdntagError):
    """Renaming the file after tagging failed."""

    pass


class UserCancelled(IdntagError):
    """The interactive editor was cancelled; nothing must be written."""

    pass
