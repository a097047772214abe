"""Log formatting that keeps music library paths and API keys out of logs.

Path arguments are shown relative to the library root (IDNTAG_LIBRARY_ROOT)
or as a short hash; AcoustID client keys are masked wherever they appear in
a message.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

LIBRARY_ROOT_ENV = "IDNTAG_LIBRARY_ROOT"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# client=<key> as it appears in AcoustID request bodies and URLs
_CLIENT_KEY = re.compile(r"(?P<prefix>client=)(?P<key>[^&\s]+)")


def mask_secret(secret: str, keep: int = 4) -> str:
    """Keep the first few characters of a secret, mask the rest."""
    return "***" if len(secret) <= keep else secret[:keep] + "***"


def redact_keys(text: str) -> str:
    return _CLIENT_KEY.sub(lambda m: m.group("prefix") + mask_secret(m.group("key")), text)


@dataclass(frozen=True)
class PathScrubber:
    """Renders paths for logs without exposing the full library layout."""

    library_root: Path | None = None
    use_hash: bool = False

    @classmethod
    def from_env(cls, use_hash: bool = False) -> PathScrubber:
        root = os.environ.get(LIBRARY_ROOT_ENV)
        return cls(library_root=Path(root) if root else None, use_hash=use_hash)

    def __call__(self, path: Path | str) -> str:
        path = Path(path)
        if self.use_hash:
            digest = hashlib.sha256(str(path).encode()).hexdigest()
            return f"file:{digest[:12]}"

        if self.library_root is not None and path.is_relative_to(self.library_root):
            return path.relative_to(self.library_root).as_posix()

        # Outside the library: album directory and file name are enough
        return f"{path.parent.name}/{path.name}" if path.parent.name else path.name


class SafeLogFormatter(logging.Formatter):
    """Formatter that redacts client keys and shortens Path arguments."""

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, hash_paths: bool = False):
        super().__init__(fmt, datefmt)
        self.scrub_path = PathScrubber.from_env(use_hash=hash_paths)

    def _clean(self, value: Any) -> Any:
        if isinstance(value, Path):
            return self.scrub_path(value)
        if isinstance(value, str):
            return redact_keys(value)
        return value

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers may see the same record; format a copy
        clean = logging.makeLogRecord(vars(record))
        clean.msg = redact_keys(str(record.msg))
        if isinstance(record.args, tuple):
            clean.args = tuple(self._clean(arg) for arg in record.args)
        elif isinstance(record.args, dict):
            clean.args = {key: self._clean(arg) for key, arg in record.args.items()}
        return super().format(clean)


def configure_safe_logging(
    level: int = logging.WARNING,
    format_string: str | None = None,
    hash_paths: bool = False,
) -> logging.Handler:
    """
    Route root logging through one SafeLogFormatter stderr handler.

    Handlers installed by an earlier call are replaced, so calling this
    twice never duplicates output.
    """
    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h.formatter, SafeLogFormatter)]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(SafeLogFormatter(fmt=format_string or DEFAULT_LOG_FORMAT, hash_paths=hash_paths))
    root.addHandler(handler)
    root.setLevel(level)
    return handler


## Tests


def test_mask_secret():
    assert mask_secret("He6I6AYKN1") == "He6I***"
    assert mask_secret("abc") == "***"


def test_redact_keys_in_request_line():
    line = "POST https://api.acoustid.org/v2/lookup client=He6I6AYKN1&duration=180"
    redacted = redact_keys(line)
    assert "He6I6AYKN1" not in redacted
    assert "client=He6I***&duration=180" in redacted


def test_path_scrubber_relative_to_library():
    scrub = PathScrubber(library_root=Path("/home/user/music"))
    assert scrub(Path("/home/user/music/artist/album/song.mp3")) == "artist/album/song.mp3"
    assert scrub(Path("/tmp/album/song.mp3")) == "album/song.mp3"


def test_path_scrubber_hash_is_stable():
    scrub = PathScrubber(use_hash=True)
    first = scrub("/home/user/music/song.mp3")
    assert first.startswith("file:")
    assert len(first) == len("file:") + 12
    assert first == scrub(Path("/home/user/music/song.mp3"))
    assert first != scrub("/home/user/music/other.mp3")


def test_formatter_hides_path_arguments():
    formatter = SafeLogFormatter(fmt="%(message)s", hash_paths=True)
    record = logging.LogRecord("idntag", logging.INFO, __file__, 1, "Tagged %s", (Path("/m/song.mp3"),), None)
    formatted = formatter.format(record)
    assert formatted.startswith("Tagged file:")
    assert "song.mp3" not in formatted
