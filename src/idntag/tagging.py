"""Artist/title tag access for audio files.

Format-specific stores built on mutagen: ID3v2.4 (MP3), Vorbis comments
(FLAC, OGG) and MP4 atoms (M4A). Every mutagen or I/O failure surfaces as
TagError; an extension without a store raises UnsupportedFileError.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from mutagen import MutagenError

from idntag.errors import TagError, UnsupportedFileError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".mp3", ".flac", ".ogg", ".m4a")


@dataclass
class TagPair:
    """Artist and title of one file; missing values are empty strings."""

    artist: str = ""
    title: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.artist) and bool(self.title)


@contextmanager
def _tag_errors(action: str, file_path: Path) -> Iterator[None]:
    try:
        yield
    except (MutagenError, OSError) as e:
        # OSError text repeats the full path; the file name is enough.
        # mutagen wraps I/O failures as MutagenError(OSError).
        cause = e.args[0] if isinstance(e, MutagenError) and e.args else e
        reason = cause.strerror if isinstance(cause, OSError) and cause.strerror else e
        raise TagError(f"Failed to {action} tags of {file_path.name}: {reason}") from e


class TagStore(ABC):
    """
    Abstract base class for format-specific tag stores.

    Subclasses implement read/write/clear of the artist and title fields.
    """

    @abstractmethod
    def read(self, file_path: Path) -> TagPair:
        """Read artist and title from file."""
        pass

    @abstractmethod
    def write(self, file_path: Path, artist: str, title: str) -> None:
        """Replace artist and title in file, creating a tag if needed."""
        pass

    @abstractmethod
    def clear(self, file_path: Path) -> None:
        """Remove all tags from file."""
        pass


class ID3TagStore(TagStore):
    """
    Tag store for ID3v2.4 (MP3) files.

    Uses mutagen for low-level tag manipulation.
    """

    ARTIST_FRAME = "TPE1"
    TITLE_FRAME = "TIT2"

    def read(self, file_path: Path) -> TagPair:
        """Read ID3 tags from MP3 file."""
        from mutagen.id3 import ID3, ID3NoHeaderError

        with _tag_errors("read", file_path):
            try:
                tags = ID3(file_path)
            except ID3NoHeaderError:
                return TagPair()

            def first_text(frame_id: str) -> str:
                frame = tags.get(frame_id)
                if frame and frame.text:
                    return str(frame.text[0])
                return ""

            return TagPair(artist=first_text(self.ARTIST_FRAME), title=first_text(self.TITLE_FRAME))

    def write(self, file_path: Path, artist: str, title: str) -> None:
        """Write ID3 tags to MP3 file."""
        from mutagen.id3 import ID3, TIT2, TPE1, ID3NoHeaderError

        with _tag_errors("write", file_path):
            try:
                tags = ID3(file_path)
            except ID3NoHeaderError:
                tags = ID3()

            tags.delall(self.ARTIST_FRAME)
            tags.add(TPE1(encoding=3, text=[artist]))
            tags.delall(self.TITLE_FRAME)
            tags.add(TIT2(encoding=3, text=[title]))
            tags.save(file_path, v2_version=4)

    def clear(self, file_path: Path) -> None:
        """Strip ID3v1 and ID3v2 tags."""
        from mutagen.id3 import delete

        with _tag_errors("clear", file_path):
            delete(file_path, delete_v1=True, delete_v2=True)


class VorbisTagStore(TagStore):
    """
    Tag store for Vorbis comments (FLAC, OGG).

    Uses mutagen for low-level tag manipulation.
    """

    ARTIST_KEY = "ARTIST"
    TITLE_KEY = "TITLE"

    def _open(self, file_path: Path):
        from mutagen import File

        audio = File(file_path)
        if audio is None:
            raise TagError(f"Not a recognised audio file: {file_path.name}")
        return audio

    def read(self, file_path: Path) -> TagPair:
        """Read Vorbis comments from FLAC/OGG file."""
        with _tag_errors("read", file_path):
            audio = self._open(file_path)
            if audio.tags is None:
                return TagPair()

            def first_value(key: str) -> str:
                # Vorbis comments can be multi-valued; take first
                values = audio.tags.get(key)  # pyright: ignore[reportAttributeAccessIssue]
                return str(values[0]) if values else ""

            return TagPair(artist=first_value(self.ARTIST_KEY), title=first_value(self.TITLE_KEY))

    def write(self, file_path: Path, artist: str, title: str) -> None:
        with _tag_errors("write", file_path):
            audio = self._open(file_path)
            if audio.tags is None:
                audio.add_tags()
            audio.tags[self.ARTIST_KEY] = [artist]  # pyright: ignore[reportOptionalSubscript]
            audio.tags[self.TITLE_KEY] = [title]  # pyright: ignore[reportOptionalSubscript]
            audio.save()

    def clear(self, file_path: Path) -> None:
        with _tag_errors("clear", file_path):
            audio = self._open(file_path)
            audio.delete()


class MP4TagStore(TagStore):
    """
    Tag store for MP4/M4A files.

    Uses mutagen for low-level tag manipulation.
    """

    ARTIST_ATOM = "\xa9ART"
    TITLE_ATOM = "\xa9nam"

    def read(self, file_path: Path) -> TagPair:
        """Read MP4 atoms from M4A file."""
        from mutagen.mp4 import MP4

        with _tag_errors("read", file_path):
            audio = MP4(file_path)
            if audio.tags is None:
                return TagPair()

            def first_value(atom: str) -> str:
                values = audio.tags.get(atom)  # pyright: ignore[reportOptionalMemberAccess]
                return str(values[0]) if values else ""

            return TagPair(artist=first_value(self.ARTIST_ATOM), title=first_value(self.TITLE_ATOM))

    def write(self, file_path: Path, artist: str, title: str) -> None:
        from mutagen.mp4 import MP4

        with _tag_errors("write", file_path):
            audio = MP4(file_path)
            if audio.tags is None:
                audio.add_tags()
            audio.tags[self.ARTIST_ATOM] = [artist]  # pyright: ignore[reportOptionalSubscript]
            audio.tags[self.TITLE_ATOM] = [title]  # pyright: ignore[reportOptionalSubscript]
            audio.save()

    def clear(self, file_path: Path) -> None:
        from mutagen.mp4 import MP4

        with _tag_errors("clear", file_path):
            MP4(file_path).delete()


STORES: dict[str, type[TagStore]] = {
    ".mp3": ID3TagStore,
    ".flac": VorbisTagStore,
    ".ogg": VorbisTagStore,
    ".m4a": MP4TagStore,
    ".mp4": MP4TagStore,
}


def get_store_for_file(
    file_path: Path,
    extensions: tuple[str, ...] | list[str] = DEFAULT_EXTENSIONS,
) -> TagStore:
    """Get appropriate tag store for file based on extension."""
    suffix = file_path.suffix.lower()
    allowed = {ext.lower() for ext in extensions}

    if suffix not in allowed or suffix not in STORES:
        raise UnsupportedFileError(f"Unsupported audio format: {suffix or '(none)'}")

    return STORES[suffix]()


def read_tags(file_path: Path) -> TagPair:
    return get_store_for_file(file_path).read(file_path)


def write_tags(file_path: Path, artist: str, title: str) -> None:
    logger.debug("Writing tags to %s", file_path)
    get_store_for_file(file_path).write(file_path, artist, title)


def clear_tags(file_path: Path) -> None:
    logger.debug("Clearing tags of %s", file_path)
    get_store_for_file(file_path).clear(file_path)
