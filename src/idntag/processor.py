"""Per-file pipeline: clear, detect, edit, write and rename.

Every step failure is an IdntagError; the processor catches them per file so
one bad file never aborts the batch.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from idntag.console import status
from idntag.editor import EditResult, IdentifyFn, edit_tags
from idntag.errors import IdentifyError, IdntagError, TagError, UserCancelled
from idntag.naming import rename_file, suggest_renamed_path
from idntag.tagging import DEFAULT_EXTENSIONS, TagPair, get_store_for_file

logger = logging.getLogger(__name__)

EditorFn = Callable[[Path, str, str, IdentifyFn | None], EditResult | None]

_REPORT_TOKEN = re.compile(r"%[ior]")


@dataclass
class Operations:
    """Operations requested on the command line."""

    clear: bool = False
    detect: bool = False
    edit: bool = False
    rename: bool = False

    @property
    def any(self) -> bool:
        return self.clear or self.detect or self.edit or self.rename

    @property
    def needs_tags(self) -> bool:
        return self.detect or self.edit or self.rename


@dataclass
class FileResult:
    """Outcome for one input file."""

    input_path: Path
    output_path: Path
    ok: bool
    error: IdntagError | None = None


def collect_files(paths: Iterable[Path]) -> list[Path]:
    """
    Expand files and directories into a sorted, de-duplicated file list.

    Directories are walked recursively; every regular file is returned with
    its resolved path.
    """
    files: set[Path] = set()
    for path in paths:
        if path.is_file():
            files.add(path.resolve())
        elif path.is_dir():
            files.update(p.resolve() for p in path.rglob("*") if p.is_file())
    return sorted(files)


def format_report(fmt: str, result: FileResult) -> str:
    """Expand %i (input path), %o (output path) and %r (PASS/FAIL)."""
    values = {
        "%i": str(result.input_path),
        "%o": str(result.output_path),
        "%r": "PASS" if result.ok else "FAIL",
    }
    return _REPORT_TOKEN.sub(lambda m: values[m.group(0)], fmt)


class FileProcessor:
    """
    Applies the requested operations to one file at a time.

    Order: extension check, clear, read, detect, edit, write, rename. Tags
    are only written after detection and editing succeeded; an
    identification failure still opens the editor when editing is requested.
    """

    def __init__(
        self,
        operations: Operations,
        identify: IdentifyFn | None = None,
        editor: EditorFn = edit_tags,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        portable_names: bool = False,
        show_status: bool = True,
    ):
        self.operations = operations
        self.identify = identify
        self.editor = editor
        self.extensions = tuple(extensions)
        self.portable_names = portable_names
        self.show_status = show_status

    def process(self, path: Path) -> FileResult:
        try:
            output_path = self._process(path)
        except IdntagError as e:
            logger.info("%s failed: %s", path, e)
            return FileResult(input_path=path, output_path=path, ok=False, error=e)

        return FileResult(input_path=path, output_path=output_path, ok=True)

    def process_all(self, paths: Iterable[Path]) -> list[FileResult]:
        return [self.process(path) for path in paths]

    def _identify(self, path: Path) -> tuple[str, str]:
        if self.identify is None:
            raise IdentifyError("No identifier configured")

        if not self.show_status:
            return self.identify(path)
        with status(f"Identifying {path.name}..."):
            return self.identify(path)

    def _process(self, path: Path) -> Path:
        ops = self.operations
        store = get_store_for_file(path, self.extensions)

        if ops.clear:
            store.clear(path)

        if not ops.needs_tags:
            return path

        try:
            tags = store.read(path)
        except TagError as e:
            logger.debug("Could not read tags of %s: %s", path, e)
            tags = TagPair()

        if not (ops.detect or ops.edit) and not tags.complete:
            raise TagError(f"Missing artist or title in {path.name}")

        artist, title = tags.artist, tags.title

        if ops.detect:
            try:
                artist, title = self._identify(path)
            except IdentifyError as e:
                if not ops.edit:
                    raise
                logger.warning("Identification failed for %s, editing existing tags: %s", path, e)

        if ops.edit:
            edited = self.editor(path, artist, title, self.identify)
            if edited is None:
                raise UserCancelled(f"Editing cancelled for {path.name}")
            artist, title = edited.artist, edited.title

        store.write(path, artist, title)

        if not ops.rename:
            return path

        new_path = suggest_renamed_path(path, artist, title, portable=self.portable_names)
        rename_file(path, new_path)
        return new_path
