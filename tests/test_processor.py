"""Tests for the per-file pipeline with fake identify and editor callables."""

from __future__ import annotations

from pathlib import Path

import pytest

from idntag.editor import EditResult
from idntag.errors import IdentifyError, RenameError, TagError, UnsupportedFileError, UserCancelled
from idntag.processor import FileProcessor, FileResult, Operations, collect_files, format_report
from idntag.tagging import TagPair, read_tags, write_tags


def fixed_identify(path: Path) -> tuple[str, str]:
    return "ABBA", "Waterloo"


def failing_identify(path: Path) -> tuple[str, str]:
    raise IdentifyError("no match")


class RecordingEditor:
    """Editor stand-in that records its inputs and returns a fixed outcome."""

    def __init__(self, result: EditResult | None):
        self.result = result
        self.calls: list[tuple[Path, str, str]] = []

    def __call__(self, path, artist, title, identify=None):
        self.calls.append((path, artist, title))
        return self.result


def make_processor(**ops) -> FileProcessor:
    return FileProcessor(Operations(**ops), identify=fixed_identify, show_status=False)


class TestOperations:
    def test_any(self):
        assert not Operations().any
        assert Operations(clear=True).any

    def test_needs_tags(self):
        assert not Operations(clear=True).needs_tags
        assert Operations(rename=True).needs_tags


class TestFormatReport:
    def test_default_format(self):
        result = FileResult(Path("/m/a.mp3"), Path("/m/ABBA-Waterloo.mp3"), ok=True)
        assert format_report("%i : %r : %o", result) == "/m/a.mp3 : PASS : /m/ABBA-Waterloo.mp3"

    def test_fail(self):
        result = FileResult(Path("a.mp3"), Path("a.mp3"), ok=False)
        assert format_report("%r", result) == "FAIL"

    def test_values_are_not_rescanned(self):
        result = FileResult(Path("100%r.mp3"), Path("x.mp3"), ok=True)
        assert format_report("%i %r", result) == "100%r.mp3 PASS"

    def test_unknown_tokens_kept(self):
        result = FileResult(Path("a.mp3"), Path("a.mp3"), ok=True)
        assert format_report("%x %%", result) == "%x %%"
        assert format_report("", result) == ""


def test_collect_files_expands_directories(tmp_path: Path):
    (tmp_path / "sub").mkdir()
    b = tmp_path / "sub" / "b.mp3"
    a = tmp_path / "a.mp3"
    b.touch()
    a.touch()

    files = collect_files([tmp_path, a])

    assert files == sorted([a.resolve(), b.resolve()])


def test_collect_files_skips_missing(tmp_path: Path):
    assert collect_files([tmp_path / "missing"]) == []


class TestFileProcessor:
    def test_detect_writes_tags(self, mp3_file: Path):
        result = make_processor(detect=True).process(mp3_file)

        assert result.ok
        assert result.output_path == mp3_file
        assert read_tags(mp3_file) == TagPair("ABBA", "Waterloo")

    def test_detect_and_rename(self, mp3_file: Path):
        result = make_processor(detect=True, rename=True).process(mp3_file)

        assert result.ok
        assert result.output_path == mp3_file.parent / "ABBA-Waterloo.mp3"
        assert result.output_path.exists()
        assert not mp3_file.exists()

    def test_rename_from_existing_tags(self, mp3_file: Path):
        write_tags(mp3_file, "Queen", "Bohemian Rhapsody")

        result = make_processor(rename=True).process(mp3_file)

        assert result.ok
        assert result.output_path.name == "Queen-Bohemian_Rhapsody.mp3"

    def test_rename_without_tags_fails(self, mp3_file: Path):
        result = make_processor(rename=True).process(mp3_file)

        assert not result.ok
        assert isinstance(result.error, TagError)
        assert mp3_file.exists()

    def test_clear_only(self, mp3_file: Path):
        write_tags(mp3_file, "A", "T")

        result = make_processor(clear=True).process(mp3_file)

        assert result.ok
        assert read_tags(mp3_file) == TagPair()

    def test_edit_receives_detected_tags(self, mp3_file: Path):
        editor = RecordingEditor(EditResult("ABBA", "Waterloo (Live)"))
        processor = FileProcessor(
            Operations(detect=True, edit=True),
            identify=fixed_identify,
            editor=editor,
            show_status=False,
        )

        result = processor.process(mp3_file)

        assert result.ok
        assert editor.calls == [(mp3_file, "ABBA", "Waterloo")]
        assert read_tags(mp3_file).title == "Waterloo (Live)"

    def test_edit_after_failed_detect_uses_existing_tags(self, mp3_file: Path):
        write_tags(mp3_file, "Old", "Tags")
        editor = RecordingEditor(EditResult("Old", "Tags"))
        processor = FileProcessor(
            Operations(detect=True, edit=True),
            identify=failing_identify,
            editor=editor,
            show_status=False,
        )

        assert processor.process(mp3_file).ok
        assert editor.calls == [(mp3_file, "Old", "Tags")]

    def test_detect_failure_without_edit_fails(self, mp3_file: Path):
        processor = FileProcessor(Operations(detect=True), identify=failing_identify, show_status=False)

        result = processor.process(mp3_file)

        assert not result.ok
        assert isinstance(result.error, IdentifyError)
        assert read_tags(mp3_file) == TagPair()

    def test_cancelled_edit_writes_nothing(self, mp3_file: Path):
        write_tags(mp3_file, "Keep", "Me")
        processor = FileProcessor(
            Operations(edit=True, rename=True),
            editor=RecordingEditor(None),
            show_status=False,
        )

        result = processor.process(mp3_file)

        assert not result.ok
        assert isinstance(result.error, UserCancelled)
        assert result.output_path == mp3_file
        assert read_tags(mp3_file) == TagPair("Keep", "Me")

    def test_unsupported_file(self, tmp_path: Path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        result = make_processor(detect=True).process(path)

        assert not result.ok
        assert isinstance(result.error, UnsupportedFileError)

    def test_rename_collision_gets_suffix(self, mp3_file: Path):
        (mp3_file.parent / "ABBA-Waterloo.mp3").touch()

        result = make_processor(detect=True, rename=True).process(mp3_file)

        assert result.output_path.name == "ABBA-Waterloo_1.mp3"

    def test_failures_do_not_stop_batch(self, mp3_file: Path, tmp_path: Path):
        bad = tmp_path / "bad.wav"
        bad.touch()

        results = make_processor(detect=True).process_all([bad, mp3_file])

        assert [r.ok for r in results] == [False, True]

    def test_rename_error_reported(self, mp3_file: Path, monkeypatch: pytest.MonkeyPatch):
        from idntag import processor as processor_module

        def broken_rename(old: Path, new: Path) -> None:
            raise RenameError("read-only filesystem")

        monkeypatch.setattr(processor_module, "rename_file", broken_rename)

        result = make_processor(detect=True, rename=True).process(mp3_file)

        assert not result.ok
        assert isinstance(result.error, RenameError)
        assert result.output_path == mp3_file
