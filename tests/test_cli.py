"""Tests for the idntag command line using click's CliRunner."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from idntag import __version__, cli
from idntag.cli import ExitCode, idntag
from idntag.safe_logging import SafeLogFormatter
from idntag.tagging import TagPair, read_tags


class FakeIdentifier:
    def __init__(self, client, fpcalc_path=None, fpcalc_timeout_sec=30):
        self.client = client

    def identify(self, path: Path) -> tuple[str, str]:
        return "ABBA", "Waterloo"


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch):
    """Keep env config and logging handlers from leaking between tests."""
    for name in ("IDNTAG_REPORT_FORMAT", "IDNTAG_FILES_EXTENSIONS", "IDNTAG_LOGGING_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ACOUSTID_API_KEY", "test-key")
    monkeypatch.setattr(cli, "Identifier", FakeIdentifier)
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, SafeLogFormatter):
            root.removeHandler(handler)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_version(runner: CliRunner):
    result = runner.invoke(idntag, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_editor_keys(runner: CliRunner):
    result = runner.invoke(idntag, ["--help"])
    assert result.exit_code == 0
    assert "Ctrl-x" in result.output
    assert "%i" in result.output


def test_no_paths(runner: CliRunner):
    result = runner.invoke(idntag, ["-d"])
    assert result.exit_code == ExitCode.NO_PATHS
    assert "No path(s) specified" in result.output


def test_empty_directory_counts_as_no_paths(runner: CliRunner, tmp_path: Path):
    result = runner.invoke(idntag, ["-d", str(tmp_path)])
    assert result.exit_code == ExitCode.NO_PATHS


def test_invalid_path(runner: CliRunner, tmp_path: Path):
    result = runner.invoke(idntag, ["-d", str(tmp_path / "missing.mp3")])
    assert result.exit_code == ExitCode.FAILED
    assert "Invalid argument" in result.output


def test_invalid_path_checked_before_operation(runner: CliRunner, tmp_path: Path):
    result = runner.invoke(idntag, [str(tmp_path / "missing.mp3")])
    assert result.exit_code == ExitCode.FAILED


def test_no_operation(runner: CliRunner, mp3_file: Path):
    result = runner.invoke(idntag, [str(mp3_file)])
    assert result.exit_code == ExitCode.NO_OPERATION
    assert "Requires" in result.output


def test_detect_reports_pass(runner: CliRunner, mp3_file: Path):
    result = runner.invoke(idntag, ["-d", str(mp3_file)])

    assert result.exit_code == ExitCode.SUCCESS
    path = mp3_file.resolve()
    assert f"{path} : PASS : {path}" in result.output
    assert read_tags(mp3_file) == TagPair("ABBA", "Waterloo")


def test_detect_and_rename_reports_new_path(runner: CliRunner, mp3_file: Path):
    result = runner.invoke(idntag, ["-d", "-r", "-R", "%o", str(mp3_file)])

    assert result.exit_code == ExitCode.SUCCESS
    assert result.output.strip().endswith("ABBA-Waterloo.mp3")
    assert (mp3_file.parent / "ABBA-Waterloo.mp3").exists()


def test_failure_sets_exit_code(runner: CliRunner, mp3_file: Path):
    (mp3_file.parent / "cover.jpg").write_bytes(b"\xff\xd8")

    result = runner.invoke(idntag, ["-d", "-R", "%r", str(mp3_file.parent)])

    assert result.exit_code == ExitCode.FAILED
    # Sorted input order: cover.jpg, then track01.mp3
    assert result.output.split() == ["FAIL", "PASS"]


def test_empty_report_format_prints_nothing(runner: CliRunner, mp3_file: Path):
    result = runner.invoke(idntag, ["-d", "-R", "", str(mp3_file)])

    assert result.exit_code == ExitCode.SUCCESS
    assert result.output == ""


def test_report_format_from_environment(runner: CliRunner, mp3_file: Path, monkeypatch):
    monkeypatch.setenv("IDNTAG_REPORT_FORMAT", "%r!")
    result = runner.invoke(idntag, ["-d", str(mp3_file)])
    assert result.output.strip() == "PASS!"


def test_report_option_overrides_config(runner: CliRunner, mp3_file: Path, tmp_path: Path):
    config_file = tmp_path / "idntag.toml"
    config_file.write_text('[report]\nformat = "from-config %r"\n')

    result = runner.invoke(idntag, ["--config", str(config_file), "-d", "-R", "cli %r", str(mp3_file)])

    assert result.output.strip() == "cli PASS"


def test_missing_api_key_warns(runner: CliRunner, mp3_file: Path, monkeypatch):
    monkeypatch.delenv("ACOUSTID_API_KEY")
    result = runner.invoke(idntag, ["-d", str(mp3_file)])
    assert "No AcoustID API key" in result.output
