"""
Chromaprint fingerprints via the external `fpcalc` tool.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from idntag.errors import IdentifyError

logger = logging.getLogger(__name__)

FPCALC = "fpcalc"
CHROMAPRINT_URL = "https://acoustid.org/chromaprint"


@dataclass
class FingerprintResult:
    """Compressed fingerprint and whole-second duration, as AcoustID expects them."""

    fingerprint: str
    duration_sec: int


class FingerprintError(IdentifyError):
    """fpcalc is missing, failed, or printed no usable fingerprint."""


def find_fpcalc() -> Path | None:
    found = shutil.which(FPCALC)
    return Path(found) if found else None


def parse_fpcalc_output(output: str) -> FingerprintResult:
    """
    Parse the JSON object printed by `fpcalc -json`.

    Raises:
        FingerprintError: If the output is not JSON, or the fingerprint is
            empty or the duration is zero
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise FingerprintError(f"Unreadable fpcalc output: {e}") from e

    if not isinstance(data, dict):
        raise FingerprintError(f"fpcalc printed {type(data).__name__}, expected an object")

    fingerprint = data.get("fingerprint")
    try:
        duration = int(data.get("duration") or 0)
    except (TypeError, ValueError, OverflowError) as e:
        raise FingerprintError(f"Bad duration in fpcalc output: {e}") from e
    if not isinstance(fingerprint, str) or not fingerprint or duration <= 0:
        raise FingerprintError(f"fpcalc produced no fingerprint: {output.strip()}")

    return FingerprintResult(fingerprint=fingerprint, duration_sec=duration)


def calculate_fingerprint(
    file_path: Path,
    fpcalc_path: Path | None = None,
    timeout_sec: int = 30,
) -> FingerprintResult:
    """
    Fingerprint an audio file.

    fpcalc is looked up on PATH unless fpcalc_path is given. Every failure
    (tool missing, non-zero exit, timeout) raises FingerprintError.
    """
    tool = fpcalc_path or find_fpcalc()
    if tool is None:
        raise FingerprintError(f"{FPCALC} not found on PATH; install Chromaprint ({CHROMAPRINT_URL})")

    cmd = [str(tool), "-json", str(file_path)]
    logger.debug("Running %s -json %s", tool, file_path)
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout_sec)
    except subprocess.TimeoutExpired as e:
        raise FingerprintError(f"{FPCALC} gave up after {timeout_sec}s on {file_path.name}") from e
    except OSError as e:
        raise FingerprintError(f"Could not run {tool}: {e}") from e

    if proc.returncode != 0:
        raise FingerprintError(f"{FPCALC} exited with {proc.returncode}: {proc.stderr.strip()}")

    return parse_fpcalc_output(proc.stdout)


## Tests


def test_parse_fpcalc_output():
    result = parse_fpcalc_output('{"duration": 183.4, "fingerprint": "AQADtEmUaEkSRZEG"}')
    assert result == FingerprintResult(fingerprint="AQADtEmUaEkSRZEG", duration_sec=183)


def test_parse_fpcalc_output_rejects_unusable():
    for output in (
        '{"duration": 0, "fingerprint": "AQAD"}',
        '{"duration": 12}',
        '{"duration": "long", "fingerprint": "AQAD"}',
        '{"duration": 12, "fingerprint": 42}',
        "not json",
        "null",
        "[]",
    ):
        try:
            parse_fpcalc_output(output)
        except FingerprintError:
            continue
        raise AssertionError(f"accepted {output!r}")


def test_calculate_fingerprint_missing_tool():
    try:
        calculate_fingerprint(Path("song.mp3"), fpcalc_path=Path("/nonexistent/fpcalc"))
    except FingerprintError as e:
        assert "fpcalc" in str(e)
    else:
        raise AssertionError("expected FingerprintError")
