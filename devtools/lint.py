"""Run the idntag lint and type-check suite: `python devtools/lint.py [--tests]`."""

import subprocess
import sys

from funlog import log_calls
from rich import get_console, reconfigure
from rich import print as rprint

SRC_PATHS = ["src", "tests", "devtools"]
DOC_PATHS = ["README.md", "DESIGN.md"]

reconfigure(emoji=not get_console().options.legacy_windows)


def main(argv: list[str]) -> int:
    steps: list[tuple[list[str], str | None]] = [
        (["codespell", "--write-changes", *SRC_PATHS, *DOC_PATHS], None),
        (["ruff", "check", "--fix", *SRC_PATHS], None),
        (["ruff", "format", *SRC_PATHS], None),
        (["basedpyright", "--level", "error", "--stats", "src"], "0 errors"),
    ]
    if "--tests" in argv:
        # Inline `## Tests` sections in src/ are collected too
        steps.append((["pytest", "-q"], None))

    rprint()
    errcount = sum(run(cmd, expect=expect) for cmd, expect in steps)
    rprint()

    if errcount:
        rprint(f"[bold red]:x: {errcount} of {len(steps)} checks failed.[/bold red]")
    else:
        rprint("[bold green]:white_check_mark: All checks passed![/bold green]")
    rprint()

    return errcount


@log_calls(level="warning", show_timing_only=True)
def run(cmd: list[str], expect: str | None = None) -> int:
    """
    Run one tool and return 1 on failure.

    When expect is set, stdout is captured and must contain it; basedpyright
    exits 0 on warnings so its summary line is checked instead.
    """
    rprint()
    rprint(f"[bold green]>> {' '.join(cmd)}[/bold green]")
    try:
        if expect is None:
            subprocess.run(cmd, text=True, check=True)
            return 0

        result = subprocess.run(cmd, text=True, capture_output=True)
        rprint(result.stdout)
        if result.stderr:
            rprint(result.stderr)
        return 0 if expect in result.stdout else 1
    except KeyboardInterrupt:
        rprint("[yellow]Keyboard interrupt - Cancelled[/yellow]")
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        rprint(f"[bold red]Error: {e}[/bold red]")
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
