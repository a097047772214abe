from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from idntag import __version__
from idntag.acoustid import AcoustIDClient, Identifier
from idntag.config import DEFAULT_REPORT_FORMAT, Config
from idntag.console import get_console, print_error, print_warning
from idntag.errors import InputError
from idntag.processor import FileProcessor, Operations, collect_files, format_report
from idntag.rate_limiter import RateLimiter
from idntag.safe_logging import configure_safe_logging


class ExitCode:
    """Process exit codes."""

    SUCCESS = 0
    FAILED = 1
    NO_PATHS = 2
    NO_OPERATION = 3


EPILOG = """\b
Report format fields:
    %i          input file name
    %o          output file name
    %r          result (PASS or FAIL)

\b
Interactive editor commands:
    Enter       next field / save
    Tab         next field
    Sh-Tab      previous field
    Ctrl-c      cancel
    Ctrl-d      detect / perform identification
    Ctrl-x      save

\b
Interactive editor text input commands:
    Ctrl-a      move cursor to start of line
    Ctrl-e      move cursor to end of line
    Ctrl-k      delete from cursor to end of line
    Ctrl-u      delete from cursor to start of line
"""


def _resolve_inputs(paths: tuple[Path, ...], operations: Operations) -> list[Path]:
    """
    Validate command-line input and expand it into a file list.

    Raises:
        InputError: For a path that does not exist, no files at all, or no
            operation requested (checked in that order)
    """
    for path in paths:
        if not (path.is_file() or path.is_dir()):
            raise InputError(f"Invalid argument '{path}'", exit_code=ExitCode.FAILED)

    files = collect_files(paths)
    if not files:
        raise InputError("No path(s) specified", exit_code=ExitCode.NO_PATHS)

    if not operations.any:
        raise InputError(
            "Requires at least one operation of: --clear, --detect, --edit or --rename",
            exit_code=ExitCode.NO_OPERATION,
        )

    return files


def _configure_logging(cfg: Config, verbose: int) -> None:
    # CLI verbose flag takes precedence over the config file level
    if verbose >= 2:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    else:
        log_level = getattr(logging, cfg.logging.level.upper(), logging.WARNING)

    configure_safe_logging(
        level=log_level,
        format_string=cfg.logging.format,
        hash_paths=cfg.logging.hash_paths,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]}, epilog=EPILOG)
@click.option("-c", "--clear", is_flag=True, help="Clear tags")
@click.option("-d", "--detect", is_flag=True, help="Detect / identify audio")
@click.option("-e", "--edit", is_flag=True, help="Edit / confirm detected tags")
@click.option("-r", "--rename", is_flag=True, help="Rename file based on tags")
@click.option(
    "-R",
    "--report",
    "report_format",
    metavar="FORMAT",
    default=None,
    help=f'Report format (default "{DEFAULT_REPORT_FORMAT}")',
)
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v for INFO, -vv for DEBUG)")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration TOML file",
)
@click.version_option(__version__, "-V", "--version", prog_name="idntag")
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@click.pass_context
def idntag(
    ctx: click.Context,
    clear: bool,
    detect: bool,
    edit: bool,
    rename: bool,
    report_format: str | None,
    verbose: int,
    config: Path | None,
    paths: tuple[Path, ...],
) -> None:
    """
    idntag identifies, tags and renames audio files.

    PATHS are files or directories (searched recursively) to process.
    """
    logger = logging.getLogger(__name__)

    # Precedence: CLI > Env > Config File > Defaults
    cfg = Config.load(config)
    if report_format is not None:
        cfg.report.format = report_format

    _configure_logging(cfg, verbose)
    if config:
        logger.info("Loaded config from %s", config)

    operations = Operations(clear=clear, detect=detect, edit=edit, rename=rename)

    try:
        files = _resolve_inputs(paths, operations)
    except InputError as e:
        print_error(str(e))
        click.echo(ctx.get_usage(), err=True)
        sys.exit(e.exit_code)

    logger.debug(f"Processing {len(files)} file(s)")

    if detect and not cfg.acoustid.api_key:
        print_warning("No AcoustID API key configured (ACOUSTID_API_KEY); detection will fail")

    client = AcoustIDClient(
        api_key=cfg.acoustid.api_key,
        rate_limiter=RateLimiter.from_millis(cfg.acoustid.min_interval_ms),
        base_url=cfg.acoustid.base_url,
        timeout_s=cfg.acoustid.timeout_s,
    )

    with client:
        identifier = Identifier(
            client,
            fpcalc_path=cfg.fingerprint.fpcalc_path,
            fpcalc_timeout_sec=cfg.fingerprint.timeout_sec,
        )
        processor = FileProcessor(
            operations,
            identify=identifier.identify,
            extensions=cfg.files.extensions,
            portable_names=cfg.naming.portable,
            show_status=get_console().is_terminal,
        )

        all_ok = True
        for path in files:
            result = processor.process(path)
            report = format_report(cfg.report.format, result)
            if report:
                click.echo(report)
            all_ok = all_ok and result.ok

    sys.exit(ExitCode.SUCCESS if all_ok else ExitCode.FAILED)


def main() -> None:
    """Entry point for the idntag CLI."""
    idntag()


if __name__ == "__main__":
    main()
