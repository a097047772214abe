from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from idntag.tagging import DEFAULT_EXTENSIONS

DEFAULT_REPORT_FORMAT = "%i : %r : %o"


class AcoustIDConfig(BaseModel):
    """AcoustID lookup service configuration."""

    # Read from ACOUSTID_API_KEY if not provided
    api_key: str | None = Field(default=None)
    base_url: str = Field(default="https://api.acoustid.org/v2")
    min_interval_ms: int = Field(default=333, ge=0)  # 3 req/sec
    timeout_s: float = Field(default=30.0, ge=1.0)


class FingerprintConfig(BaseModel):
    """fpcalc (Chromaprint) configuration."""

    fpcalc_path: Path | None = Field(default=None)
    timeout_sec: int = Field(default=30, ge=1)


class NamingConfig(BaseModel):
    """Rename configuration."""

    # Also strip characters reserved on non-POSIX filesystems
    portable: bool = Field(default=False)


class FilesConfig(BaseModel):
    """Input file selection."""

    extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))


class ReportConfig(BaseModel):
    """Per-file report line."""

    format: str = Field(default=DEFAULT_REPORT_FORMAT)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")  # DEBUG, INFO, WARNING, ERROR
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    hash_paths: bool = Field(default=False)


class Config(BaseModel):
    """
    Main configuration for idntag.

    Loads from TOML file with optional environment variable overrides.
    """

    acoustid: AcoustIDConfig = Field(default_factory=AcoustIDConfig)
    fingerprint: FingerprintConfig = Field(default_factory=FingerprintConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    files: FilesConfig = Field(default_factory=FilesConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """
        Load configuration from TOML file with environment variable overrides.

        Environment variables take precedence and follow the pattern:
        IDNTAG_<SECTION>_<KEY> (e.g., IDNTAG_ACOUSTID_MIN_INTERVAL_MS)

        All values are gathered into a single dictionary first, then validated
        by Pydantic to ensure consistent type checking and coercion.
        """
        config_dict: dict[str, object] = {}

        if config_path and config_path.exists():
            config_dict = tomllib.loads(config_path.read_text())

        config_dict = cls._merge_env_overrides(config_dict)
        return cls.model_validate(config_dict)

    @staticmethod
    def _section(config_dict: dict[str, object], name: str) -> dict[str, object]:
        section = config_dict.setdefault(name, {})
        if not isinstance(section, dict):
            section = {}
            config_dict[name] = section
        return section

    @classmethod
    def _merge_env_overrides(cls, config_dict: dict[str, object]) -> dict[str, object]:
        """
        Merge environment variable overrides into config dictionary.

        Returns a new dictionary with env vars applied, ready for Pydantic validation.
        """
        env_prefix = "IDNTAG_"

        acoustid = cls._section(config_dict, "acoustid")
        if api_key := os.getenv("ACOUSTID_API_KEY"):
            acoustid["api_key"] = api_key
        if base_url := os.getenv(f"{env_prefix}ACOUSTID_BASE_URL"):
            acoustid["base_url"] = base_url
        if interval := os.getenv(f"{env_prefix}ACOUSTID_MIN_INTERVAL_MS"):
            acoustid["min_interval_ms"] = interval
        if timeout := os.getenv(f"{env_prefix}ACOUSTID_TIMEOUT_S"):
            acoustid["timeout_s"] = timeout

        fingerprint = cls._section(config_dict, "fingerprint")
        if fpcalc_path := os.getenv(f"{env_prefix}FINGERPRINT_FPCALC_PATH"):
            fingerprint["fpcalc_path"] = fpcalc_path
        if fp_timeout := os.getenv(f"{env_prefix}FINGERPRINT_TIMEOUT_SEC"):
            fingerprint["timeout_sec"] = fp_timeout

        naming = cls._section(config_dict, "naming")
        if portable := os.getenv(f"{env_prefix}NAMING_PORTABLE"):
            naming["portable"] = portable.lower() in ("true", "1", "yes")

        files = cls._section(config_dict, "files")
        if extensions := os.getenv(f"{env_prefix}FILES_EXTENSIONS"):
            files["extensions"] = [ext.strip() for ext in extensions.split(",") if ext.strip()]

        report = cls._section(config_dict, "report")
        if report_format := os.getenv(f"{env_prefix}REPORT_FORMAT"):
            report["format"] = report_format

        logging_config = cls._section(config_dict, "logging")
        if log_level := os.getenv(f"{env_prefix}LOGGING_LEVEL"):
            logging_config["level"] = log_level
        if log_format := os.getenv(f"{env_prefix}LOGGING_FORMAT"):
            logging_config["format"] = log_format
        if log_hash_paths := os.getenv(f"{env_prefix}LOGGING_HASH_PATHS"):
            logging_config["hash_paths"] = log_hash_paths.lower() in ("true", "1", "yes")

        return config_dict


## Tests


def test_config_defaults():
    config = Config()
    assert config.acoustid.min_interval_ms == 333
    assert config.acoustid.api_key is None
    assert config.fingerprint.timeout_sec == 30
    assert config.naming.portable is False
    assert config.report.format == "%i : %r : %o"
    assert ".mp3" in config.files.extensions


def test_config_from_dict():
    config = Config.model_validate(
        {
            "acoustid": {"min_interval_ms": 500},
            "naming": {"portable": True},
        }
    )
    assert config.acoustid.min_interval_ms == 500
    assert config.naming.portable is True


def test_config_env_overrides(
    monkeypatch,  # pyright: ignore[reportMissingParameterType,reportUnknownParameterType]
):
    monkeypatch.setenv("ACOUSTID_API_KEY", "abc123")  # pyright: ignore[reportUnknownMemberType]
    monkeypatch.setenv("IDNTAG_NAMING_PORTABLE", "yes")  # pyright: ignore[reportUnknownMemberType]
    monkeypatch.setenv("IDNTAG_FILES_EXTENSIONS", ".mp3, .flac")  # pyright: ignore[reportUnknownMemberType]

    config = Config.load()
    assert config.acoustid.api_key == "abc123"
    assert config.naming.portable is True
    assert config.files.extensions == [".mp3", ".flac"]


def test_config_load_nonexistent_file():
    config = Config.load(Path("/nonexistent/config.toml"))
    assert config.logging.level == "WARNING"
