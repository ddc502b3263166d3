"""retain-reports configuration.

Loads settings from:
1. keyword arguments / a YAML file (``RetainSettings.from_yaml``)
2. Environment variables prefixed ``RETAIN_`` (and ``.env``)
3. Default values

``PERL_CPANM_HOME`` is honoured for the default build directory, the same
variable cpanm itself uses.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_build_dir() -> Path:
    return Path(os.getenv("PERL_CPANM_HOME") or Path.home() / ".cpanm")


class RetainSettings(BaseSettings):
    """Central configuration for a retain-reports run."""

    model_config = SettingsConfigDict(
        env_prefix="RETAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Paths ---
    report_dir: Optional[Path] = Field(
        default=None,
        description="Directory receiving <author>.<dist>.log.json files",
    )
    build_dir: Path = Field(
        default_factory=_default_build_dir,
        description="cpanm home directory (holds build.log and latest-build/)",
    )
    build_logfile: Optional[Path] = Field(
        default=None,
        description="build.log to parse; defaults to <build_dir>/build.log",
    )

    # --- Run behaviour ---
    quiet: bool = False
    verbose: bool = False
    force: bool = Field(
        default=False,
        description="Parse build.log even when it is older than max_log_age_minutes",
    )
    max_log_age_minutes: float = 30.0
    transmit: bool = Field(
        default=False,
        description="Hand stored reports to the submission client",
    )

    # --- Logging ---
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[Path] = None

    @property
    def log_path(self) -> Path:
        return self.build_logfile or self.build_dir / "build.log"

    @classmethod
    def from_yaml(cls, yaml_path: str | Path, **overrides) -> "RetainSettings":
        """Load settings from a YAML file; missing file means defaults."""
        yaml_path = Path(yaml_path)
        config_data: dict = {}
        if yaml_path.exists():
            with open(yaml_path) as f:
                config_data = yaml.safe_load(f) or {}
        config_data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**config_data)


# Global settings instance
_settings: Optional[RetainSettings] = None


def get_settings() -> RetainSettings:
    """Get or create global settings instance"""
    global _settings
    if _settings is None:
        _settings = RetainSettings()
    return _settings


def reload_settings(yaml_path: Optional[str | Path] = None) -> RetainSettings:
    """Reload settings, optionally from a YAML file"""
    global _settings
    _settings = RetainSettings.from_yaml(yaml_path) if yaml_path else RetainSettings()
    return _settings
