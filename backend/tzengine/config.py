"""
config.py: Runtime settings for the timezone engine.

Settings are resolved once at startup, either constructed explicitly or read
from the environment:

    TZENGINE_DATA_DIR   directory holding bvh.json and tz_bin/
    TZENGINE_LOG_LEVEL  logging level name (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

# ── Defaults ──────────────────────────────────────────────────────────────────
_DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"

ENV_DATA_DIR = "TZENGINE_DATA_DIR"
ENV_LOG_LEVEL = "TZENGINE_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    """
    Locations of the offline-built artifacts.

    Attributes:
        data_dir:       Root directory of the dataset.
        bvh_filename:   Name of the serialized BVH tree inside data_dir.
        rings_dirname:  Name of the per-ring binary directory inside data_dir.
        log_level:      Logging level name applied by configure_logging().
    """
    data_dir: Path = _DEFAULT_DATA_DIR
    bvh_filename: str = "bvh.json"
    rings_dirname: str = "tz_bin"
    log_level: str = "INFO"

    def __post_init__(self):
        object.__setattr__(self, "data_dir", Path(self.data_dir))
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level!r}")

    @property
    def bvh_path(self) -> Path:
        return self.data_dir / self.bvh_filename

    @property
    def rings_dir(self) -> Path:
        return self.data_dir / self.rings_dirname

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables, falling back to defaults.

        Args:
            environ: Mapping to read instead of os.environ (used by tests).
        """
        env = os.environ if environ is None else environ
        return cls(
            data_dir=Path(env.get(ENV_DATA_DIR, str(_DEFAULT_DATA_DIR))),
            log_level=env.get(ENV_LOG_LEVEL, "INFO"),
        )


def configure_logging(settings: Settings) -> None:
    """Install the process-wide log format for applications embedding the engine."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s: %(message)s",
    )
