# Kanban sync — configuration
# Defaults, overridden by sync.yaml, then environment, then CLI args.

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .replies import QUEUE_FILENAME
from .schema import SyncError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "sync.yaml"
DEFAULT_INTERVAL_MS = 1500


class ConfigError(SyncError):
    """Raised when configuration is invalid or incomplete."""
    pass


def parse_interval(value, default: int = DEFAULT_INTERVAL_MS) -> int:
    """Milliseconds from a CLI/env/YAML value; non-numeric or non-positive → default."""
    try:
        ms = int(float(value))
    except (TypeError, ValueError):
        return default
    return ms if ms > 0 else default


@dataclass
class Config:
    """Runtime configuration for the sync agent."""

    # Source
    sync_file: Optional[str] = None        # SYNC_FILE / --file (required)
    interval_ms: int = DEFAULT_INTERVAL_MS  # SYNC_INTERVAL / --interval

    # Outputs (relative names resolve under sync_dir)
    sync_dir: str = ".sync"
    latest_name: str = "latest.json"       # --out
    summary_name: str = "summary.md"       # --summary
    queue_name: str = QUEUE_FILENAME
    journal_name: str = "events.jsonl"     # "" disables the journal

    log_level: str = "INFO"                # SYNC_LOG_LEVEL / --log-level

    # ── Derived paths ────────────────────────────────────

    @property
    def source_path(self) -> Path:
        return Path(self.sync_file).expanduser()

    @property
    def sync_dir_path(self) -> Path:
        return Path(self.sync_dir).expanduser().resolve()

    @property
    def latest_path(self) -> Path:
        return self.sync_dir_path / self.latest_name

    @property
    def summary_path(self) -> Path:
        return self.sync_dir_path / self.summary_name

    @property
    def queue_path(self) -> Path:
        return self.sync_dir_path / self.queue_name

    @property
    def journal_path(self) -> Optional[Path]:
        return self.sync_dir_path / self.journal_name if self.journal_name else None

    # ── Loading ──────────────────────────────────────────

    def validate(self) -> "Config":
        if not self.sync_file:
            raise ConfigError(
                "Missing sync file path. Use --file <path> or set SYNC_FILE."
            )
        self.interval_ms = parse_interval(self.interval_ms)
        return self

    def apply_env(self, environ=None) -> "Config":
        env = os.environ if environ is None else environ
        if env.get("SYNC_FILE"):
            self.sync_file = env["SYNC_FILE"]
        if env.get("SYNC_INTERVAL"):
            self.interval_ms = parse_interval(env["SYNC_INTERVAL"])
        if env.get("SYNC_LOG_LEVEL"):
            self.log_level = env["SYNC_LOG_LEVEL"]
        return self

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else Path(os.environ.get("SYNC_CONFIG") or CONFIG_FILENAME)
        if not cfg_path.exists():
            return cls()
        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError("top level must be a mapping")
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning(f"Ignoring config {cfg_path}: {e}")
            return cls()
        known = {f.name for f in fields(cls)}
        cfg = cls(**{k: v for k, v in data.items() if k in known})
        cfg.interval_ms = parse_interval(cfg.interval_ms)
        return cfg
