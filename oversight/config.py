"""
Configuration loading for oversight.

Thresholds and dedup settings come from a YAML file, usually
``.oversight.yml`` at the repository root::

    thresholds:
      fail_if_critical_gt: 0
      fail_if_high_gt: 0
      warn_if_high_gt: 0
      warn_if_medium_gt: 3
    dedup:
      similarity_threshold: 0.6
      merge_strategy: transitive   # or: pairwise
      scorer: sequence             # or: exact

Absent keys fall back to the defaults above.  Any malformed value raises
``ConfigurationError`` naming the offending key, before aggregation starts.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.domain import ConfigurationError, DedupSettings, VerdictThresholds

CONFIG_FILENAMES = (".oversight.yml", ".oversight.yaml")

CONFIG_PATH_ENV = "OVERSIGHT_CONFIG_PATH"

CONFIG_SECTIONS = ("thresholds", "dedup")


@dataclass(frozen=True)
class OversightConfig:
    thresholds: VerdictThresholds = field(default_factory=VerdictThresholds)
    dedup: DedupSettings = field(default_factory=DedupSettings)
    source: str | None = None  # None = built-in defaults

    def to_dict(self) -> dict[str, Any]:
        return {
            "thresholds": self.thresholds.to_dict(),
            "dedup": self.dedup.to_dict(),
        }


def find_config_path(explicit: str | Path | None = None, cwd: Path | None = None) -> Path | None:
    """Locate the config file to use, or None for built-in defaults.

    Priority:
        1. ``explicit`` (e.g. from ``--config``); must exist.
        2. The ``OVERSIGHT_CONFIG_PATH`` environment variable; must exist.
        3. ``.oversight.yml`` / ``.oversight.yaml`` in *cwd*.
    """
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        return path

    env_value = os.environ.get(CONFIG_PATH_ENV, "").strip()
    if env_value:
        path = Path(env_value)
        if not path.is_file():
            raise ConfigurationError(f"Config file from {CONFIG_PATH_ENV} not found: {path}")
        return path

    base = cwd or Path.cwd()
    for name in CONFIG_FILENAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def parse_config(data: Any, source: str | None = None) -> OversightConfig:
    """Validate an already-parsed config mapping."""
    if data is None:
        return OversightConfig(source=source)
    if not isinstance(data, dict):
        raise ConfigurationError("Config root must be a mapping")

    for key in data:
        if key not in CONFIG_SECTIONS:
            valid = ", ".join(CONFIG_SECTIONS)
            raise ConfigurationError(f"Unknown config section '{key}'. Valid sections: {valid}", key=str(key))

    return OversightConfig(
        thresholds=VerdictThresholds.from_mapping(data.get("thresholds")),
        dedup=DedupSettings.from_mapping(data.get("dedup")),
        source=source,
    )


def load_config_file(path: str | Path) -> OversightConfig:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {path} is not valid YAML: {e}") from e

    return parse_config(data, source=str(path))


def load_config(explicit: str | Path | None = None, cwd: Path | None = None) -> OversightConfig:
    """Resolve and load the effective configuration."""
    path = find_config_path(explicit, cwd=cwd)
    if path is None:
        return OversightConfig()
    return load_config_file(path)
