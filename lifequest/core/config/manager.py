"""
ConfigManager: YAML-backed content and balance configuration for LifeQuest.

Purpose
-------
- Provide hierarchical, dot-notation access to tunable values (per-step XP,
  level rewards, motivation thresholds) and to the static quest catalog.
- Back configuration with YAML files under the `config/` directory.

Responsibilities
----------------
- Load and deep-merge every `*.yaml` / `*.yml` file under the config directory.
- Serve reads from an in-memory cache with simple hit/miss metrics.
- Allow in-memory overrides (used by tests and by callers that tune balance
  at runtime without touching the files).

Non-Responsibilities
--------------------
- Environment-level settings (see `lifequest.core.config.config.Config`).
- Validation of domain shapes; consumers such as the progression calculator
  validate what they read and raise their own errors.

Design Notes
------------
- Instance-based so that each test can build an isolated manager pointing at
  its own directory or dictionary.
- Missing directories and malformed files are logged and skipped; the
  consumers fall back to their built-in defaults.
"""

from __future__ import annotations

import copy
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional

import yaml

from lifequest.core.config.config import Config
from lifequest.core.logging.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


@dataclass
class ConfigManagerMetrics:
    gets: int = 0
    sets: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    files_loaded: int = 0
    files_failed: int = 0
    load_time_ms: float = 0.0


class ConfigManager:
    """
    Dot-notation configuration reader over deep-merged YAML files.

    Parameters
    ----------
    config_dir:
        Directory scanned for YAML files. Defaults to `Config.CONFIG_DIR`.
    overrides:
        Mapping merged on top of the files after loading.

    Examples
    --------
    >>> manager = ConfigManager()
    >>> manager.load()
    >>> manager.get("progression.step_xp", 30)
    30
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.config_dir: Path = Path(config_dir) if config_dir else Path(Config.CONFIG_DIR)
        self._overrides: Dict[str, Any] = copy.deepcopy(overrides) if overrides else {}
        self._cache: Dict[str, Any] = {}
        self._loaded: bool = False
        self.metrics = ConfigManagerMetrics()

    # =========================================================================
    # LOADING
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: MutableMapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)  # type: ignore[index]
            else:
                target[key] = copy.deepcopy(value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfigManager":
        """Build a manager from an in-memory mapping, skipping the filesystem."""
        manager = cls(overrides=data)
        manager._cache = copy.deepcopy(data)
        manager._loaded = True
        return manager

    def load(self) -> None:
        """
        Load all YAML files from the config directory.

        Files are merged in sorted path order so results are deterministic.
        Overrides passed to the constructor win over file values.
        """
        start = time.perf_counter()
        merged: Dict[str, Any] = {}

        if not self.config_dir.exists():
            logger.warning(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(self.config_dir)},
            )
        else:
            yaml_files = sorted(
                list(self.config_dir.rglob("*.yaml")) + list(self.config_dir.rglob("*.yml"))
            )
            if not yaml_files:
                logger.info(
                    "No YAML config files discovered; using built-in defaults only",
                    extra={"config_dir": str(self.config_dir)},
                )

            for yaml_file in yaml_files:
                relative = str(yaml_file.relative_to(self.config_dir))
                try:
                    with yaml_file.open("r", encoding="utf-8") as handle:
                        data = yaml.safe_load(handle)
                except (OSError, yaml.YAMLError) as exc:
                    self.metrics.files_failed += 1
                    logger.warning(
                        "Failed to load YAML config",
                        extra={
                            "file": relative,
                            "error": str(exc),
                            "error_type": type(exc).__name__,
                        },
                    )
                    continue

                if isinstance(data, dict):
                    self._deep_merge_dict(merged, data)
                    self.metrics.files_loaded += 1
                    logger.debug("Loaded YAML config", extra={"file": relative})
                elif data is not None:
                    logger.warning(
                        "Ignoring non-dict YAML root object",
                        extra={"file": relative, "root_type": type(data).__name__},
                    )

        if self._overrides:
            self._deep_merge_dict(merged, self._overrides)

        self._cache = merged
        self._loaded = True
        self.metrics.load_time_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "YAML configs loaded",
            extra={
                "yaml_file_count": self.metrics.files_loaded,
                "failed_file_count": self.metrics.files_failed,
                "top_level_keys": sorted(self._cache.keys()),
            },
        )

    # =========================================================================
    # ACCESS
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Parameters
        ----------
        key:
            Dot-notation config path (e.g. `"progression.step_xp"`).
        default:
            Value returned when the path does not resolve.

        Returns
        -------
        Any
            A deep copy of the resolved value, or `default`.
        """
        self.metrics.gets += 1

        if not self._loaded:
            logger.warning("ConfigManager accessed before load; loading now")
            self.load()

        value: Any = self._cache
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                self.metrics.cache_misses += 1
                return default

        self.metrics.cache_hits += 1
        if value is None:
            return default
        return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        """Override a value in memory (files are not modified)."""
        self.metrics.sets += 1
        parts = key.split(".")
        node: Dict[str, Any] = self._cache
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)

        logger.debug("Config value overridden", extra={"config_key": key})

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get_all_keys(self) -> List[str]:
        return sorted(self._cache.keys())

    def health_snapshot(self) -> Dict[str, Any]:
        return {
            "loaded": self._loaded,
            "config_dir": str(self.config_dir),
            "top_level_keys": self.get_all_keys(),
            "metrics": asdict(self.metrics),
        }
