"""Load, validate, and hot-reload the collector tuning configuration.

The config lives in ``collector_config.yaml`` alongside this module.  It is
loaded once on first use and cached.  Call ``reload_collector_config()`` to
re-read it from disk without restarting the process.

Usage::

    from src.health.config_loader import get_collector_config

    config = get_collector_config()
    config.downsample.target_points     # 30
    config.aggregation.sort_days        # True
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger("healthcollector.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "collector_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class DownsampleConfig:
    """Chart downsampling and axis-label settings."""

    target_points: int = 30
    label_every: int = 5
    dense_label_threshold: int = 10
    label_format: str = "%d.%m.%Y %H:%M"
    day_label_format: str = "%d.%m.%Y"
    cap_to_target: bool = False


@dataclass
class AggregationConfig:
    """Daily aggregation settings for cumulative metrics."""

    sort_days: bool = True


@dataclass
class CollectorConfig:
    """Complete, validated collector configuration.

    Attributes:
        version:            Config schema version string.
        default_range_days: Length of the range offered before the user picks one.
        downsample:         Chart downsampling settings.
        aggregation:        Daily aggregation settings.
    """

    version: str = "1.0"
    default_range_days: int = 30
    downsample: DownsampleConfig = field(default_factory=DownsampleConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when collector_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Collector config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigValidationError(f"{path} must contain a mapping at the top level")
    return raw


def _validate_and_build(raw: dict) -> CollectorConfig:
    """Validate the raw YAML dict and construct a CollectorConfig.

    Missing keys fall back to the dataclass defaults.  All problems are
    collected and reported together.

    Raises:
        ConfigValidationError: If any value has the wrong type or range.
    """
    errors: list[str] = []

    def _positive_int(section: dict, key: str, default: int, where: str) -> int:
        value = section.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"{where}.{key} must be an integer, got {value!r}")
            return default
        if value < 1:
            errors.append(f"{where}.{key} must be >= 1, got {value}")
            return default
        return value

    def _section(key: str) -> dict:
        section = raw.get(key) or {}
        if not isinstance(section, dict):
            errors.append(f"'{key}' must be a mapping")
            return {}
        return section

    version = str(raw.get("version", "1.0"))
    default_range_days = _positive_int(raw, "default_range_days", 30, "collector")

    # ── Downsampling ──
    ds_raw = _section("downsample")
    defaults = DownsampleConfig()
    formats: dict[str, str] = {}
    for key in ("label_format", "day_label_format"):
        value = ds_raw.get(key, getattr(defaults, key))
        if not isinstance(value, str) or not value:
            errors.append(f"downsample.{key} must be a non-empty string, got {value!r}")
            value = getattr(defaults, key)
        formats[key] = value
    downsample = DownsampleConfig(
        target_points=_positive_int(ds_raw, "target_points", defaults.target_points, "downsample"),
        label_every=_positive_int(ds_raw, "label_every", defaults.label_every, "downsample"),
        dense_label_threshold=_positive_int(
            ds_raw, "dense_label_threshold", defaults.dense_label_threshold, "downsample"
        ),
        label_format=formats["label_format"],
        day_label_format=formats["day_label_format"],
        cap_to_target=bool(ds_raw.get("cap_to_target", defaults.cap_to_target)),
    )

    # ── Aggregation ──
    ag_raw = _section("aggregation")
    aggregation = AggregationConfig(sort_days=bool(ag_raw.get("sort_days", True)))

    if errors:
        raise ConfigValidationError(
            f"collector_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return CollectorConfig(
        version=version,
        default_range_days=default_range_days,
        downsample=downsample,
        aggregation=aggregation,
    )


def load_collector_config(path: Path | str | None = None) -> CollectorConfig:
    """Load and validate the collector config from disk.

    Args:
        path: Override path to YAML. Uses the bundled collector_config.yaml by default.
    """
    target = Path(path) if path else _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded collector config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: CollectorConfig | None = None
_config_lock = threading.Lock()


def get_collector_config() -> CollectorConfig:
    """Return the global CollectorConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_collector_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_collector_config()
    return _config


def reload_collector_config(path: Path | str | None = None) -> CollectorConfig:
    """Reload the config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_collector_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded collector config: %s → %s", old_version, new_config.version)
    return new_config
