"""
buildorder configuration.

BuildOrderConfig is assembled from, lowest precedence first:
  1. dataclass defaults
  2. the first config file found (YAML, TOML or JSON)
  3. BUILDORDER_* environment variables

CLI options and API query parameters are applied on top by their callers.
"""

import json
import logging
import logging.handlers
import os
import tomllib
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from buildorder.core.constants import DEFAULT_CORRELATION_WINDOW_MS, DEFAULT_LOCALE
from buildorder.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("buildorder.yaml", "buildorder.toml", "buildorder.json", ".buildorder.yaml")


# ============================================================================
# Sections
# ============================================================================


@dataclass
class DataConfig:
    """Location of the blueprint and localization databases."""

    # Directory holding sbps.json, ebps.json and locales/<locale>-locstring.json
    data_dir: str = "./data/coh3-data"

    # Locale prefix of the localization table
    locale: str = DEFAULT_LOCALE


@dataclass
class TrackingConfig:
    """Building inference from production activity."""

    enabled: bool = True

    # Units queued this long after a construction are attributed to it
    correlation_window_ms: int = DEFAULT_CORRELATION_WINDOW_MS


@dataclass
class FilterSettings:
    """Which command kinds make it into the filtered build order view."""

    # Named presets (build, combat, economic, all, ...)
    presets: list[str] = field(default_factory=list)

    # Individual command kinds (build_squad, construct_entity, ...)
    kinds: list[str] = field(default_factory=list)

    # Command categories (build, combat, control, cancel, other)
    categories: list[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    # Optional rotating log file
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024
    file_backup_count: int = 5


@dataclass
class BuildOrderConfig:
    data: DataConfig = field(default_factory=DataConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    filter: FilterSettings = field(default_factory=FilterSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_version: str = "1.0"


SECTIONS = ("data", "tracking", "filter", "logging")


# ============================================================================
# Files
# ============================================================================


def _read_yaml(path: Path) -> Any:
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _read_toml(path: Path) -> Any:
    return tomllib.loads(path.read_text(encoding="utf-8"))


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _write_yaml(data: dict[str, Any], path: Path) -> None:
    path.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), encoding="utf-8")


def _write_json(data: dict[str, Any], path: Path) -> None:
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


_READERS: dict[str, Callable[[Path], Any]] = {
    ".yaml": _read_yaml,
    ".yml": _read_yaml,
    ".toml": _read_toml,
    ".json": _read_json,
}

_WRITERS: dict[str, Callable[[dict[str, Any], Path], None]] = {
    ".yaml": _write_yaml,
    ".yml": _write_yaml,
    ".json": _write_json,
}


def get_default_config_paths() -> list[Path]:
    """Candidate config files in search order: working directory, then user config dirs."""
    home = Path.home()
    xdg = Path(os.environ.get("XDG_CONFIG_HOME") or home / ".config")
    return [
        *(Path.cwd() / name for name in CONFIG_FILE_NAMES),
        home / ".config" / "buildorder" / "config.yaml",
        home / ".config" / "buildorder" / "config.toml",
        xdg / "buildorder" / "config.yaml",
    ]


def find_config_file() -> Path | None:
    return next((p for p in get_default_config_paths() if p.is_file()), None)


def load_config_file(path: Path) -> dict[str, Any]:
    """
    Read one config file. Missing files and unsupported extensions read as empty.

    Raises:
        ConfigError: the file exists but cannot be read or parsed
    """
    if not path.is_file():
        return {}
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        logger.warning(f"Ignoring config file with unsupported extension: {path}")
        return {}
    try:
        data = reader(path)
    except (OSError, UnicodeDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}", path) from e
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: top level is not a mapping")
        return {}
    return data


# ============================================================================
# Environment
# ============================================================================

ENV_VARS: dict[str, tuple[str, str]] = {
    "BUILDORDER_DATA_DIR": ("data", "data_dir"),
    "BUILDORDER_LOCALE": ("data", "locale"),
    "BUILDORDER_TRACKING_ENABLED": ("tracking", "enabled"),
    "BUILDORDER_CORRELATION_WINDOW_MS": ("tracking", "correlation_window_ms"),
    "BUILDORDER_FILTER_PRESETS": ("filter", "presets"),
    "BUILDORDER_FILTER_KINDS": ("filter", "kinds"),
    "BUILDORDER_FILTER_CATEGORIES": ("filter", "categories"),
    "BUILDORDER_LOG_LEVEL": ("logging", "level"),
    "BUILDORDER_LOG_FILE": ("logging", "file"),
}


def _coerce_env(raw: str, default: Any) -> Any:
    """Convert an environment string to the type of the field's default."""
    if isinstance(default, list):
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    return raw


def load_env_config() -> dict[str, Any]:
    """
    Nested config dict built from the BUILDORDER_* variables that are set.

    Raises:
        ConfigError: an integer variable does not hold an integer
    """
    defaults = BuildOrderConfig()
    config: dict[str, Any] = {}
    for env_var, (section, key) in ENV_VARS.items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        try:
            value = _coerce_env(raw, getattr(getattr(defaults, section), key))
        except ValueError as e:
            raise ConfigError(f"{env_var}={raw!r} is not an integer") from e
        config.setdefault(section, {})[key] = value
    return config


# ============================================================================
# Assembly
# ============================================================================


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge where override wins; nested sections merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = merge_configs(current, value)
        merged[key] = value
    return merged


def _value_problem(value: Any, default: Any) -> str | None:
    """Why value cannot replace a field whose default is default, or None when it can."""
    if default is None or isinstance(default, str):
        if isinstance(value, str) or (default is None and value is None):
            return None
        return f"expected a string, got {value!r}"
    if isinstance(default, bool):
        return None if isinstance(value, bool) else f"expected true or false, got {value!r}"
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            return f"expected an integer, got {value!r}"
        return None if value >= 0 else f"must be >= 0, got {value}"
    if isinstance(default, list):
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return None
        return f"expected a list of strings, got {value!r}"
    return None


def validate_config(config: BuildOrderConfig) -> BuildOrderConfig:
    """
    Check every setting against the type of its default.

    Integers (the correlation window, log rotation sizes) must also be
    non-negative.

    Raises:
        ConfigError: naming every setting that failed
    """
    defaults = BuildOrderConfig()
    problems = []
    for section_name in SECTIONS:
        section = getattr(config, section_name)
        default_section = getattr(defaults, section_name)
        for f in fields(section):
            problem = _value_problem(getattr(section, f.name), getattr(default_section, f.name))
            if problem:
                problems.append(f"{section_name}.{f.name}: {problem}")
    if problems:
        raise ConfigError("Invalid configuration: " + "; ".join(problems))
    return config


def dict_to_config(data: dict[str, Any]) -> BuildOrderConfig:
    """
    Build a validated BuildOrderConfig from nested dicts.

    Unknown sections and keys are ignored.

    Raises:
        ConfigError: a known key holds a value of the wrong type or range
    """
    config = BuildOrderConfig()
    for section_name in SECTIONS:
        values = data.get(section_name)
        if not isinstance(values, dict):
            continue
        section = getattr(config, section_name)
        known = {f.name for f in fields(section)}
        for key, value in values.items():
            if key in known:
                setattr(section, key, value)
            else:
                logger.debug(f"Ignoring unknown config key: {section_name}.{key}")

    if "config_version" in data:
        config.config_version = str(data["config_version"])
    return validate_config(config)


def load_config(config_file: Path | None = None, include_env: bool = True) -> BuildOrderConfig:
    """
    Assemble the configuration from file and environment.

    Args:
        config_file: File to read instead of searching the default locations
        include_env: Apply BUILDORDER_* environment variables on top of the file

    Raises:
        ConfigError: the file cannot be parsed or a setting is invalid
    """
    path = Path(config_file) if config_file else find_config_file()
    data = load_config_file(path) if path else {}
    if data:
        logger.info(f"Using config file {path}")

    if include_env:
        data = merge_configs(data, load_env_config())
    return dict_to_config(data)


def config_to_dict(config: BuildOrderConfig) -> dict[str, Any]:
    return asdict(config)


def save_config(config: BuildOrderConfig, path: Path) -> None:
    """
    Write a config as YAML or JSON, chosen by the file extension.

    Raises:
        ValueError: extension is not .yaml, .yml or .json
    """
    writer = _WRITERS.get(path.suffix.lower())
    if writer is None:
        raise ValueError(f"Unsupported config format for saving: {path.suffix}")
    writer(config_to_dict(config), path)
    logger.info(f"Wrote config to {path}")


# ============================================================================
# Logging
# ============================================================================


def setup_logging(config: LoggingConfig) -> None:
    """Apply a LoggingConfig to the root logger."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                config.file,
                maxBytes=config.file_max_bytes,
                backupCount=config.file_backup_count,
            )
        )
    logging.basicConfig(
        level=getattr(logging, str(config.level).upper(), logging.INFO),
        format=config.format,
        handlers=handlers,
        force=True,
    )


# ============================================================================
# Process-wide configuration
# ============================================================================

_active_config: BuildOrderConfig | None = None


def get_config() -> BuildOrderConfig:
    """The process-wide configuration, loaded from file and environment on first use."""
    global _active_config
    if _active_config is None:
        _active_config = load_config()
    return _active_config


def set_config(config: BuildOrderConfig) -> None:
    global _active_config
    _active_config = config


def reset_config() -> None:
    """Drop the process-wide configuration; the next get_config() reloads it."""
    global _active_config
    _active_config = None


# ============================================================================
# Starter file
# ============================================================================

DEFAULT_CONFIG_YAML = """# buildorder Configuration

# Reference data (blueprint databases and localization)
data:
  data_dir: ./data/coh3-data
  locale: en

# Building inference from production activity
tracking:
  enabled: true
  correlation_window_ms: 60000

# Filtered build order view; empty means the "build" preset
filter:
  presets: []
  kinds: []
  categories: []

# Logging settings
logging:
  level: INFO
  # file: /path/to/buildorder.log
"""


def generate_default_config(path: Path) -> None:
    """
    Write a starter config: the commented template for YAML, the defaults for JSON.

    Raises:
        ValueError: extension is not .yaml, .yml or .json
    """
    if path.suffix.lower() in (".yaml", ".yml"):
        path.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
        logger.info(f"Wrote config template to {path}")
    else:
        save_config(BuildOrderConfig(), path)
