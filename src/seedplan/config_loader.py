"""Configuration loader and validator."""

from pathlib import Path
from typing import Any

import yaml

from seedplan.formats import DEFAULT_LEAGUE_TEAM_COUNTS
from seedplan.i18n import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES
from seedplan.validation import DraftConfig


class ConfigError(Exception):
    """Configuration validation error."""

    pass


def _read_yaml(path: str, what: str) -> Any:
    config_file = Path(path)

    if not config_file.exists():
        raise ConfigError(f"{what} file not found: {path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {what.lower()} file: {e}")

    if data is None:
        raise ConfigError(f"{what} file is empty")
    if not isinstance(data, dict):
        raise ConfigError(f"{what} file must contain a mapping at the top level")
    return data


def load_config(path: str) -> dict[str, Any]:
    """Load settings from a YAML file.

    Raises:
        ConfigError: If file not found or invalid YAML
    """
    return _read_yaml(path, "Config")


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Validate settings values and fill in defaults.

    Args:
        config: Settings dictionary

    Returns:
        Validated and normalized settings with keys lang, league_team_counts
        (sorted list) and db_path (None means the default location)

    Raises:
        ConfigError: If validation fails
    """
    validated: dict[str, Any] = {}

    lang = config.get("lang", DEFAULT_LANGUAGE)
    if lang not in SUPPORTED_LANGUAGES:
        raise ConfigError(f"lang must be one of {SUPPORTED_LANGUAGES}, got '{lang}'")
    validated["lang"] = lang

    # Operator-defined league sizes
    counts = config.get("league_team_counts", sorted(DEFAULT_LEAGUE_TEAM_COUNTS))
    if not isinstance(counts, list) or not counts:
        raise ConfigError("league_team_counts must be a non-empty list of integers")
    for value in counts:
        if isinstance(value, bool) or not isinstance(value, int) or value < 4:
            raise ConfigError(f"league_team_counts entries must be integers >= 4, got {value!r}")
    validated["league_team_counts"] = sorted(set(counts))

    db_path = config.get("db_path")
    if db_path is not None and not isinstance(db_path, str):
        raise ConfigError("db_path must be a string")
    validated["db_path"] = db_path

    return validated


def load_and_validate_config(path: str) -> dict[str, Any]:
    """Load and validate settings in one step."""
    config = load_config(path)
    return validate_config(config)


def default_config() -> dict[str, Any]:
    """Settings used when no config file is given."""
    return validate_config({})


def load_draft(path: str) -> DraftConfig:
    """Load a draft tournament structure from YAML.

    Example file::

        format_kind: groups_playoffs
        team_count: 16
        max_group_size: 4
        base_advance: 2
        match_modes:
          groups: single
          playoffs: bo3
    """
    return DraftConfig.from_dict(_read_yaml(path, "Draft"))
