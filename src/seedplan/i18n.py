"""Internationalization utilities for summaries and validation messages."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from seedplan.paths import get_i18n_dir

# Cache for loaded string tables to avoid repeated file I/O
_strings_cache: Dict[str, Dict[str, Any]] = {}

SUPPORTED_LANGUAGES = ["en", "es"]
DEFAULT_LANGUAGE = "en"
LANG_ENV_VAR = "SEEDPLAN_LANG"


def load_strings(lang: str) -> Dict[str, Any]:
    """
    Load strings from i18n/strings_{lang}.yaml.

    Args:
        lang: Language code (en, es)

    Returns:
        Dictionary with all strings for the given language

    Raises:
        ValueError: If language is not supported
        FileNotFoundError: If the strings file doesn't exist
    """
    if lang not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Language '{lang}' not supported. Supported languages: {SUPPORTED_LANGUAGES}"
        )

    if lang in _strings_cache:
        return _strings_cache[lang]

    strings_file: Path = get_i18n_dir() / f"strings_{lang}.yaml"
    if not strings_file.exists():
        raise FileNotFoundError(f"Strings file not found: {strings_file}")

    with open(strings_file, "r", encoding="utf-8") as f:
        strings = yaml.safe_load(f)

    _strings_cache[lang] = strings or {}
    return _strings_cache[lang]


def _lookup(strings: Dict[str, Any], key: str) -> Optional[str]:
    value: Any = strings
    for part in key.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value if isinstance(value, str) else None


def get_string(key: str, lang: str = DEFAULT_LANGUAGE, **kwargs) -> str:
    """
    Get a string by dotted key, falling back to English, then to the key itself.

    Examples:
        >>> get_string("formats.fast", "en")
        'Fast Tournament'
        >>> get_string("summary.teams", "es", count=16)
        '16 equipos'
    """
    value = None
    for candidate in dict.fromkeys([lang, DEFAULT_LANGUAGE]):
        try:
            value = _lookup(load_strings(candidate), key)
        except (ValueError, FileNotFoundError):
            continue
        if value is not None:
            break

    if value is None:
        return key

    if kwargs:
        try:
            return value.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            return value
    return value


def has_string(key: str, lang: str = DEFAULT_LANGUAGE) -> bool:
    """True if the key resolves to a string in lang or the fallback language."""
    return get_string(key, lang) != key


def clear_cache() -> None:
    """Clear the strings cache. Useful for testing or reloading strings."""
    _strings_cache.clear()


def get_language_from_env() -> str:
    """
    Get the language from the SEEDPLAN_LANG environment variable.

    Returns:
        Language code (defaults to DEFAULT_LANGUAGE if not set or invalid)
    """
    env_lang = os.environ.get(LANG_ENV_VAR, DEFAULT_LANGUAGE)
    if env_lang in SUPPORTED_LANGUAGES:
        return env_lang
    return DEFAULT_LANGUAGE
