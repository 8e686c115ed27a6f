"""
Path utilities for seedplan.
"""

from pathlib import Path


def get_package_dir() -> Path:
    """Directory of the installed seedplan package."""
    return Path(__file__).parent


def get_i18n_dir() -> Path:
    """Get the i18n directory path (string tables ship inside the package)."""
    return get_package_dir() / "i18n"


def get_data_dir() -> Path:
    """
    Get the user data directory for storing the database.

    Returns:
        .seedplan/ in the current working directory
    """
    data_dir = Path.cwd() / ".seedplan"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_default_db_path() -> Path:
    """Default SQLite database location."""
    return get_data_dir() / "seedplan.sqlite"
