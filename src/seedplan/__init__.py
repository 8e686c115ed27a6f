"""seedplan - tournament structuring and seeding engine."""

__version__ = "0.1.0"
