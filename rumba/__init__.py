"""Settings, encoded ids, request tags, metrics and logging for a documentation site back end."""

__version__ = "0.1.0"