"""Utility functions for loom."""

from loom.utils.helpers import ensure_dir, get_data_path, get_database_path, parse_timestamp

__all__ = ["ensure_dir", "get_data_path", "get_database_path", "parse_timestamp"]
