"""Command-line interface for loom."""
