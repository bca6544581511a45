"""Command-line interface for zdplus."""
