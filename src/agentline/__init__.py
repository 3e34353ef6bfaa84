"""Command-line client for remote agent sessions."""

__version__ = "0.1.0"
