"""Chunked batch-processing engine for long-running maintenance commands."""

__version__ = "0.1.0"
