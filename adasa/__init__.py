"""Persistent, validated JSON state storage for a process manager daemon."""

__version__ = "0.1.0"
__all__ = ["state"]