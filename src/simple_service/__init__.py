"""Data-access layer for resources stored in PostgreSQL."""

__version__ = "0.1.0"
