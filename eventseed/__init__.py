"""Synthetic users, event types and events for PostgreSQL."""

__version__ = "0.1.0"
