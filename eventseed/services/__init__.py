"""Database access, orchestration, error taxonomy, reports and metrics sinks."""
