"""HTTP API for the platform host."""
