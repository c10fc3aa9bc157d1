"""Worker process: trigger scheduler and entry point."""
