"""Redis queue for emitted trigger events."""
