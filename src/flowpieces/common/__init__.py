"""Shared infrastructure: settings, logging, errors, Redis."""
