"""LLM-backed helpers."""
