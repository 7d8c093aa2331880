"""Shared exceptions and logging utilities."""
