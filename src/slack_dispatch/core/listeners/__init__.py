"""Listener implementations."""
