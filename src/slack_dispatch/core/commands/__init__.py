"""Slash command definitions, parsing and routing."""
