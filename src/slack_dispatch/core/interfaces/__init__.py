"""Abstract interfaces implemented across the package."""
