"""Core dispatch engine for slack-dispatch."""
