"""Routing, dispatch and deferral services."""
