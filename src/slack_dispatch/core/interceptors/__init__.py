"""Interceptors that wrap listeners."""
