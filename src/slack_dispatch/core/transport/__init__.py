"""
Transport adapters package.

Adapters convert transport-specific requests into dispatch contexts and
acks back into responses.
"""

from __future__ import annotations
