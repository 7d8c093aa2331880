"""Constants module for slack-dispatch.

This module contains constants used throughout the application and tests
to make the codebase more maintainable and the tests less fragile.
"""

# Wildcard imports make all constants accessible from a single import point.
from .header_constants import *  # noqa: F403
from .http_status_constants import *  # noqa: F403
