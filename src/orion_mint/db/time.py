"""Time utilities for authorization records."""

import time


def unix_now() -> int:
    """Return the current time as whole unix seconds."""
    return int(time.time())
