"""Rate limiting configuration using slowapi.

Module-level Limiter shared by the routers and wired into the app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from leaveledger.config import settings

# Individual routes can override with @limiter.limit("N/period").
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
