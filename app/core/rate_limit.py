"""Request rate limiting.

Every route shares the global per-client limit; individual routes can add a
tighter one with `@limiter.limit(...)` (the route must accept `request`).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)
