"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to mount as middleware) and
api/routes/v1/auth.py (to apply per-route limits with @limiter.limit()).

Using a single shared instance ensures all routes share the same in-memory
counter store. If this were instantiated in each module separately, each
module would get its own isolated counter and rate limits would never trigger.

This is a coarse per-IP request cap that applies to every request, good or
bad. It sits in front of auth/rate_limit.py, which counts only failed
credential checks and is what actually locks out password guessing.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=_settings.request_rate_limit_enabled,
)

REQUEST_RATE_LIMIT = _settings.request_rate_limit
