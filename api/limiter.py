"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (to mount as middleware), by api/routes/v1/auth.py
and by web/routes.py (per-route limits with @limiter.limit()). A single
shared instance means the JSON login and the HTML login draw from the same
in-memory counters, so switching surfaces does not reset a brute-force budget.

RATE_LIMIT_ENABLED=false turns every limit off (test suites).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

LOGIN_RATE_LIMIT = _settings.login_rate_limit

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=_settings.rate_limit_enabled)
