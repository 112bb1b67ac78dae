"""Shared rate limiter instance for use across route files.

Requests are keyed by client address; tests disable limiting through
``RATE_LIMIT_ENABLED=false``.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
