"""
Request rate limiting.

One slowapi limiter shared by every router; disabled through
RATE_LIMIT_ENABLED (tests run with it off).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from intranet.config.settings import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
