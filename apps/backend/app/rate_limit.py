"""
IP-based rate limiting for public endpoints.
"""
import os
from slowapi import Limiter
from slowapi.util import get_remote_address

# Rate limit: 60 requests per minute in dev, 120 in production
RATE_LIMIT_SEARCH = os.getenv("RATE_LIMIT_SEARCH", "60/minute" if os.getenv("DYPSE_ENV") == "dev" else "120/minute")

limiter = Limiter(key_func=get_remote_address)
