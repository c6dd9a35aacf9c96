"""
Rate Limiting Configuration

This module provides rate limiting functionality for API endpoints.
Rate limiting prevents abuse and ensures fair usage.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- IP-based limiting (can be extended to user-based)
- Only the dashboard APIs are limited
- GET /{alias} is not limited: a visitor only ever sees a redirect or the
  not-found page, and behind a proxy every visitor shares one remote address
- track-visit is not limited: every redirect calls it from this service's
  own address, so an IP limit would drop visits under load
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Initialize rate limiter
# Uses IP address for rate limiting
limiter = Limiter(key_func=get_remote_address)

# Rate limit configurations per endpoint
# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "dashboard": "30/minute",  # Dashboard queries: 30 per minute per IP
}
