"""
Rate limiting using slowapi
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() not in ("0", "false", "no")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour", "100/minute"],
    enabled=RATE_LIMIT_ENABLED,
)


def ai_generation_limit():
    """Rate limit for AI generation endpoints"""
    return limiter.limit("5/minute")


def general_api_limit():
    """Rate limit for general API endpoints"""
    return limiter.limit("60/minute")
