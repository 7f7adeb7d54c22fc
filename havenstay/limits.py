from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from havenstay.config import settings

# Shared limiter instance; auth endpoints opt in with @limiter.limit
limiter = Limiter(key_func=get_remote_address)


# Read at request time so the limits follow the current settings
def signup_rate_limit() -> str:
    return settings.SIGNUP_RATE_LIMIT


def login_rate_limit() -> str:
    return settings.LOGIN_RATE_LIMIT


__all__ = [
    "limiter",
    "login_rate_limit",
    "signup_rate_limit",
    "RateLimitExceeded",
    "SlowAPIMiddleware",
]
