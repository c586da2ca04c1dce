"""
Rate limiting shared by the application and its routers.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from plot_capture.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_requests}/minute"],
)

RATE_LIMIT_RESPONSE = {
    429: {"description": "Rate limit exceeded"},
}
