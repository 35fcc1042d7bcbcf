"""Shared rate limiter for the authentication endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from taskboard.core.config import settings


def get_real_client_ip(request: Request) -> str:
    """
    Resolve the client address used as the rate limit key.

    Forwarding headers are only honoured when BEHIND_PROXY is set, otherwise
    any caller could pick its own bucket by spoofing X-Forwarded-For.
    """
    if settings.BEHIND_PROXY:
        # X-Forwarded-For may contain multiple IPs: client, proxy1, proxy2, ...
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    return get_remote_address(request)


AUTH_RATE_LIMIT = "10/minute"

limiter = Limiter(key_func=get_real_client_ip, default_limits=["200/minute"])
