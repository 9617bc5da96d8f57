"""Utility functions for the blog service."""

import hashlib
import secrets
from typing import Optional

from fastapi import Request

from inkwell.app.core.config import settings

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request, trust_forwarded: Optional[bool] = None) -> str:
    """Resolve the client address used as the rate limit token.

    When the service sits behind a proxy the first X-Forwarded-For entry
    (or X-Real-IP) is the original client. Falls back to the socket peer.

    Args:
        request: Incoming request
        trust_forwarded: Override settings.trust_forwarded_for

    Returns:
        Client address, or "unknown" if none can be determined
    """
    if trust_forwarded is None:
        trust_forwarded = settings.trust_forwarded_for

    if trust_forwarded:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        real_ip = request.headers.get("X-Real-IP", "").strip()
        if real_ip:
            return real_ip

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def hash_token(token: str) -> str:
    """Hash an API token for storage and lookup."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_api_token() -> str:
    """Generate a new random API token (shown to the user once)."""
    return f"ink-{secrets.token_urlsafe(32)}"
