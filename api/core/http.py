"""
Small helpers for reading caller details off a FastAPI request.
"""

from __future__ import annotations

from fastapi import Request

from . import settings

UNKNOWN_IP = "unknown"


def client_ip(request: Request) -> str:
    # First hop of X-Forwarded-For is the original client behind a proxy.
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",", 1)[0].strip()
    if first:
        return first
    if request.client is not None and request.client.host:
        return request.client.host
    return UNKNOWN_IP


def user_agent(request: Request) -> str:
    return request.headers.get("user-agent", "")


def request_origin(request: Request) -> str:
    """
    Public origin for links handed to end users (QR codes, reset emails).
    """
    configured = settings.public_base_url()
    if configured:
        return configured
    return str(request.base_url).rstrip("/")
