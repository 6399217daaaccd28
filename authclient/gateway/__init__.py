"""
Gateway Package
===============

Authenticated request dispatch with single-flight token refresh.

Main Components:
----------------
- transport.py: RequestDescriptor and the httpx-backed transport
- refresh.py: RequestGateway (bearer injection, 401 interception, refresh
  coordination and FIFO replay)

Usage:
------
    from authclient.gateway import RequestGateway, HttpxTransport
    gateway = RequestGateway(HttpxTransport(client), refresh)
"""

from .refresh import PendingRequest, RefreshState, RequestGateway
from .transport import HttpxTransport, RequestDescriptor, Transport

__all__ = [
    "RequestGateway",
    "RefreshState",
    "PendingRequest",
    "RequestDescriptor",
    "Transport",
    "HttpxTransport",
]
