"""
Request descriptors and the transport the gateway dispatches them through.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


@dataclass
class RequestDescriptor:
    """
    Everything needed to (re)issue a request.

    The gateway mutates ``headers`` to inject the bearer token, and sets
    ``is_retry`` once the request has been replayed after a refresh, so the
    same descriptor can be dispatched again.
    """

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Dict[str, Any]] = None
    json: Any = None
    content: Optional[bytes] = None
    is_retry: bool = False
    _attached_bearer: Optional[str] = field(default=None, init=False, repr=False, compare=False)

    def with_bearer(self, token: str) -> "RequestDescriptor":
        """Set the Authorization header, replacing any existing spelling of it."""
        self._drop_authorization()
        self.headers["Authorization"] = f"Bearer {token}"
        self._attached_bearer = self.headers["Authorization"]
        return self

    def without_bearer(self) -> "RequestDescriptor":
        """
        Remove the Authorization header set by a previous with_bearer().

        A header the caller supplied and the gateway never replaced is kept.
        """
        if self._attached_bearer is not None and self.authorization == self._attached_bearer:
            self._drop_authorization()
        self._attached_bearer = None
        return self

    def _drop_authorization(self) -> None:
        for name in [k for k in self.headers if k.lower() == "authorization"]:
            del self.headers[name]

    @property
    def authorization(self) -> Optional[str]:
        for name, value in self.headers.items():
            if name.lower() == "authorization":
                return value
        return None


class Transport(Protocol):
    """Anything that can send a RequestDescriptor and return a response."""

    async def dispatch(self, request: RequestDescriptor) -> httpx.Response:
        ...


class HttpxTransport:
    """
    Transport backed by an httpx.AsyncClient.

    Every HTTP status comes back as a response; only network-level failures
    raise (httpx.TransportError subclasses), and those are not caught here.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def dispatch(self, request: RequestDescriptor) -> httpx.Response:
        response = await self.client.request(
            request.method,
            request.url,
            headers=request.headers,
            params=request.params,
            json=request.json,
            content=request.content,
        )
        logger.debug(
            f"Response received: {response.status_code}",
            extra={"method": request.method, "url": request.url, "retry": request.is_retry},
        )
        return response
