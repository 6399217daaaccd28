"""
Shared fixtures for the authclient test suite.
"""

import asyncio
import inspect
from typing import Callable, List, Optional

import httpx
import pytest

from authclient.config import ClientSettings
from authclient.gateway import RequestDescriptor


BASE_URL = "http://auth.test"


def make_response(request: RequestDescriptor, status_code: int, json=None) -> httpx.Response:
    """Build an httpx.Response tied to the request it answers."""
    return httpx.Response(
        status_code,
        json=json,
        request=httpx.Request(request.method, BASE_URL + request.url),
    )


class ScriptedTransport:
    """
    In-memory transport driven by a handler function.

    Every dispatch is recorded as (url, authorization header, is_retry) at
    the moment it is made, before the handler runs.
    """

    def __init__(self, handler: Callable):
        self.handler = handler
        self.calls: List[tuple] = []

    async def dispatch(self, request: RequestDescriptor) -> httpx.Response:
        self.calls.append((request.url, request.authorization, request.is_retry))
        result = self.handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def retried_urls(self) -> List[str]:
        return [url for url, _, is_retry in self.calls if is_retry]


def bearer_handler(valid_token: str, gate: Optional[asyncio.Event] = None) -> Callable:
    """
    Handler answering 200 for ``valid_token`` and 401 otherwise.

    When a gate is given, 401 answers wait for it, so several requests can
    be in flight with a stale token at the same time.
    """

    async def handler(request: RequestDescriptor) -> httpx.Response:
        if request.authorization == f"Bearer {valid_token}":
            return make_response(request, 200, {"url": request.url})
        if gate is not None:
            await gate.wait()
        return make_response(request, 401, {"detail": "Token has expired"})

    return handler


class GatedRefresh:
    """Refresh endpoint double whose calls block until released."""

    def __init__(self, result=None, error: Optional[BaseException] = None):
        self.result = result
        self.error = error
        self.calls: List[str] = []
        self.release = asyncio.Event()

    async def __call__(self, refresh_token: str):
        self.calls.append(refresh_token)
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


async def run_loop(iterations: int = 20) -> None:
    """Let every ready task advance to its next suspension point."""
    for _ in range(iterations):
        await asyncio.sleep(0)


@pytest.fixture
def client_settings(tmp_path):
    """Settings isolated from the process environment and any .env file"""
    return ClientSettings(
        _env_file=None,
        AUTH_BASE_URL=BASE_URL,
        AUTH_ENABLE_AUTO_REFRESH=True,
        AUTH_TOKEN_STORAGE="memory",
        AUTH_TOKEN_FILE=tmp_path / "tokens.json",
    )
