"""
Request Gateway with Single-Flight Refresh
==========================================

Sends requests with the current bearer token and recovers transparently
from an expired access token.

Flow on a 401 response:
-----------------------
1. Request already replayed once, or auto-refresh disabled: terminal
   UnauthorizedError.
2. A refresh is already in flight: the request is queued and waits for it.
3. Otherwise this request starts the refresh:
   - no refresh token: credentials cleared, queue rejected with
     AuthenticationRequiredError
   - refresh fails: credentials cleared, queue rejected with the refresh error
   - refresh succeeds: new tokens stored, queued requests replayed in arrival
     order, then the triggering request is replayed

State:
------
IDLE -> REFRESHING on the first qualifying 401, back to IDLE once the
refresh settles and the queue is drained. The state lives on the gateway
instance, so separate gateways never share a refresh cycle.

Everything runs on one event loop. The check-and-set of the state happens
without an await in between, which is what makes a plain field a sufficient
lock.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Deque, Optional

import httpx

from ..auth.storage import MemoryTokenStore, TokenStore
from ..errors import AuthenticationRequiredError, UnauthorizedError
from ..models import AuthTokens
from .transport import RequestDescriptor, Transport

logger = logging.getLogger(__name__)

RefreshCallable = Callable[[str], Awaitable[AuthTokens]]


class RefreshState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass
class PendingRequest:
    """
    A request that hit 401 while a refresh was in flight.

    ``future`` resolves to the replay task once the refresh succeeds, or is
    failed with the error that ended the refresh cycle.
    """

    request: RequestDescriptor
    future: "asyncio.Future[asyncio.Task]"


class RequestGateway:
    """
    Authenticated request sender with 401-triggered token refresh.

    Args:
        transport: Sends RequestDescriptors and returns httpx responses
        refresh: Awaitable ``refresh(refresh_token) -> AuthTokens``
        enable_auto_refresh: When False, every 401 is terminal
        token_store: Holder of the credential pair (in-memory by default)
    """

    def __init__(
        self,
        transport: Transport,
        refresh: RefreshCallable,
        *,
        enable_auto_refresh: bool = True,
        token_store: Optional[TokenStore] = None,
    ):
        self._transport = transport
        self._refresh = refresh
        self.enable_auto_refresh = enable_auto_refresh
        self._store = token_store if token_store is not None else MemoryTokenStore()
        self._state = RefreshState.IDLE
        self._pending: Deque[PendingRequest] = deque()

    # =========================================================================
    # Credentials
    # =========================================================================

    def set_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        logger.debug("Setting tokens", extra={"refreshable": bool(refresh_token)})
        self._store.save(AuthTokens(access_token=access_token, refresh_token=refresh_token or None))

    def clear_tokens(self) -> None:
        logger.debug("Clearing all tokens")
        self._store.clear()

    def get_access_token(self) -> Optional[str]:
        tokens = self._store.load()
        return tokens.access_token if tokens else None

    def get_refresh_token(self) -> Optional[str]:
        tokens = self._store.load()
        return tokens.refresh_token if tokens else None

    def is_authenticated(self) -> bool:
        return self.get_access_token() is not None

    # =========================================================================
    # Refresh state
    # =========================================================================

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def is_refreshing(self) -> bool:
        return self._state is RefreshState.REFRESHING

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # =========================================================================
    # Sending
    # =========================================================================

    async def send(self, request: RequestDescriptor) -> httpx.Response:
        """
        Send a request with the current access token attached.

        Returns:
            The transport's response (any status except a recoverable 401)

        Raises:
            UnauthorizedError: 401 after a replay, or with auto-refresh off
            AuthenticationRequiredError: 401 with no refresh token held
            httpx.TransportError: Network failure, unchanged
            Exception: Whatever the refresh call raised
        """
        access_token = self.get_access_token()
        if access_token:
            request.with_bearer(access_token)
        else:
            # Credentials cleared since the last attempt, e.g. a logout before a replay
            request.without_bearer()

        response = await self._transport.dispatch(request)
        if response.status_code != 401:
            return response

        if request.is_retry or not self.enable_auto_refresh:
            logger.warning(
                "Request rejected with 401, not retrying",
                extra={"url": request.url, "retry": request.is_retry},
            )
            raise UnauthorizedError(
                "Request unauthorized after token refresh"
                if request.is_retry
                else "Request unauthorized",
                response=response,
            )

        if self._state is RefreshState.REFRESHING:
            logger.info(
                "Token refresh already in progress, queueing request",
                extra={"url": request.url, "queue_length": len(self._pending) + 1},
            )
            return await self._wait_for_refresh(request)

        logger.warning("401 detected, attempting token refresh", extra={"url": request.url})
        replay = await self._refresh_and_drain(request)
        return await replay

    async def _wait_for_refresh(self, request: RequestDescriptor) -> httpx.Response:
        future = asyncio.get_running_loop().create_future()
        self._pending.append(PendingRequest(request=request, future=future))
        try:
            replay = await future
        except asyncio.CancelledError:
            # Resolved just before the cancellation landed: nobody awaits the replay
            if future.done() and not future.cancelled() and future.exception() is None:
                future.result().cancel()
            raise
        return await replay

    async def _refresh_and_drain(self, request: RequestDescriptor) -> "asyncio.Task[httpx.Response]":
        """
        Run one refresh cycle for ``request`` and settle the queue.

        Returns the replay task of ``request`` without awaiting it, so the
        state is back to IDLE before any replay result is awaited.
        """
        self._state = RefreshState.REFRESHING
        request.is_retry = True
        try:
            refresh_token = self.get_refresh_token()
            if not refresh_token:
                logger.error("No refresh token available, clearing tokens")
                self.clear_tokens()
                self._reject_pending(None)
                raise AuthenticationRequiredError("Refresh token missing. Please re-authenticate.")

            try:
                tokens = await self._refresh(refresh_token)
            except Exception as e:
                logger.error(f"Token refresh failed: {e}")
                self.clear_tokens()
                self._reject_pending(e)
                raise

            # Services that do not rotate refresh tokens may omit it
            self.set_tokens(tokens.access_token, tokens.refresh_token or refresh_token)
            logger.info(
                "Token refresh successful",
                extra={"queue_length": len(self._pending)},
            )
            self._replay_pending()
            return self._schedule_replay(request)
        finally:
            if self._pending:
                # Interrupted (e.g. cancelled) before the queue was settled
                self._reject_pending(None)
            self._state = RefreshState.IDLE
            logger.debug("Token refresh process finished")

    def _schedule_replay(self, request: RequestDescriptor) -> "asyncio.Task[httpx.Response]":
        request.is_retry = True
        return asyncio.ensure_future(self.send(request))

    def _replay_pending(self) -> None:
        """Replay queued requests in arrival order with the new token."""
        while self._pending:
            record = self._pending.popleft()
            if record.future.done():
                continue
            record.future.set_result(self._schedule_replay(record.request))

    def _reject_pending(self, error: Optional[BaseException]) -> None:
        """
        Fail every queued request.

        With no error given, each entry gets its own AuthenticationRequiredError.
        """
        if self._pending:
            logger.error(
                "Rejecting queued requests",
                extra={"queue_length": len(self._pending)},
            )
        while self._pending:
            record = self._pending.popleft()
            if record.future.done():
                continue
            record.future.set_exception(
                error if error is not None else AuthenticationRequiredError()
            )


__all__ = [
    "RequestGateway",
    "RefreshState",
    "PendingRequest",
    "RefreshCallable",
]
