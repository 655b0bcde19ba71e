"""
Single-flight credential refresh coordinator.

Callers that observe an authentication failure call on_401() and await the
returned future. The first caller while idle starts exactly one refresh;
everyone arriving while it runs is queued behind it. When the refresh
settles, every queued caller is released with True or rejected with the
refresh error, in arrival order, and the coordinator goes back to idle.

Usage:
    coordinator = RefreshCoordinator(max_queue_size=50)
    coordinator.register_adapter(adapter)

    try:
        response = await send(request)
    except Exception as e:
        if not coordinator.is_auth_error(e):
            raise
        await coordinator.on_401(e)   # True, or raises the refresh error
        response = await send(request)

All state lives on the instance and is only touched from the event loop
thread; nothing between the state check and the state change in on_401()
awaits, which is what makes the refresh single-flight without a lock.
"""

import asyncio
import functools
import inspect
import logging
import time
from typing import Any, Optional

from auth_retry.classifier import is_auth_error, resolve_classifier
from auth_retry.config import AuthRetryConfig
from auth_retry.exceptions import (
    AdapterNotRegisteredError,
    QueueOverflowError,
    RefreshFailedError,
)
from auth_retry.logging.context import generate_refresh_id, set_log_context
from auth_retry.logging.utilities import log_exception
from auth_retry.queue import DEFAULT_MAX_QUEUE_SIZE, WaiterQueue
from auth_retry.types import ClassifierLike, CredentialAdapter, RefreshState

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """
    Coordinates credential refreshes for concurrent auth failures.

    Guarantees at most one refresh in flight per instance. Independent
    coordinators (one per credential domain) share nothing.
    """

    def __init__(
        self,
        error_classifier: ClassifierLike | None = None,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
        name: str = "default",
    ):
        """
        Initialize idle coordinator.

        Args:
            error_classifier: Predicate (or object with classify()) replacing
                the default 401 heuristics entirely
            max_queue_size: Maximum callers waiting on one refresh (default: 100)
            name: Label for this coordinator in log records

        Raises:
            InvalidConfigurationError: If max_queue_size is not a positive int
        """
        self.name = name
        self._classify = resolve_classifier(error_classifier)
        self._queue = WaiterQueue(max_queue_size)
        self._state = RefreshState.IDLE
        self._adapter: Optional[CredentialAdapter] = None
        self._refresh_task: Optional[asyncio.Task] = None

        logger.debug(
            f"Initialized RefreshCoordinator '{name}'",
            extra={"max_queue_size": max_queue_size},
        )

    @classmethod
    def from_config(
        cls,
        config: AuthRetryConfig,
        error_classifier: ClassifierLike | None = None,
    ) -> "RefreshCoordinator":
        """Create a coordinator from an AuthRetryConfig."""
        return cls(
            error_classifier=error_classifier,
            max_queue_size=config.max_queue_size,
            name=config.name,
        )

    # ------------------------------------------------------------------
    # Adapter
    # ------------------------------------------------------------------

    def register_adapter(self, adapter: CredentialAdapter) -> None:
        """
        Attach the adapter, replacing any previous one.

        Replacing it while a refresh is in flight is allowed; that refresh
        applies its result through whichever adapter is registered when it
        completes.
        """
        if self._state is RefreshState.REFRESHING:
            logger.warning(
                f"Adapter replaced on '{self.name}' while a refresh is in flight",
                extra={"adapter": type(adapter).__name__},
            )
        self._adapter = adapter
        logger.debug(
            f"Registered adapter on '{self.name}'",
            extra={"adapter": type(adapter).__name__},
        )

    @property
    def adapter(self) -> Optional[CredentialAdapter]:
        return self._adapter

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def refreshing(self) -> bool:
        """True while a refresh is in flight."""
        return self._state is RefreshState.REFRESHING

    @property
    def queue_size(self) -> int:
        """Number of callers currently waiting on the refresh."""
        return self._queue.size()

    @property
    def max_queue_size(self) -> int:
        return self._queue.max_size

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def is_auth_error(self, error: Any) -> bool:
        """
        Check if error should trigger a credential refresh.

        A configured classifier is used exclusively; the default 401
        heuristics only apply when none was given.
        """
        if self._classify is not None:
            return bool(self._classify(error))
        return is_auth_error(error)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def on_401(self, error: Any = None) -> "asyncio.Future[bool]":
        """
        Report an auth failure and get a future for the refresh outcome.

        Must be called from a running event loop. The returned future
        resolves to True once the in-flight (or newly started) refresh
        succeeds, or raises the refresh error if it fails.

        Args:
            error: The failure that prompted the call; only used for logging

        Returns:
            Future settling with True or the refresh error

        Raises:
            AdapterNotRegisteredError: If no adapter is registered
            QueueOverflowError: If max_queue_size callers are already waiting
        """
        adapter = self._adapter
        if adapter is None:
            raise AdapterNotRegisteredError()

        loop = asyncio.get_running_loop()
        waiter = loop.create_future()

        try:
            self._queue.add(waiter)
        except QueueOverflowError as e:
            logger.warning(
                f"Refresh queue full on '{self.name}', rejecting caller",
                extra={
                    "queue_size": self._queue.size(),
                    "max_queue_size": e.max_size,
                    "refresh_state": self._state.value,
                },
            )
            raise

        if self._state is RefreshState.REFRESHING:
            logger.debug(
                f"Refresh in flight on '{self.name}', queued caller",
                extra={"queue_size": self._queue.size()},
            )
            return waiter

        self._state = RefreshState.REFRESHING
        self._start_refresh(loop, adapter, error)
        return waiter

    def _start_refresh(
        self,
        loop: asyncio.AbstractEventLoop,
        adapter: CredentialAdapter,
        error: Any,
    ) -> None:
        refresh_id = generate_refresh_id()

        logger.info(
            f"Auth failure on '{self.name}', starting token refresh",
            extra={
                "refresh_id": refresh_id,
                "error_type": type(error).__name__ if error is not None else None,
            },
        )

        # refresh_token() is called now so the call is visible before the
        # first suspension; its result is awaited inside the task
        pending: Any = None
        call_error: Optional[Exception] = None
        try:
            pending = adapter.refresh_token()
        except Exception as e:
            call_error = e

        task = loop.create_task(
            self._run_refresh(pending, call_error, refresh_id),
            name=f"auth-retry-refresh-{self.name}-{refresh_id}",
        )
        task.add_done_callback(functools.partial(self._on_refresh_done, pending=pending))
        self._refresh_task = task

    def _on_refresh_done(self, task: asyncio.Task, pending: Any = None) -> None:
        if self._refresh_task is not task:
            return
        # Cancelled before its first step, so _run_refresh never cleaned up
        if inspect.iscoroutine(pending):
            pending.close()
        self._refresh_task = None
        self._fail(RefreshFailedError("Token refresh cancelled"), time.perf_counter())
        self._state = RefreshState.IDLE

    async def _run_refresh(
        self,
        pending: Any,
        call_error: Optional[Exception],
        refresh_id: str,
    ) -> None:
        set_log_context(coordinator=self.name, refresh_id=refresh_id)
        started = time.perf_counter()

        try:
            try:
                if call_error is not None:
                    raise call_error
                token = await pending if inspect.isawaitable(pending) else pending
            except asyncio.CancelledError:
                self._fail(RefreshFailedError("Token refresh cancelled"), started)
                raise
            except Exception as e:
                log_exception(
                    logger,
                    e,
                    f"Token refresh raised on '{self.name}'",
                    level=logging.WARNING,
                    queue_size=self._queue.size(),
                )
                self._fail(e, started)
                return

            if token:
                self._succeed(token, started)
            else:
                self._fail(RefreshFailedError(), started)
        finally:
            self._state = RefreshState.IDLE
            self._refresh_task = None

    def _succeed(self, token: str, started: float) -> None:
        adapter = self._adapter
        if adapter is None:
            self._fail(AdapterNotRegisteredError(), started)
            return

        try:
            adapter.apply_token(token)
        except Exception as e:
            log_exception(logger, e, f"Applying refreshed token failed on '{self.name}'")
            self._fail(e, started)
            return

        released = self._queue.process()
        logger.info(
            f"Token refresh succeeded on '{self.name}'",
            extra={
                "waiters_released": released,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )

    def _fail(self, reason: Exception, started: float) -> None:
        # Reject first, then log out
        rejected = self._queue.reject_all(reason)
        logger.warning(
            f"Token refresh failed on '{self.name}': {reason}",
            extra={
                "waiters_rejected": rejected,
                "error_type": type(reason).__name__,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )

        logout = getattr(self._adapter, "logout", None)
        if logout is None:
            return
        try:
            logout()
        except Exception as e:
            log_exception(logger, e, f"Adapter logout failed on '{self.name}'")

    async def wait_idle(self) -> None:
        """
        Wait for the in-flight refresh, if any, to settle.

        Cancelling the caller does not cancel the refresh.
        """
        task = self._refresh_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    def __repr__(self) -> str:
        return (
            f"RefreshCoordinator(name={self.name!r}, state={self._state.value}, "
            f"queue_size={self._queue.size()}/{self._queue.max_size})"
        )


__all__ = ["RefreshCoordinator"]
