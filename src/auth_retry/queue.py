"""Bounded FIFO queue of callers waiting on a credential refresh."""

import asyncio
import logging

from auth_retry.exceptions import InvalidConfigurationError, QueueOverflowError

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUEUE_SIZE = 100

# A waiter is the future its caller awaits: set_result(True) releases it,
# set_exception(reason) rejects it.
Waiter = asyncio.Future


def validate_max_size(max_size: int) -> int:
    """
    Check that a queue capacity is a positive integer.

    Raises:
        InvalidConfigurationError: If max_size is not a positive int
    """
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size < 1:
        raise InvalidConfigurationError(
            f"max_queue_size must be a positive integer, got {max_size!r}"
        )
    return max_size


class WaiterQueue:
    """
    Passive, size-bounded storage for waiters.

    Knows nothing about refresh state. Every waiter is released at most once:
    process() and reject_all() empty the queue before invoking anything, so a
    callback that re-enters the queue lands in the next batch.

    Usage:
        queue = WaiterQueue(max_size=10)
        waiter = loop.create_future()
        queue.add(waiter)
        ...
        queue.process()  # waiter.result() is True
    """

    def __init__(self, max_size: int = DEFAULT_MAX_QUEUE_SIZE):
        """
        Initialize empty queue.

        Args:
            max_size: Maximum number of waiters held at once (default: 100)

        Raises:
            InvalidConfigurationError: If max_size is not a positive int
        """
        self._max_size = validate_max_size(max_size)
        self._waiters: list[Waiter] = []

    @property
    def max_size(self) -> int:
        return self._max_size

    def add(self, waiter: Waiter) -> None:
        """
        Append waiter to the tail.

        Raises:
            QueueOverflowError: If the queue is at capacity; waiter is not stored
        """
        if len(self._waiters) >= self._max_size:
            raise QueueOverflowError(self._max_size)
        self._waiters.append(waiter)

    def size(self) -> int:
        return len(self._waiters)

    def __len__(self) -> int:
        return len(self._waiters)

    def _drain(self) -> list[Waiter]:
        waiters = self._waiters
        self._waiters = []
        return waiters

    def process(self) -> int:
        """
        Release every queued waiter with True, in FIFO order, then empty.

        Waiters already done (cancelled by whoever awaited them) are skipped.

        Returns:
            Number of waiters released
        """
        released = 0
        for waiter in self._drain():
            if waiter.done():
                continue
            waiter.set_result(True)
            released += 1
        return released

    def reject_all(self, reason: BaseException) -> int:
        """
        Fail every queued waiter with reason, in FIFO order, then empty.

        Args:
            reason: Exception each waiter's awaiter will see raised

        Returns:
            Number of waiters rejected
        """
        rejected = 0
        for waiter in self._drain():
            if waiter.done():
                continue
            waiter.set_exception(reason)
            rejected += 1
        return rejected

    def clear(self) -> int:
        """
        Drop every queued waiter without releasing it.

        Returns:
            Number of waiters dropped
        """
        dropped = len(self._waiters)
        self._waiters = []
        if dropped:
            logger.debug(
                "Cleared waiter queue without releasing waiters",
                extra={"queue_size": dropped},
            )
        return dropped


__all__ = ["WaiterQueue", "Waiter", "DEFAULT_MAX_QUEUE_SIZE", "validate_max_size"]
