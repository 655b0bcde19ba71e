"""Tests for WaiterQueue."""

import asyncio

import pytest

from auth_retry.exceptions import InvalidConfigurationError, QueueOverflowError
from auth_retry.queue import DEFAULT_MAX_QUEUE_SIZE, WaiterQueue


def _future():
    return asyncio.get_running_loop().create_future()


class TestWaiterQueueInit:
    """Tests for queue construction."""

    def test_default_max_size(self):
        queue = WaiterQueue()
        assert queue.max_size == DEFAULT_MAX_QUEUE_SIZE == 100
        assert queue.size() == 0

    def test_custom_max_size(self):
        assert WaiterQueue(max_size=5).max_size == 5

    @pytest.mark.parametrize("bad", [0, -1, 2.5, "10", True, None])
    def test_rejects_invalid_max_size(self, bad):
        with pytest.raises(InvalidConfigurationError, match="positive integer"):
            WaiterQueue(max_size=bad)


class TestWaiterQueueAdd:
    """Tests for admission and overflow."""

    @pytest.mark.asyncio
    async def test_add_increments_size(self):
        queue = WaiterQueue()
        queue.add(_future())
        queue.add(_future())
        assert queue.size() == 2
        assert len(queue) == 2

    @pytest.mark.asyncio
    async def test_fills_to_capacity(self):
        queue = WaiterQueue(max_size=3)
        for _ in range(3):
            queue.add(_future())
        assert queue.size() == 3

    @pytest.mark.asyncio
    async def test_overflow_rejects_and_keeps_size(self):
        queue = WaiterQueue(max_size=3)
        for _ in range(3):
            queue.add(_future())

        rejected = _future()
        with pytest.raises(QueueOverflowError, match="maximum size of 3 exceeded") as exc_info:
            queue.add(rejected)

        assert exc_info.value.max_size == 3
        assert queue.size() == 3
        assert not rejected.done()

    @pytest.mark.asyncio
    async def test_overflow_is_builtin_overflow_error(self):
        queue = WaiterQueue(max_size=1)
        queue.add(_future())
        with pytest.raises(OverflowError):
            queue.add(_future())


class TestWaiterQueueProcess:
    """Tests for success release."""

    @pytest.mark.asyncio
    async def test_releases_all_with_true(self):
        queue = WaiterQueue()
        waiters = [_future() for _ in range(3)]
        for waiter in waiters:
            queue.add(waiter)

        released = queue.process()

        assert released == 3
        assert queue.size() == 0
        assert [w.result() for w in waiters] == [True, True, True]

    @pytest.mark.asyncio
    async def test_releases_in_fifo_order(self):
        queue = WaiterQueue()
        order = []
        for i in range(4):
            waiter = _future()
            waiter.add_done_callback(lambda _, i=i: order.append(i))
            queue.add(waiter)

        queue.process()
        await asyncio.sleep(0)

        assert order == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_result_is_true_not_none(self):
        queue = WaiterQueue()
        waiter = _future()
        queue.add(waiter)
        queue.process()
        assert waiter.result() is True

    @pytest.mark.asyncio
    async def test_skips_cancelled_waiters(self):
        queue = WaiterQueue()
        cancelled = _future()
        live = _future()
        queue.add(cancelled)
        queue.add(live)
        cancelled.cancel()

        assert queue.process() == 1
        assert live.result() is True
        assert queue.size() == 0

    @pytest.mark.asyncio
    async def test_waiters_added_during_release_are_kept_for_next_batch(self):
        queue = WaiterQueue()
        late = _future()

        class EnqueueOnRelease(asyncio.Future):
            def set_result(self, result):
                super().set_result(result)
                queue.add(late)

        first = EnqueueOnRelease()
        queue.add(first)
        queue.process()

        assert first.result() is True
        assert not late.done()
        assert queue.size() == 1

    def test_process_empty_queue(self):
        assert WaiterQueue().process() == 0


class TestWaiterQueueRejectAll:
    """Tests for failure release."""

    @pytest.mark.asyncio
    async def test_rejects_all_with_same_reason(self):
        queue = WaiterQueue()
        waiters = [_future() for _ in range(3)]
        for waiter in waiters:
            queue.add(waiter)
        reason = RuntimeError("boom")

        rejected = queue.reject_all(reason)

        assert rejected == 3
        assert queue.size() == 0
        for waiter in waiters:
            assert waiter.exception() is reason

    @pytest.mark.asyncio
    async def test_skips_done_waiters(self):
        queue = WaiterQueue()
        done = _future()
        queue.add(done)
        done.set_result(True)

        assert queue.reject_all(RuntimeError("boom")) == 0
        assert done.result() is True


class TestWaiterQueueClear:
    """Tests for clearing without release."""

    @pytest.mark.asyncio
    async def test_clear_drops_without_invoking(self):
        queue = WaiterQueue()
        waiters = [_future() for _ in range(2)]
        for waiter in waiters:
            queue.add(waiter)

        assert queue.clear() == 2
        assert queue.size() == 0
        assert not any(w.done() for w in waiters)

    @pytest.mark.asyncio
    async def test_add_after_clear(self):
        queue = WaiterQueue(max_size=1)
        queue.add(_future())
        queue.clear()
        queue.add(_future())
        assert queue.size() == 1
