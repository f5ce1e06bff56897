"""Tests for the bounded connection pool."""

import asyncio

import pytest

from redikit import error, pool

from conftest import FakeConnection


class _Factory:
    def __init__(self) -> None:
        self.created: list[FakeConnection] = []
        self.fail_with: BaseException | None = None

    async def __call__(self) -> FakeConnection:
        if self.fail_with is not None:
            raise self.fail_with

        con = FakeConnection()
        self.created.append(con)
        return con


def _pool(factory: _Factory, **kwargs: float) -> pool.ConnectionPool:
    return pool.ConnectionPool(factory, **kwargs)  # type: ignore[arg-type]


class TestAcquireRelease:
    """Tests for leasing connections."""

    @pytest.mark.asyncio
    async def test_reuses_released_connection(self) -> None:
        """Test a released connection is handed out again."""
        factory = _Factory()
        connections = _pool(factory)

        con = await connections.acquire()
        await connections.release(con)

        assert await connections.acquire() is con
        assert len(factory.created) == 1
        await connections.close()

    @pytest.mark.asyncio
    async def test_counts(self) -> None:
        """Test the size and usage counters."""
        connections = _pool(_Factory())

        first = await connections.acquire()
        await connections.acquire()
        await connections.release(first)

        assert (connections.size, connections.in_use_count, connections.idle_count) == (2, 1, 1)
        await connections.close()

    @pytest.mark.asyncio
    async def test_broken_connection_is_dropped(self) -> None:
        """Test a dead connection is not returned to the idle set."""
        factory = _Factory()
        connections = _pool(factory)

        con = await connections.acquire()
        con.alive = False
        await connections.release(con)

        assert connections.size == 0
        assert await connections.acquire() is not con
        await connections.close()

    @pytest.mark.asyncio
    async def test_release_foreign_connection(self) -> None:
        """Test releasing a connection that was never leased is a state error."""
        connections = _pool(_Factory())

        with pytest.raises(error.StateError):
            await connections.release(FakeConnection())  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_connect_failure_is_unavailable(self) -> None:
        """Test a failed connect frees its slot and raises ConnectionUnavailableError."""
        factory = _Factory()
        factory.fail_with = error.ConnectionError("refused")
        connections = _pool(factory, max_size=1)

        with pytest.raises(error.ConnectionUnavailableError):
            await connections.acquire()

        assert connections.size == 0
        factory.fail_with = None
        assert await connections.acquire() is factory.created[0]
        await connections.close()


class TestLimits:
    """Tests for the size, waiting and handler bounds."""

    @pytest.mark.asyncio
    async def test_waiter_gets_released_connection(self) -> None:
        """Test a caller waits for a connection once the pool is full."""
        connections = _pool(_Factory(), max_size=1)
        con = await connections.acquire()

        waiter = asyncio.ensure_future(connections.acquire())
        await asyncio.sleep(0)
        assert connections.waiting_count == 1

        await connections.release(con)

        assert await waiter is con
        await connections.close()

    @pytest.mark.asyncio
    async def test_waiters_are_fifo(self) -> None:
        """Test waiters are served in arrival order."""
        connections = _pool(_Factory(), max_size=1)
        con = await connections.acquire()
        order: list[str] = []

        async def lease(name: str) -> None:
            leased = await connections.acquire()
            order.append(name)
            await connections.release(leased)

        tasks = [asyncio.ensure_future(lease(name)) for name in ("a", "b", "c")]
        await asyncio.sleep(0)
        await connections.release(con)
        await asyncio.gather(*tasks)

        assert order == ["a", "b", "c"]
        await connections.close()

    @pytest.mark.asyncio
    async def test_waiting_queue_is_bounded(self) -> None:
        """Test callers beyond max_waiting fail immediately."""
        connections = _pool(_Factory(), max_size=1, max_waiting=1)
        await connections.acquire()
        waiter = asyncio.ensure_future(connections.acquire())
        await asyncio.sleep(0)

        with pytest.raises(error.ConnectionUnavailableError):
            await connections.acquire()

        waiter.cancel()
        await connections.close()

    @pytest.mark.asyncio
    async def test_handlers_are_bounded(self) -> None:
        """Test callers beyond max_handlers fail without queueing."""
        connections = _pool(_Factory(), max_size=1, max_waiting=10, max_handlers=1)
        await connections.acquire()

        with pytest.raises(error.ConnectionUnavailableError):
            await connections.acquire()

        assert connections.waiting_count == 0
        await connections.close()

    @pytest.mark.asyncio
    async def test_cancelled_waiter_frees_its_place(self) -> None:
        """Test a cancelled waiter does not swallow the next connection."""
        connections = _pool(_Factory(), max_size=1)
        con = await connections.acquire()

        cancelled = asyncio.ensure_future(connections.acquire())
        await asyncio.sleep(0)
        cancelled.cancel()
        await asyncio.sleep(0)

        await connections.release(con)

        assert await connections.acquire() is con
        await connections.close()


    @pytest.mark.asyncio
    async def test_freed_slot_is_held_for_waiter(self) -> None:
        """Test the slot of a dropped connection goes to the oldest waiter, not a newcomer."""
        factory = _Factory()
        connections = _pool(factory, max_size=1)
        con = await connections.acquire()
        first = asyncio.ensure_future(connections.acquire())
        await asyncio.sleep(0)

        con.alive = False
        await connections.release(con)
        assert connections.size == 1

        newcomer = asyncio.ensure_future(connections.acquire())
        assert await first is factory.created[1]
        await asyncio.sleep(0)

        assert not newcomer.done()
        assert connections.size == 1
        newcomer.cancel()
        await connections.close()

    @pytest.mark.asyncio
    async def test_held_slot_connect_failure(self) -> None:
        """Test a waiter that cannot connect in its held slot fails and frees it."""
        factory = _Factory()
        connections = _pool(factory, max_size=1)
        con = await connections.acquire()
        waiter = asyncio.ensure_future(connections.acquire())
        await asyncio.sleep(0)

        con.alive = False
        factory.fail_with = error.ConnectionError("refused")
        await connections.release(con)

        with pytest.raises(error.ConnectionUnavailableError):
            await waiter

        assert connections.size == 0
        await connections.close()

class TestSweepAndClose:
    """Tests for idle sweeping and closing."""

    @pytest.mark.asyncio
    async def test_sweeper_closes_idle_connections(self) -> None:
        """Test the background sweeper closes connections idle for a full interval."""
        connections = _pool(_Factory(), cleaner_interval=0.01)
        con = await connections.acquire()
        await connections.release(con)

        await asyncio.sleep(0.05)

        assert not con.is_alive()
        assert (connections.size, connections.idle_count) == (0, 0)
        await connections.close()

    @pytest.mark.asyncio
    async def test_sweep_keeps_fresh_connections(self) -> None:
        """Test recently released connections survive a sweep."""
        connections = _pool(_Factory(), cleaner_interval=60)
        con = await connections.acquire()
        await connections.release(con)

        assert await connections.sweep() == 0
        assert con.is_alive()
        await connections.close()

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        """Test closing disconnects idle connections and fails waiters."""
        connections = _pool(_Factory(), max_size=1)
        con = await connections.acquire()
        waiter = asyncio.ensure_future(connections.acquire())
        await asyncio.sleep(0)

        await connections.close()

        with pytest.raises(error.StateError):
            await waiter
        with pytest.raises(error.StateError):
            await connections.acquire()

        await connections.release(con)
        assert not con.is_alive()
        assert connections.closed
