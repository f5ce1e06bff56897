"""Module containing the connection pool implementation."""

import asyncio
import collections
import collections.abc
import dataclasses
import functools
import logging
import typing

from redikit import config, connection, error, protocol

if typing.TYPE_CHECKING:
    import typing_extensions

__all__: collections.abc.Sequence[str] = ("ConnectionPool",)

_LOGGER = logging.getLogger(__name__)

ConnectionFactory: typing.TypeAlias = typing.Callable[
    [],
    typing.Coroutine[typing.Any, typing.Any, protocol.ConnectionProto],
]


@dataclasses.dataclass(slots=True)
class ConnectionPool:
    """A bounded pool of Redis connections.

    At most ``max_size`` connections are open at any time. When all of them
    are leased, up to ``max_waiting`` callers queue (FIFO) for the next free
    one; ``max_handlers`` bounds callers that either hold or wait for a
    connection. Exceeding either bound raises ``ConnectionUnavailableError``
    instead of queueing.

    Idle connections are closed by a background sweeper once they have been
    idle for ``cleaner_interval`` seconds.
    """

    factory: ConnectionFactory
    max_size: int = 16
    max_waiting: int = 24
    max_handlers: int = 32
    cleaner_interval: float = 5.0

    _idle: collections.deque[tuple[protocol.ConnectionProto, float]] = dataclasses.field(
        default_factory=collections.deque,
        init=False,
        repr=False,
    )
    # Keyed by id() so connection objects need not be hashable.
    _in_use: dict[int, protocol.ConnectionProto] = dataclasses.field(default_factory=dict, init=False, repr=False)
    _waiters: collections.deque["asyncio.Future[protocol.ConnectionProto | None]"] = dataclasses.field(
        default_factory=collections.deque,
        init=False,
        repr=False,
    )
    _size: int = dataclasses.field(default=0, init=False)
    _handlers: int = dataclasses.field(default=0, init=False)
    _sweeper: "asyncio.Task[None] | None" = dataclasses.field(default=None, init=False, repr=False)
    _closed: bool = dataclasses.field(default=False, init=False)

    @classmethod
    def from_config(cls, cfg: config.RedisConfig) -> "typing_extensions.Self":
        """Create a pool of ``Connection`` objects from a ``RedisConfig``."""
        return cls(
            factory=functools.partial(connection.Connection.from_url, cfg.url),
            max_size=cfg.max_pool_size,
            max_waiting=cfg.max_pool_waiting,
            max_handlers=cfg.max_waiting_handlers,
            cleaner_interval=cfg.pool_cleaner_interval / 1000,
        )

    @property
    def size(self) -> int:
        """Number of open (or opening) connections."""
        return self._size

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    @property
    def in_use_count(self) -> int:
        return len(self._in_use)

    @property
    def waiting_count(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    @property
    def closed(self) -> bool:
        return self._closed

    async def acquire(self) -> protocol.ConnectionProto:
        """Lease a connection.

        Raises ``ConnectionUnavailableError`` if no connection can be produced
        and ``StateError`` if the pool is closed.
        """
        if self._closed:
            msg = "Cannot acquire a connection from a closed pool."
            raise error.StateError(msg)

        if self._handlers >= self.max_handlers:
            msg = f"Too many pending redis calls ({self._handlers}/{self.max_handlers})."
            raise error.ConnectionUnavailableError(msg)

        self._ensure_sweeper()
        self._handlers += 1
        try:
            con = await self._acquire()

        except BaseException:
            self._handlers -= 1
            raise

        self._in_use[id(con)] = con
        _LOGGER.debug("acquired connection %r (%s/%s open)", con, self._size, self.max_size)
        return con

    async def _acquire(self) -> protocol.ConnectionProto:
        while True:
            con = self._pop_idle()
            if con is not None:
                return con

            if self._size < self.max_size:
                return await self._open()

            con = await self._wait()
            if con is None:
                # The slot of a dropped connection was reserved for this caller.
                return await self._open(reserved=True)

            return con

    def _pop_idle(self) -> protocol.ConnectionProto | None:
        while self._idle:
            con, _ = self._idle.pop()
            if con.is_alive():
                return con

            self._size -= 1

        return None

    async def _open(self, *, reserved: bool = False) -> protocol.ConnectionProto:
        # Reserve the slot before suspending so concurrent callers see it taken.
        if not reserved:
            self._size += 1

        try:
            return await self.factory()

        except error.ConnectionError as exc:
            self._free_slot()
            msg = f"Could not open a redis connection: {exc}"
            raise error.ConnectionUnavailableError(msg) from exc

        except BaseException:
            self._free_slot()
            raise

    async def _wait(self) -> protocol.ConnectionProto | None:
        if self.waiting_count >= self.max_waiting:
            msg = f"Redis connection pool exhausted ({self.max_size} in use, {self.max_waiting} waiting)."
            raise error.ConnectionUnavailableError(msg)

        waiter: asyncio.Future[protocol.ConnectionProto | None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await waiter

        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Handed a connection just as we were cancelled; pass it on.
                con = waiter.result()
                if con is not None:
                    self._put_back(con)
                else:
                    self._free_slot()

            raise

        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    def _notify(self, con: protocol.ConnectionProto | None) -> bool:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(con)
                return True

        return False

    def _free_slot(self) -> None:
        # A woken waiter opens its own connection in the freed slot.
        if not self._notify(None):
            self._size -= 1

    def _put_back(self, con: protocol.ConnectionProto) -> None:
        if not self._notify(con):
            self._idle.append((con, asyncio.get_running_loop().time()))

    async def release(self, con: protocol.ConnectionProto, /) -> None:
        """Return a leased connection to the pool.

        Broken connections are dropped and their slot is freed.
        """
        if self._in_use.get(id(con)) is not con:
            msg = f"Connection {con!r} was not leased from this pool."
            raise error.StateError(msg)

        del self._in_use[id(con)]
        self._handlers -= 1

        if self._closed or not con.is_alive():
            if con.is_alive():
                await con.disconnect()
            else:
                _LOGGER.warning("discarding broken connection %r", con)

            self._free_slot()
            return

        self._put_back(con)
        _LOGGER.debug("released connection %r", con)

    def _ensure_sweeper(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.cleaner_interval)
            await self.sweep()

    async def sweep(self) -> int:
        """Close connections that have been idle for a full cleaner interval.

        Returns the number of connections closed.
        """
        deadline = asyncio.get_running_loop().time() - self.cleaner_interval
        stale: list[protocol.ConnectionProto] = []
        # Idle connections are appended in release order, so the oldest are on the left.
        while self._idle and self._idle[0][1] <= deadline:
            con, _ = self._idle.popleft()
            self._size -= 1
            stale.append(con)

        for con in stale:
            await self._disconnect_quietly(con)

        if stale:
            _LOGGER.debug("swept %s idle connection(s)", len(stale))

        return len(stale)

    async def _disconnect_quietly(self, con: protocol.ConnectionProto) -> None:
        if not con.is_alive():
            return

        try:
            await con.disconnect()
        except error.RedisError:
            _LOGGER.warning("failed to close idle connection %r", con, exc_info=True)

    async def close(self) -> None:
        """Close the pool.

        Idle connections are closed now, leased ones when they are released.
        Callers still waiting for a connection fail with ``StateError``.
        """
        if self._closed:
            return

        self._closed = True

        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None

        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(error.StateError("The connection pool was closed."))

        idle = [con for con, _ in self._idle]
        self._idle.clear()
        self._size -= len(idle)
        await asyncio.gather(*[self._disconnect_quietly(con) for con in idle])
