"""Module containing Redis client implementation."""

import collections.abc
import contextlib
import dataclasses
import types
import typing

from redikit import command, commands, config, pool, protocol, transaction, transform

if typing.TYPE_CHECKING:
    import typing_extensions

__all__: collections.abc.Sequence[str] = ("Redis",)


T = typing.TypeVar("T")


@dataclasses.dataclass(slots=True)
class Redis(
    commands.KeyCommands,
    commands.StringCommands,
    commands.ListCommands,
    commands.HashCommands,
    commands.SetCommands,
    commands.SortedSetCommands,
    commands.BitCommands,
):
    """Redis client implementation.

    The client owns a connection pool and leases one connection per command:
    every command method acquires a connection, sends the command, decodes
    the reply and gives the connection back, whatever the outcome. Calls may
    run concurrently up to the pool's capacity.

    Use as an async context manager to close the pool on exit::

        async with Redis.from_url("redis://localhost:6379/0") as client:
            await client.set("key", "value")
    """

    pool: protocol.PoolProto

    @classmethod
    def from_config(cls, cfg: config.RedisConfig) -> "typing_extensions.Self":
        """Create a client with a ``ConnectionPool`` configured by ``cfg``.

        No connections are made until the first command runs.
        """
        return cls(pool.ConnectionPool.from_config(cfg))

    @classmethod
    def from_url(cls, url: str, **options: int) -> "typing_extensions.Self":
        """Create a client from a Redis url.

        ``options`` are the pool settings of ``RedisConfig``, e.g.
        ``max_pool_size=4``. The url is validated here, but no connections are
        made.
        """
        return cls.from_config(config.RedisConfig(url=url, **options))

    @contextlib.asynccontextmanager
    async def lease(self) -> collections.abc.AsyncIterator[protocol.ConnectionProto]:
        """Hold one pooled connection for the duration of the block.

        The connection is released exactly once, also when the block raises
        or is cancelled. A connection broken inside the block is dropped by
        the pool on release.
        """
        con = await self.pool.acquire()
        try:
            yield con
        finally:
            await self.pool.release(con)

    async def execute(self, cmd: command.Command, rule: transform.Rule[T] = transform.raw, /) -> T:
        """Run a single command on a leased connection and decode its reply with ``rule``.

        If no connection can be leased the command is never sent.
        """
        async with self.lease() as con:
            await con.write_command(cmd)
            data = await con.read_response(disconnect_on_error=True)
            return rule(data)

    async def _execute(self, cmd: command.Command, rule: transform.Rule[T], /) -> T:
        return await self.execute(cmd, rule)

    def transaction(self) -> transaction.Transaction:
        """Start a new transaction session.

        The session leases its own connection when entered and keeps it until
        it exits; see ``Transaction``.
        """
        return transaction.Transaction(self.lease())

    async def close(self) -> None:
        """Close the pool and every idle connection in it."""
        await self.pool.close()

    async def __aenter__(self) -> "typing_extensions.Self":
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_value: BaseException | None,
        _exc_tb: types.TracebackType | None,
    ) -> None:
        await self.close()
