"""Shared fixtures: an in-memory connection and pool that need no Redis server."""

import collections
import dataclasses
import typing

import pytest

from redikit import client, command, error, reply


@dataclasses.dataclass(eq=False)
class FakeConnection:
    """Records every command written and answers with scripted replies.

    A scripted exception is raised from ``read_response`` instead; transport
    errors also mark the connection dead, like the real one does.
    """

    replies: collections.deque[typing.Any] = dataclasses.field(default_factory=collections.deque)
    commands: list[list[str]] = dataclasses.field(default_factory=list)
    alive: bool = True

    def script(self, *replies: typing.Any) -> None:
        self.replies.extend(replies)

    def is_alive(self) -> bool:
        return self.alive

    async def connect(self) -> None:
        self.alive = True

    async def disconnect(self) -> None:
        self.alive = False

    async def write_command(self, cmd: command.Command, /) -> None:
        if not self.alive:
            msg = "Cannot send commands to a closed connection."
            raise error.StateError(msg)

        self.commands.append([arg.decode(errors="backslashreplace") for arg in cmd])

    async def read_response(self, *, disconnect_on_error: bool = True) -> reply.Reply:
        item = self.replies.popleft()
        if isinstance(item, error.ConnectionError):
            if disconnect_on_error:
                self.alive = False
            raise item

        if isinstance(item, BaseException):
            raise item

        if isinstance(item, reply.ErrorReply):
            raise error.ResponseError(item.code, item.message)

        return item

    async def discard_response(self, *, disconnect_on_error: bool = True) -> None:
        await self.read_response(disconnect_on_error=disconnect_on_error)

    @property
    def last(self) -> list[str]:
        return self.commands[-1]


@dataclasses.dataclass(eq=False)
class FakePool:
    """Hands out its connections in order and counts leases."""

    connections: collections.deque[FakeConnection]
    acquire_error: BaseException | None = None
    acquired: int = 0
    released: int = 0
    closed: bool = False

    async def acquire(self) -> FakeConnection:
        if self.acquire_error is not None:
            raise self.acquire_error

        self.acquired += 1
        return self.connections.popleft()

    async def release(self, con: FakeConnection, /) -> None:
        self.released += 1
        self.connections.append(con)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture()
def fake_pool(connection: FakeConnection) -> FakePool:
    return FakePool(collections.deque([connection]))


@pytest.fixture()
def redis(fake_pool: FakePool) -> client.Redis:
    return client.Redis(fake_pool)
