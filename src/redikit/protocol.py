"""Module containing protocols that prescribe redikit implementations."""

import collections.abc
import typing

if typing.TYPE_CHECKING:
    import typing_extensions

    from redikit import reply

__all__: collections.abc.Sequence[str] = ("CommandProto", "ConnectionProto", "PoolProto")


class CommandProto(typing.Protocol):
    """Redis command protocol."""

    def arg(self, value: str | bytes | int | float) -> "CommandProto":
        """Add an argument to this command."""
        ...

    def __iter__(self) -> typing.Iterator[bytes]: ...

    def __len__(self) -> int: ...


class ConnectionProto(typing.Protocol):
    """Redis connection protocol."""

    @classmethod
    async def from_host_port(cls, host: str, port: int, /) -> "typing_extensions.Self":
        """Connect to Redis at the provided host and port."""
        ...

    def is_alive(self) -> bool:
        """Check whether this connection has an active redis connection."""
        ...

    async def connect(self) -> None:
        """Connect to Redis with the connection parameters provided at instantiation."""
        ...

    async def disconnect(self) -> None:
        """Close the connection with Redis."""
        ...

    async def write_command(self, command: "CommandProto", /) -> None:
        """Write a command to the connected Redis instance.

        This requires this connection to be alive.

        Either ``read_response`` or ``discard_response`` *must* be called after
        this.
        """
        ...

    async def read_response(self, *, disconnect_on_error: bool) -> "reply.Reply":
        """Read the response to a previously executed command.

        This requires this connection to be alive.
        """
        ...

    async def discard_response(self, *, disconnect_on_error: bool) -> None:
        """Discard the response to the previously executed command.

        This requires this connection to be alive.
        """
        ...


class PoolProto(typing.Protocol):
    """Connection pool protocol consumed by the client."""

    async def acquire(self) -> ConnectionProto:
        """Lease a connection, waiting for one to free up if needed."""
        ...

    async def release(self, connection: ConnectionProto, /) -> None:
        """Return a previously acquired connection."""
        ...

    async def close(self) -> None:
        """Close every connection owned by this pool."""
        ...
