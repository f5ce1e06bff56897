"""Module containing the low-level connection implementation."""

import asyncio
import collections.abc
import dataclasses
import enum
import logging
import socket
import typing

from redikit import command, config, error, protocol, reply

if typing.TYPE_CHECKING:
    import typing_extensions

__all__: collections.abc.Sequence[str] = ("Connection",)

_LOGGER = logging.getLogger(__name__)

ConnectHook: typing.TypeAlias = typing.Callable[
    ["Connection"],
    typing.Coroutine[typing.Any, typing.Any, None],
]


class ByteResponse(bytes, enum.Enum):
    # RESP2 types, see https://redis.io/docs/latest/develop/reference/protocol-spec/
    SIMPLE_STRING = b"+"
    SIMPLE_ERROR = b"-"
    NUMBER = b":"
    BLOB_STRING = b"$"
    ARRAY = b"*"

    # RESP3 scalars that some servers send even on RESP2 connections.
    NULL = b"_"
    DOUBLE = b","
    BLOB_ERROR = b"!"
    VERBATIM_STRING = b"="


@dataclasses.dataclass(slots=True)
class Connection:
    """Low-level connection implementation.

    This connection can make connections to Redis, and both send and receive
    commands. Replies are returned as ``redikit.reply`` values; it does not
    implement any higher-level commands.

    Only RESP2 connections are supported, so paired replies (HGETALL,
    WITHSCORES) arrive as flat arrays.
    """

    host: str
    port: int
    username: str | None = None
    password: str | None = dataclasses.field(default=None, repr=False)
    db: int = 0
    buffer_limit: int = 2**16
    _post_connect_hooks: dict[str, ConnectHook] = dataclasses.field(
        default_factory=dict,
        repr=False,
    )
    _reader: asyncio.StreamReader | None = dataclasses.field(default=None, repr=False)
    _writer: asyncio.StreamWriter | None = dataclasses.field(default=None, repr=False)

    @classmethod
    async def from_url(cls, url: str, /) -> "typing_extensions.Self":
        """Connect to the provided Redis url."""
        parsed = config.parse_url(url)
        return await cls.from_host_port(
            parsed.host,
            parsed.port,
            username=parsed.username,
            password=parsed.password,
            db=parsed.db,
        )

    @classmethod
    async def from_host_port(
        cls,
        host: str,
        port: int,
        /,
        *,
        username: str | None = None,
        password: str | None = None,
        db: int = 0,
    ) -> "typing_extensions.Self":
        """Connect to Redis at the provided host and port.

        If a password is given every (re)connect starts with ``AUTH``; a
        non-zero ``db`` is selected right after.
        """
        self = cls(host=host, port=port, username=username, password=password, db=db)

        if password is not None:
            self._post_connect_hooks["AUTH"] = _authenticate

        if db:
            self._post_connect_hooks["SELECT"] = _select_db

        await self.connect()
        return self

    def __del__(self) -> None:
        if getattr(self, "_writer", None):
            self._close()

    def _close(self) -> asyncio.StreamWriter:
        assert self._writer

        writer = self._writer
        writer.close()
        self._writer = self._reader = None

        return writer

    def is_alive(self) -> bool:
        """Check whether this connection has an active redis connection."""
        return self._reader is not None and self._writer is not None

    async def connect(self) -> None:
        """Connect to Redis with the connection parameters provided at instantiation."""
        try:
            reader, writer = await asyncio.open_connection(
                self.host,
                self.port,
                limit=self.buffer_limit,
            )
            sock: socket.socket | None = writer.transport.get_extra_info("socket")
            if sock is not None:
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        except OSError as exc:
            msg = f"Failed to connect to '{self.host}:{self.port}'."
            raise error.ConnectionError(msg) from exc

        self._reader = reader
        self._writer = writer
        _LOGGER.debug("connected to %s:%s", self.host, self.port)

        for name, hook in self._post_connect_hooks.items():
            try:
                await hook(self)

            except error.ResponseError as exc:
                if self.is_alive():
                    await self.disconnect()

                msg = f"{name} on '{self.host}:{self.port}' was refused: {exc}"
                raise error.ConnectionError(msg) from exc

    async def disconnect(self) -> None:
        """Close the connection with Redis."""
        if not self.is_alive():
            msg = "The connection is already closed."
            raise error.StateError(msg)

        closing_writer = self._close()
        try:
            await closing_writer.wait_closed()
        except OSError:
            # The peer may have reset the socket already; it is closed either way.
            pass

        _LOGGER.debug("disconnected from %s:%s", self.host, self.port)

    async def write_command(self, command: protocol.CommandProto, /) -> None:
        """Write a command to the connected Redis instance.

        This requires this connection to be alive.

        Either ``read_response`` or ``discard_response`` *must* be called after
        this.
        """
        if not self.is_alive():
            msg = "Cannot send commands to a closed connection."
            raise error.StateError(msg)

        assert self._writer is not None

        try:
            self._writer.write(b"*%i\r\n" % len(command))
            for arg in command:
                self._writer.write(b"$%i\r\n" % len(arg))
                self._writer.write(arg)
                self._writer.write(b"\r\n")

            await self._writer.drain()

        except OSError as exc:
            self._close()

            if len(exc.args) == 1:
                error_code = "UNKNOWN"
                error_msg = exc.args[0]

            else:
                error_code, error_msg, *_ = exc.args

            msg = f"Writing to '{self.host}:{self.port}' raised {error_code}: {error_msg}"
            raise error.ConnectionError(msg) from exc

        except BaseException:
            self._close()
            raise

    async def _read_line(self) -> bytes:
        assert self._reader is not None

        data = await self._reader.readuntil(b"\r\n")
        return data[:-2]

    async def _read_bytes(self, n: int) -> bytes:
        assert self._reader is not None

        response = await self._reader.readexactly(n + 2)

        if response[-2:] == b"\r\n":
            return response[:-2]

        msg = "reading data from stream returned incomplete response."
        raise error.ConnectionError(msg)

    async def _read_response(self) -> reply.Reply:  # noqa: C901, PLR0911
        data = await self._read_line()

        # First character is a symbol that determines the data type,
        # the rest is the actual data.
        byte, response = data[:1], data[1:]

        if byte == ByteResponse.SIMPLE_ERROR:
            err = error.ResponseError.from_response(response)
            return reply.ErrorReply(err.code, err.message)

        if byte == ByteResponse.BLOB_ERROR:
            err = error.ResponseError.from_response(await self._read_bytes(int(response)))
            return reply.ErrorReply(err.code, err.message)

        if byte == ByteResponse.SIMPLE_STRING:
            return reply.Status(response.decode("utf-8", errors="replace"))

        if byte == ByteResponse.BLOB_STRING:
            length = int(response)
            if length < 0:
                return reply.NIL

            return reply.make_bulk(await self._read_bytes(length))

        if byte == ByteResponse.VERBATIM_STRING:
            # Drop the three letter format prefix, e.g. b"txt:".
            return reply.make_bulk((await self._read_bytes(int(response)))[4:])

        if byte == ByteResponse.NUMBER:
            return reply.Integer(int(response))

        if byte == ByteResponse.DOUBLE:
            return reply.Double(response)

        if byte == ByteResponse.NULL:
            return reply.NIL

        if byte == ByteResponse.ARRAY:
            length = int(response)
            if length < 0:
                return reply.NIL

            return reply.make_array([await self._read_response() for _ in range(length)])

        msg = f"{byte!r} is not a valid response type"
        raise error.ProtocolError(msg)

    async def _fail(self, exc: BaseException, *, disconnect_on_error: bool) -> typing.NoReturn:
        if disconnect_on_error and self.is_alive():
            await self.disconnect()

        if isinstance(exc, (OSError, asyncio.IncompleteReadError, asyncio.LimitOverrunError)):
            msg = f"Failed to read from '{self.host}:{self.port}': {exc!r}"
            raise error.ConnectionError(msg) from exc

        if isinstance(exc, ValueError):
            msg = f"Malformed reply from '{self.host}:{self.port}': {exc}"
            raise error.ProtocolError(msg) from exc

        raise exc

    async def read_response(self, *, disconnect_on_error: bool = True) -> reply.Reply:
        """Read the response to a previously executed command.

        This requires this connection to be alive. An error reply from Redis
        is raised as ``ResponseError``; the connection stays usable.
        """
        if not self.is_alive():
            msg = "Cannot read from a closed connection."
            raise error.StateError(msg)

        try:
            response = await self._read_response()

        except BaseException as exc:  # noqa: BLE001
            await self._fail(exc, disconnect_on_error=disconnect_on_error)

        if isinstance(response, reply.ErrorReply):
            raise error.ResponseError(response.code, response.message)

        return response

    async def discard_response(self, *, disconnect_on_error: bool = True) -> None:
        """Discard the response to the previously executed command.

        This requires this connection to be alive. Error replies are discarded
        like any other reply.
        """
        if not self.is_alive():
            msg = "Cannot read from a closed connection."
            raise error.StateError(msg)

        try:
            await self._read_response()

        except BaseException as exc:  # noqa: BLE001
            await self._fail(exc, disconnect_on_error=disconnect_on_error)


async def _authenticate(con: Connection) -> None:
    cmd = command.Command(b"AUTH")
    if con.username:
        cmd.arg(con.username)
    cmd.arg(con.password or "")

    await con.write_command(cmd)
    await con.read_response(disconnect_on_error=True)


async def _select_db(con: Connection) -> None:
    await con.write_command(command.Command(b"SELECT", con.db))
    await con.read_response(disconnect_on_error=True)
