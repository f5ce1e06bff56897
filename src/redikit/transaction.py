"""Module containing the MULTI/EXEC transaction session.

A ``Transaction`` pins one leased connection for its whole lifetime, since
WATCH, MULTI and EXEC only mean something on the connection that sent them.
Several sessions may be open at once against the same client; each holds its
own connection.

Typical optimistic-locking use::

    async with client.transaction() as tx:
        await tx.watch("balance")
        balance = int(await tx.get("balance") or 0)

        await tx.multi()
        await tx.set("balance", balance + 10)
        result = await tx.exec()

    if result.interrupted:
        ...  # "balance" changed underneath us, nothing was applied
"""

import collections.abc
import contextlib
import dataclasses
import enum
import logging
import types
import typing

from redikit import command, commands, error, protocol, reply, scan, transform

if typing.TYPE_CHECKING:
    import typing_extensions

__all__: collections.abc.Sequence[str] = ("Transaction", "TransactionResult", "TransactionState")

_LOGGER = logging.getLogger(__name__)

T = typing.TypeVar("T")


class TransactionState(enum.Enum):
    IDLE = "idle"
    WATCHING = "watching"
    QUEUING = "queuing"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclasses.dataclass(frozen=True, slots=True)
class TransactionResult:
    """Outcome of ``Transaction.exec``.

    ``interrupted`` is set when a watched key changed before EXEC; no queued
    command was applied and ``results`` is empty. Otherwise ``results`` holds
    one entry per queued command, in queue order. A command that failed on
    the server has its ``ResponseError`` in its slot instead of a value.
    """

    interrupted: bool
    results: list[typing.Any] = dataclasses.field(default_factory=list)

    @property
    def committed(self) -> bool:
        return not self.interrupted

    @property
    def errors(self) -> list[error.RedisError]:
        return [result for result in self.results if isinstance(result, error.RedisError)]

    def unwrap(self) -> list[typing.Any]:
        """Return ``results``, raising the first per-command error if there is one."""
        if self.interrupted:
            msg = "Transaction was interrupted by a change to a watched key"
            raise error.StateError(msg)

        for result in self.results:
            if isinstance(result, error.RedisError):
                raise result

        return self.results


_OPEN_STATES = (TransactionState.IDLE, TransactionState.WATCHING)


@dataclasses.dataclass(slots=True)
class Transaction(
    commands.KeyCommands,
    commands.StringCommands,
    commands.ListCommands,
    commands.HashCommands,
    commands.SetCommands,
    commands.SortedSetCommands,
    commands.BitCommands,
):
    """A WATCH/MULTI/EXEC session on one leased connection.

    Before ``multi`` every command method runs immediately and returns its
    value, which is how watched keys are read. After ``multi`` command
    methods only queue their command and return None; the decoded values
    come back from ``exec``, in queue order.

    Leaving the ``async with`` block unwatches or discards whatever is still
    pending and releases the connection.
    """

    lease: contextlib.AbstractAsyncContextManager[protocol.ConnectionProto]
    _connection: protocol.ConnectionProto | None = dataclasses.field(default=None, init=False, repr=False)
    _state: TransactionState = dataclasses.field(default=TransactionState.IDLE, init=False)
    _rules: list[transform.Rule[typing.Any]] = dataclasses.field(default_factory=list, init=False, repr=False)
    _entered: bool = dataclasses.field(default=False, init=False, repr=False)

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def queued(self) -> int:
        """Number of commands queued since ``multi``."""
        return len(self._rules)

    def _set_state(self, state: TransactionState) -> None:
        _LOGGER.debug("transaction %s -> %s", self._state.value, state.value)
        self._state = state

    def _require(self, *states: TransactionState, action: str) -> protocol.ConnectionProto:
        if self._connection is None:
            msg = "Transaction must be used as an async context manager"
            raise error.StateError(msg)

        if self._state not in states:
            msg = f"Cannot {action} a transaction in state {self._state.value!r}"
            raise error.StateError(msg)

        return self._connection

    async def _send(self, con: protocol.ConnectionProto, cmd: command.Command) -> reply.Reply:
        await con.write_command(cmd)
        return await con.read_response(disconnect_on_error=True)

    async def _execute(self, cmd: command.Command, rule: transform.Rule[T], /) -> T:
        if self._state is TransactionState.QUEUING:
            await self._queue(cmd, rule)
            # Queued commands have no value yet; it is returned by exec().
            return None  # type: ignore[return-value]

        con = self._require(*_OPEN_STATES, action=f"run {cmd.name} in")
        return rule(await self._send(con, cmd))

    def _scan_iterator(self, fetch: scan.PageFetcher[T], /) -> scan.ScanIterator[T]:
        # A queued page has no cursor to continue from.
        async def fetch_now(cursor: str) -> scan.ScanPage[T]:
            self._require(*_OPEN_STATES, action="scan in")
            return await fetch(cursor)

        return scan.ScanIterator(fetch_now)

    async def _queue(self, cmd: command.Command, rule: transform.Rule[typing.Any]) -> None:
        con = self._require(TransactionState.QUEUING, action="queue into")
        try:
            data = await self._send(con, cmd)
            if transform.status(data) != "QUEUED":
                msg = f"Expected status 'QUEUED' for {cmd.name}, got {reply.describe(data)}"
                raise error.ProtocolError(msg)

        except BaseException:
            await self._abort(con)
            raise

        self._rules.append(rule)

    async def _abort(self, con: protocol.ConnectionProto) -> None:
        self._rules.clear()
        self._set_state(TransactionState.ABORTED)

        if not con.is_alive():
            return

        try:
            await self._send(con, command.Command("DISCARD"))
        except error.RedisError:
            _LOGGER.warning("failed to discard aborted transaction", exc_info=True)
            await con.disconnect()

    async def watch(self, *keys: str) -> None:
        """Mark ``keys`` so that ``exec`` is interrupted if any of them changes.

        See also: https://redis.io/docs/latest/commands/watch/
        """
        if not keys:
            msg = "watch requires at least one key"
            raise ValueError(msg)

        con = self._require(*_OPEN_STATES, action="watch keys in")
        transform.ok(await self._send(con, command.Command("WATCH", *keys)))
        self._set_state(TransactionState.WATCHING)

    async def unwatch(self) -> None:
        con = self._require(*_OPEN_STATES, action="unwatch keys in")
        transform.ok(await self._send(con, command.Command("UNWATCH")))
        self._set_state(TransactionState.IDLE)

    async def multi(self) -> None:
        """Start queuing commands.

        See also: https://redis.io/docs/latest/commands/multi/
        """
        con = self._require(*_OPEN_STATES, action="start")
        transform.ok(await self._send(con, command.Command("MULTI")))
        self._rules.clear()
        self._set_state(TransactionState.QUEUING)

    async def exec(self) -> TransactionResult:
        """Execute all queued commands atomically.

        Returns an interrupted result if a watched key changed. If Redis
        refuses to run the transaction at all (``EXECABORT``) the
        ``ResponseError`` is raised and the session is aborted.

        See also: https://redis.io/docs/latest/commands/exec/
        """
        con = self._require(TransactionState.QUEUING, action="execute")
        rules, self._rules = self._rules, []

        try:
            data = await self._send(con, command.Command("EXEC"))

        except BaseException:
            self._set_state(TransactionState.ABORTED)
            raise

        if isinstance(data, reply.Nil):
            self._set_state(TransactionState.ABORTED)
            return TransactionResult(interrupted=True)

        self._set_state(TransactionState.COMMITTED)
        return TransactionResult(interrupted=False, results=transform.exec_results(rules)(data))

    async def discard(self) -> None:
        """Drop all queued commands without running them; also unwatches all keys.

        See also: https://redis.io/docs/latest/commands/discard/
        """
        con = self._require(TransactionState.QUEUING, action="discard")
        self._rules.clear()
        transform.ok(await self._send(con, command.Command("DISCARD")))
        self._set_state(TransactionState.IDLE)

    async def _clean_up(self, con: protocol.ConnectionProto) -> None:
        if not con.is_alive():
            return

        if self._state is TransactionState.WATCHING:
            cmd = command.Command("UNWATCH")
        elif self._state is TransactionState.QUEUING:
            cmd = command.Command("DISCARD")
        else:
            return

        try:
            await self._send(con, cmd)
        except error.RedisError:
            _LOGGER.warning("failed to reset transaction connection, closing it", exc_info=True)
            await con.disconnect()

    async def __aenter__(self) -> "typing_extensions.Self":
        if self._entered:
            msg = "A transaction can only be entered once"
            raise error.StateError(msg)

        self._entered = True
        self._connection = await self.lease.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        con, self._connection = self._connection, None
        try:
            if con is not None:
                await self._clean_up(con)
        finally:
            self._rules.clear()
            await self.lease.__aexit__(exc_type, exc_value, exc_tb)
