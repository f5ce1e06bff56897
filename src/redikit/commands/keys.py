"""Module containing key-space and server administration commands."""

import collections.abc
import enum
import functools

from redikit import command, error, reply, scan, transform
from redikit.commands import base

__all__: collections.abc.Sequence[str] = ("KeyCommands", "ValueType")


class ValueType(str, enum.Enum):
    """Value types reported by TYPE."""

    STRING = "string"
    LIST = "list"
    SET = "set"
    ZSET = "zset"
    HASH = "hash"
    STREAM = "stream"
    NONE = "none"


def _value_type(data: reply.Reply) -> ValueType:
    name = transform.status(data)
    try:
        return ValueType(name)
    except ValueError:
        msg = f"Unknown value type {name!r}"
        raise error.ProtocolError(msg) from None


def _migrate_status(data: reply.Reply) -> bool:
    name = transform.status(data)
    if name == "OK":
        return True

    if name == "NOKEY":
        return False

    msg = f"Unexpected MIGRATE status {name!r}"
    raise error.ProtocolError(msg)


class KeyCommands(base.CommandMixin):
    __slots__ = ()

    async def exists(self, key: str) -> bool:
        """Check whether ``key`` exists.

        See also: https://redis.io/docs/latest/commands/exists/
        """
        return await self._execute(command.Command("EXISTS", key), transform.boolean)

    async def exists_count(self, *keys: str) -> int:
        """Count how many of ``keys`` exist.

        A key listed more than once is counted more than once.
        """
        return await self._execute(command.Command("EXISTS", *keys), transform.integer)

    async def delete(self, *keys: str) -> int:
        """Delete ``keys``, returning how many existed."""
        return await self._execute(command.Command("DEL", *keys), transform.integer)

    async def unlink(self, *keys: str) -> int:
        """Like ``delete``, but memory is reclaimed in the background."""
        return await self._execute(command.Command("UNLINK", *keys), transform.integer)

    async def type(self, key: str) -> ValueType:
        return await self._execute(command.Command("TYPE", key), _value_type)

    async def randomkey(self) -> str | None:
        return await self._execute(command.Command("RANDOMKEY"), transform.nullable(transform.string))

    async def expire(self, key: str, seconds: int) -> bool:
        """Set a timeout on ``key``.

        Returns False if the key does not exist. A non-positive timeout deletes
        the key instead of expiring it.

        See also: https://redis.io/docs/latest/commands/expire/
        """
        return await self._execute(command.Command("EXPIRE", key, seconds), transform.boolean)

    async def expireat(self, key: str, unix_time_seconds: int) -> bool:
        return await self._execute(command.Command("EXPIREAT", key, unix_time_seconds), transform.boolean)

    async def pexpire(self, key: str, milliseconds: int) -> bool:
        return await self._execute(command.Command("PEXPIRE", key, milliseconds), transform.boolean)

    async def pexpireat(self, key: str, unix_time_milliseconds: int) -> bool:
        return await self._execute(command.Command("PEXPIREAT", key, unix_time_milliseconds), transform.boolean)

    async def ttl(self, key: str) -> int:
        """Remaining time to live of ``key`` in seconds.

        Returns -1 if the key has no timeout and -2 if it does not exist.
        """
        return await self._execute(command.Command("TTL", key), transform.integer)

    async def pttl(self, key: str) -> int:
        """Like ``ttl``, in milliseconds."""
        return await self._execute(command.Command("PTTL", key), transform.integer)

    async def persist(self, key: str) -> bool:
        """Remove the timeout of ``key``; False if it had none or does not exist."""
        return await self._execute(command.Command("PERSIST", key), transform.boolean)

    async def keys(self, pattern: str = "*") -> list[str]:
        """Return all keys matching ``pattern``.

        This blocks the server for the whole key space; prefer ``scan_iter``.
        """
        return await self._execute(command.Command("KEYS", pattern), transform.string_list)

    async def rename(self, key: str, new_key: str) -> None:
        """Rename ``key``, overwriting ``new_key``. Fails if ``key`` does not exist."""
        await self._execute(command.Command("RENAME", key, new_key), transform.ok)

    async def renamenx(self, key: str, new_key: str) -> bool:
        """Rename ``key`` only if ``new_key`` does not exist yet."""
        return await self._execute(command.Command("RENAMENX", key, new_key), transform.boolean)

    async def touch(self, *keys: str) -> int:
        return await self._execute(command.Command("TOUCH", *keys), transform.integer)

    async def dump(self, key: str) -> bytes | None:
        """Serialize the value at ``key`` in the RDB format."""
        return await self._execute(command.Command("DUMP", key), transform.nullable(transform.blob))

    async def restore(  # noqa: PLR0913
        self,
        key: str,
        ttl: int,
        serialized_value: bytes,
        *,
        replace: bool = False,
        absttl: bool = False,
        idletime: int | None = None,
        freq: int | None = None,
    ) -> None:
        """Create ``key`` from the output of ``dump``.

        ``ttl`` is in milliseconds; 0 means no expiry.

        See also: https://redis.io/docs/latest/commands/restore/
        """
        cmd = (
            command.Command("RESTORE", key, ttl, serialized_value)
            .flag("REPLACE", replace)
            .flag("ABSTTL", absttl)
            .option("IDLETIME", idletime)
            .option("FREQ", freq)
        )
        await self._execute(cmd, transform.ok)

    async def migrate(  # noqa: PLR0913
        self,
        host: str,
        port: int,
        keys: collections.abc.Sequence[str],
        destination_db: int,
        timeout: int,
        *,
        copy: bool = False,
        replace: bool = False,
        password: str | None = None,
    ) -> bool:
        """Move ``keys`` to another Redis instance.

        Returns False if none of the keys existed.
        """
        cmd = (
            command.Command("MIGRATE", host, port, "", destination_db, timeout)
            .flag("COPY", copy)
            .flag("REPLACE", replace)
            .option("AUTH", password)
            .arg("KEYS")
            .args(keys)
        )
        return await self._execute(cmd, _migrate_status)

    async def move(self, key: str, db: int) -> bool:
        return await self._execute(command.Command("MOVE", key, db), transform.boolean)

    async def object_encoding(self, key: str) -> str | None:
        return await self._execute(command.Command("OBJECT", "ENCODING", key), transform.nullable(transform.string))

    async def object_refcount(self, key: str) -> int | None:
        return await self._execute(command.Command("OBJECT", "REFCOUNT", key), transform.nullable(transform.integer))

    async def object_idletime(self, key: str) -> int | None:
        return await self._execute(command.Command("OBJECT", "IDLETIME", key), transform.nullable(transform.integer))

    async def object_freq(self, key: str) -> int | None:
        """Access frequency counter; only available with an LFU eviction policy."""
        return await self._execute(command.Command("OBJECT", "FREQ", key), transform.nullable(transform.integer))

    @staticmethod
    def _sort_command(  # noqa: PLR0913
        key: str,
        *,
        by: str | None,
        offset: int | None,
        count: int | None,
        get: collections.abc.Sequence[str] | None,
        desc: bool,
        alpha: bool,
    ) -> command.Command:
        return (
            command.Command("SORT", key)
            .option("BY", by)
            .pair("LIMIT", offset, count)
            .repeat("GET", get)
            .flag("DESC", desc)
            .flag("ALPHA", alpha)
        )

    async def sort(  # noqa: PLR0913
        self,
        key: str,
        *,
        by: str | None = None,
        offset: int | None = None,
        count: int | None = None,
        get: collections.abc.Sequence[str] | None = None,
        desc: bool = False,
        alpha: bool = False,
    ) -> list[str | None]:
        """Sort the elements of a list, set or sorted set.

        ``LIMIT`` is only sent when both ``offset`` and ``count`` are given.
        ``GET`` patterns that match nothing produce None.

        See also: https://redis.io/docs/latest/commands/sort/
        """
        cmd = self._sort_command(key, by=by, offset=offset, count=count, get=get, desc=desc, alpha=alpha)
        return await self._execute(cmd, transform.optional_string_list)

    async def sort_store(  # noqa: PLR0913
        self,
        key: str,
        destination: str,
        *,
        by: str | None = None,
        offset: int | None = None,
        count: int | None = None,
        get: collections.abc.Sequence[str] | None = None,
        desc: bool = False,
        alpha: bool = False,
    ) -> int:
        """Like ``sort``, storing the result at ``destination``; returns its length."""
        cmd = self._sort_command(key, by=by, offset=offset, count=count, get=get, desc=desc, alpha=alpha)
        return await self._execute(cmd.arg("STORE").arg(destination), transform.integer)

    async def copy(
        self,
        source: str,
        destination: str,
        *,
        destination_db: int | None = None,
        replace: bool = False,
    ) -> bool:
        """Copy ``source`` to ``destination``; False if nothing was copied."""
        cmd = (
            command.Command("COPY", source, destination)
            .option("DB", destination_db)
            .flag("REPLACE", replace)
        )
        return await self._execute(cmd, transform.boolean)

    async def wait(self, num_replicas: int, timeout: int) -> int:
        """Block until ``num_replicas`` acknowledged previous writes, or ``timeout`` ms passed."""
        return await self._execute(command.Command("WAIT", num_replicas, timeout), transform.integer)

    async def dbsize(self) -> int:
        return await self._execute(command.Command("DBSIZE"), transform.integer)

    async def flushdb(self, *, asynchronous: bool = False) -> None:
        await self._execute(command.Command("FLUSHDB").flag("ASYNC", asynchronous), transform.ok)

    async def flushall(self, *, asynchronous: bool = False) -> None:
        await self._execute(command.Command("FLUSHALL").flag("ASYNC", asynchronous), transform.ok)

    async def save(self) -> None:
        await self._execute(command.Command("SAVE"), transform.ok)

    async def bgsave(self, *, schedule: bool = False) -> str:
        """Start a background save and return the server's status text."""
        return await self._execute(command.Command("BGSAVE").flag("SCHEDULE", schedule), transform.status)

    # CLIENT commands act on whichever pooled connection runs them.

    async def client_id(self) -> int:
        return await self._execute(command.Command("CLIENT", "ID"), transform.integer)

    async def client_info(self) -> str:
        return await self._execute(command.Command("CLIENT", "INFO"), transform.string)

    async def client_list(self, client_type: str | None = None) -> str:
        """List connected clients, optionally only of ``client_type`` (normal, master, replica, pubsub)."""
        cmd = command.Command("CLIENT", "LIST").option("TYPE", client_type or None)
        return await self._execute(cmd, transform.string)

    async def client_setname(self, connection_name: str) -> None:
        await self._execute(command.Command("CLIENT", "SETNAME", connection_name), transform.ok)

    async def client_getname(self) -> str | None:
        return await self._execute(command.Command("CLIENT", "GETNAME"), transform.nullable(transform.string))

    async def scan(
        self,
        cursor: str = scan.START_CURSOR,
        *,
        match: str | None = None,
        count: int | None = None,
        value_type: str | None = None,
    ) -> scan.ScanPage[str]:
        """Fetch one page of keys.

        See also: https://redis.io/docs/latest/commands/scan/
        """
        cmd = (
            command.Command("SCAN", cursor)
            .option("MATCH", match or None)
            .option("COUNT", count)
            .option("TYPE", value_type or None)
        )
        return await self._execute(cmd, scan.scan_page(transform.string_list))

    def scan_iter(
        self,
        *,
        match: str | None = None,
        count: int | None = None,
        value_type: str | None = None,
    ) -> "scan.ScanIterator[str]":
        """Iterate over the pages of a full key-space scan."""
        return self._scan_iterator(functools.partial(self.scan, match=match, count=count, value_type=value_type))
