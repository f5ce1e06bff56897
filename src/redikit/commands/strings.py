"""Module containing string (scalar) commands.

Strings are also how Redis stores integers, floats and bitmaps; the numeric
commands here operate on the same values.
"""

import collections.abc
import enum

from redikit import command, reply, transform
from redikit.commands import base

__all__: collections.abc.Sequence[str] = ("StringCommands", "SetMode")


class SetMode(str, enum.Enum):
    """Condition under which SET (and friends) write."""

    NX = "NX"
    """Only set the key if it does not exist yet."""
    XX = "XX"
    """Only set the key if it already exists."""


def _set_applied(data: reply.Reply) -> bool:
    # SET answers OK when written and nil when an NX/XX condition blocked it.
    if isinstance(data, reply.Nil):
        return False

    transform.ok(data)
    return True


class StringCommands(base.CommandMixin):
    __slots__ = ()

    async def set(  # noqa: PLR0913
        self,
        key: str,
        value: base.ArgT,
        *,
        ex: int | None = None,
        px: int | None = None,
        keepttl: bool = False,
        mode: SetMode | None = None,
    ) -> bool:
        """Set ``key`` to ``value``.

        ``ex`` (seconds), ``px`` (milliseconds) and ``keepttl`` are mutually
        exclusive. With a ``mode`` the write may be skipped, in which case
        False is returned.

        See also: https://redis.io/docs/latest/commands/set/
        """
        if sum((ex is not None, px is not None, keepttl)) > 1:
            msg = "Only one of 'ex', 'px' and 'keepttl' may be given"
            raise ValueError(msg)

        cmd = (
            command.Command("SET", key, value)
            .option("EX", ex)
            .option("PX", px)
            .flag("KEEPTTL", keepttl)
        )
        if mode is not None:
            cmd.arg(mode.value)

        return await self._execute(cmd, _set_applied)

    async def get(self, key: str) -> str | None:
        """Get the value of ``key``, or None if it does not exist."""
        return await self._execute(command.Command("GET", key), transform.nullable(transform.string))

    async def get_bytes(self, key: str) -> bytes | None:
        """Like ``get``, without decoding the value."""
        return await self._execute(command.Command("GET", key), transform.nullable(transform.blob))

    async def getrange(self, key: str, start: int, end: int) -> str:
        """Substring of the value at ``key``; both offsets are inclusive and may be negative."""
        return await self._execute(command.Command("GETRANGE", key, start, end), transform.string)

    async def getset(self, key: str, value: base.ArgT) -> str | None:
        """Set ``key`` and return its old value (deprecated by Redis in favour of ``SET ... GET``)."""
        return await self._execute(command.Command("GETSET", key, value), transform.nullable(transform.string))

    async def getdel(self, key: str) -> str | None:
        return await self._execute(command.Command("GETDEL", key), transform.nullable(transform.string))

    async def getex(  # noqa: PLR0913
        self,
        key: str,
        *,
        ex: int | None = None,
        px: int | None = None,
        exat: int | None = None,
        pxat: int | None = None,
        persist: bool = False,
    ) -> str | None:
        """Get the value of ``key`` and update its expiry.

        At most one expiry option may be given.
        """
        if sum((ex is not None, px is not None, exat is not None, pxat is not None, persist)) > 1:
            msg = "Only one of 'ex', 'px', 'exat', 'pxat' and 'persist' may be given"
            raise ValueError(msg)

        cmd = (
            command.Command("GETEX", key)
            .option("EX", ex)
            .option("PX", px)
            .option("EXAT", exat)
            .option("PXAT", pxat)
            .flag("PERSIST", persist)
        )
        return await self._execute(cmd, transform.nullable(transform.string))

    async def incr(self, key: str) -> int:
        return await self._execute(command.Command("INCR", key), transform.integer)

    async def incrby(self, key: str, increment: int) -> int:
        return await self._execute(command.Command("INCRBY", key, increment), transform.integer)

    async def incrbyfloat(self, key: str, increment: float) -> float:
        return await self._execute(command.Command("INCRBYFLOAT", key, increment), transform.double)

    async def decr(self, key: str) -> int:
        return await self._execute(command.Command("DECR", key), transform.integer)

    async def decrby(self, key: str, decrement: int) -> int:
        return await self._execute(command.Command("DECRBY", key, decrement), transform.integer)

    async def append(self, key: str, value: base.ArgT) -> int:
        """Append ``value`` to ``key``, returning the new length."""
        return await self._execute(command.Command("APPEND", key, value), transform.integer)

    async def setnx(self, key: str, value: base.ArgT) -> bool:
        return await self._execute(command.Command("SETNX", key, value), transform.boolean)

    async def setrange(self, key: str, offset: int, value: base.ArgT) -> int:
        """Overwrite part of ``key`` starting at ``offset``, zero-padding if needed."""
        return await self._execute(command.Command("SETRANGE", key, offset, value), transform.integer)

    async def strlen(self, key: str) -> int:
        """Length of the value at ``key``; 0 if it does not exist."""
        return await self._execute(command.Command("STRLEN", key), transform.integer)

    async def mget(self, *keys: str) -> list[str | None]:
        """Values of all ``keys``, None for those that do not exist."""
        return await self._execute(command.Command("MGET", *keys), transform.optional_string_list)

    async def mset(self, mapping: collections.abc.Mapping[str, base.ArgT]) -> None:
        """Set all keys in ``mapping`` atomically."""
        cmd = command.Command("MSET")
        for key, value in mapping.items():
            cmd.arg(key).arg(value)

        await self._execute(cmd, transform.ok)

    async def msetnx(self, mapping: collections.abc.Mapping[str, base.ArgT]) -> bool:
        """Set all keys in ``mapping``, but only if none of them exists."""
        cmd = command.Command("MSETNX")
        for key, value in mapping.items():
            cmd.arg(key).arg(value)

        return await self._execute(cmd, transform.boolean)

    async def setex(self, key: str, seconds: int, value: base.ArgT) -> None:
        await self._execute(command.Command("SETEX", key, seconds, value), transform.ok)

    async def psetex(self, key: str, milliseconds: int, value: base.ArgT) -> None:
        await self._execute(command.Command("PSETEX", key, milliseconds, value), transform.ok)

    async def lcs(self, key1: str, key2: str) -> str:
        """Longest common subsequence of the strings at ``key1`` and ``key2``.

        See also: https://redis.io/docs/latest/commands/lcs/
        """
        return await self._execute(command.Command("LCS", key1, key2), transform.string)

    async def lcs_len(self, key1: str, key2: str) -> int:
        return await self._execute(command.Command("LCS", key1, key2, "LEN"), transform.integer)

    async def lcs_idx(
        self,
        key1: str,
        key2: str,
        *,
        min_match_len: int | None = None,
        with_match_len: bool = False,
    ) -> transform.LcsResult:
        """Positions of the matching ranges of the LCS, longest first."""
        cmd = (
            command.Command("LCS", key1, key2, "IDX")
            .option("MINMATCHLEN", min_match_len)
            .flag("WITHMATCHLEN", with_match_len)
        )
        return await self._execute(cmd, transform.lcs_result)
