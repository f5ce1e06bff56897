"""Module containing bitmap and bitfield commands."""

import collections.abc
import typing

from redikit import command, error, reply, transform
from redikit.commands import base

__all__: collections.abc.Sequence[str] = ("BitCommands", "BitOperation")


BitOperation: typing.TypeAlias = typing.Literal["AND", "OR", "XOR", "NOT"]


def _first_integer(data: reply.Reply) -> int:
    # BITFIELD answers one integer per sub-command; only one is ever sent.
    values = transform.array_of(transform.nullable(transform.integer))(data)
    if len(values) != 1 or values[0] is None:
        msg = f"Expected one BITFIELD result, got {values!r}"
        raise error.ProtocolError(msg)

    return values[0]


def _bit(value: int) -> int:
    if value not in (0, 1):
        msg = f"A bit must be 0 or 1, got {value!r}"
        raise ValueError(msg)

    return value


class BitCommands(base.CommandMixin):
    __slots__ = ()

    async def bitcount(self, key: str, start: int | None = None, end: int | None = None) -> int:
        """Count the set bits, optionally only within the byte range ``start``..``end``.

        See also: https://redis.io/docs/latest/commands/bitcount/
        """
        if (start is None) != (end is None):
            msg = "bitcount requires both 'start' and 'end', or neither"
            raise ValueError(msg)

        cmd = command.Command("BITCOUNT", key)
        if start is not None and end is not None:
            cmd.arg(start).arg(end)

        return await self._execute(cmd, transform.integer)

    async def bitfield_get(self, key: str, encoding: str, offset: int | str) -> int:
        """Read one integer field, e.g. ``encoding="u8"``, ``offset="#1"``.

        See also: https://redis.io/docs/latest/commands/bitfield/
        """
        return await self._execute(command.Command("BITFIELD", key, "GET", encoding, offset), _first_integer)

    async def bitfield_set(self, key: str, encoding: str, offset: int | str, value: int) -> int:
        """Write one integer field and return its previous value."""
        cmd = command.Command("BITFIELD", key, "SET", encoding, offset, value)
        return await self._execute(cmd, _first_integer)

    async def bitop(self, operation: BitOperation, destination: str, *keys: str) -> int:
        """Combine ``keys`` bitwise into ``destination``; returns its length in bytes."""
        if operation == "NOT" and len(keys) != 1:
            msg = "BITOP NOT takes exactly one source key"
            raise ValueError(msg)

        return await self._execute(command.Command("BITOP", operation, destination, *keys), transform.integer)

    async def bitpos(self, key: str, bit: int, start: int | None = None, end: int | None = None) -> int:
        """Position of the first bit set to ``bit``; -1 if there is none.

        ``end`` is only sent together with ``start``.
        """
        cmd = command.Command("BITPOS", key, _bit(bit))
        if start is not None:
            cmd.arg(start)
            if end is not None:
                cmd.arg(end)

        return await self._execute(cmd, transform.integer)

    async def getbit(self, key: str, offset: int) -> int:
        return await self._execute(command.Command("GETBIT", key, offset), transform.integer)

    async def setbit(self, key: str, offset: int, value: int) -> int:
        """Set the bit at ``offset`` and return its previous value."""
        return await self._execute(command.Command("SETBIT", key, offset, _bit(value)), transform.integer)
