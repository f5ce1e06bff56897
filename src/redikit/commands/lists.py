"""Module containing list commands."""

import collections.abc
import typing

from redikit import command, transform
from redikit.commands import base

__all__: collections.abc.Sequence[str] = ("ListCommands", "Direction")


Direction: typing.TypeAlias = typing.Literal["LEFT", "RIGHT"]

_optional_string = transform.nullable(transform.string)


class ListCommands(base.CommandMixin):
    __slots__ = ()

    async def rpush(self, key: str, *elements: base.ArgT) -> int:
        """Append ``elements`` to the list, creating it if needed; returns the new length."""
        return await self._execute(command.Command("RPUSH", key, *elements), transform.integer)

    async def rpushx(self, key: str, *elements: base.ArgT) -> int:
        """Like ``rpush``, but only if the list exists; returns 0 otherwise."""
        return await self._execute(command.Command("RPUSHX", key, *elements), transform.integer)

    async def lpush(self, key: str, *elements: base.ArgT) -> int:
        """Prepend ``elements`` one after the other, so the last one ends up first."""
        return await self._execute(command.Command("LPUSH", key, *elements), transform.integer)

    async def lpushx(self, key: str, *elements: base.ArgT) -> int:
        return await self._execute(command.Command("LPUSHX", key, *elements), transform.integer)

    async def llen(self, key: str) -> int:
        """Length of the list; 0 if it does not exist."""
        return await self._execute(command.Command("LLEN", key), transform.integer)

    async def lpop(self, key: str) -> str | None:
        return await self._execute(command.Command("LPOP", key), _optional_string)

    async def rpop(self, key: str) -> str | None:
        return await self._execute(command.Command("RPOP", key), _optional_string)

    async def ltrim(self, key: str, start: int, stop: int) -> None:
        """Keep only the elements between ``start`` and ``stop``, both inclusive."""
        await self._execute(command.Command("LTRIM", key, start, stop), transform.ok)

    async def lrange(self, key: str, start: int, stop: int) -> list[str]:
        return await self._execute(command.Command("LRANGE", key, start, stop), transform.string_list)

    async def lindex(self, key: str, index: int) -> str | None:
        return await self._execute(command.Command("LINDEX", key, index), _optional_string)

    async def linsert(self, key: str, pivot: base.ArgT, element: base.ArgT, *, before: bool = True) -> int:
        """Insert ``element`` next to the first ``pivot``.

        Returns the new length, -1 if ``pivot`` was not found and 0 if the
        list does not exist.
        """
        where = "BEFORE" if before else "AFTER"
        return await self._execute(command.Command("LINSERT", key, where, pivot, element), transform.integer)

    async def lpos(
        self,
        key: str,
        element: base.ArgT,
        *,
        rank: int | None = None,
        maxlen: int | None = None,
    ) -> int | None:
        """Index of the first match of ``element``, or None.

        A negative ``rank`` searches from the tail; ``maxlen`` bounds how many
        elements are compared.

        See also: https://redis.io/docs/latest/commands/lpos/
        """
        cmd = command.Command("LPOS", key, element).option("RANK", rank).option("MAXLEN", maxlen)
        return await self._execute(cmd, transform.nullable(transform.integer))

    async def lpos_all(
        self,
        key: str,
        element: base.ArgT,
        count: int = 0,
        *,
        rank: int | None = None,
        maxlen: int | None = None,
    ) -> list[int]:
        """Indices of up to ``count`` matches of ``element``; 0 means all matches."""
        cmd = (
            command.Command("LPOS", key, element)
            .option("RANK", rank)
            .option("COUNT", count)
            .option("MAXLEN", maxlen)
        )
        return await self._execute(cmd, transform.integer_list)

    async def lrem(self, key: str, count: int, element: base.ArgT) -> int:
        """Remove ``count`` occurrences of ``element``.

        A positive count removes from the head, a negative one from the tail,
        and 0 removes all of them.
        """
        return await self._execute(command.Command("LREM", key, count, element), transform.integer)

    async def lset(self, key: str, index: int, element: base.ArgT) -> None:
        await self._execute(command.Command("LSET", key, index, element), transform.ok)

    async def lmove(self, source: str, destination: str, wherefrom: Direction, whereto: Direction) -> str | None:
        """Pop from one end of ``source`` and push to one end of ``destination``."""
        return await self._execute(command.Command("LMOVE", source, destination, wherefrom, whereto), _optional_string)

    async def rpoplpush(self, source: str, destination: str) -> str | None:
        return await self._execute(command.Command("RPOPLPUSH", source, destination), _optional_string)

    # Blocking commands take their timeout (in seconds, 0 blocks forever) as an
    # argument; the client applies no deadline of its own.

    async def blmove(
        self,
        source: str,
        destination: str,
        wherefrom: Direction,
        whereto: Direction,
        timeout: float,
    ) -> str | None:
        cmd = command.Command("BLMOVE", source, destination, wherefrom, whereto, timeout)
        return await self._execute(cmd, _optional_string)

    async def blpop(self, keys: collections.abc.Sequence[str], timeout: float) -> transform.KeyedElement | None:
        """Pop the head of the first non-empty list in ``keys``, waiting up to ``timeout`` seconds.

        Returns None on timeout.
        """
        return await self._execute(command.Command("BLPOP", *keys, timeout), transform.keyed_element)

    async def brpop(self, keys: collections.abc.Sequence[str], timeout: float) -> transform.KeyedElement | None:
        return await self._execute(command.Command("BRPOP", *keys, timeout), transform.keyed_element)

    async def brpoplpush(self, source: str, destination: str, timeout: float) -> str | None:
        return await self._execute(command.Command("BRPOPLPUSH", source, destination, timeout), _optional_string)
