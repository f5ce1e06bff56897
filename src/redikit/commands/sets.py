"""Module containing set commands."""

import collections.abc
import functools

from redikit import command, scan, transform
from redikit.commands import base

__all__: collections.abc.Sequence[str] = ("SetCommands",)

# SPOP and SRANDMEMBER with a count may answer nil for a missing key.
_string_list_or_empty = transform.nil_as_empty(transform.string_list)


class SetCommands(base.CommandMixin):
    __slots__ = ()

    async def sadd(self, key: str, *members: base.ArgT) -> int:
        """Add ``members``, returning how many were not present yet."""
        return await self._execute(command.Command("SADD", key, *members), transform.integer)

    async def scard(self, key: str) -> int:
        """Number of members; 0 if the set does not exist."""
        return await self._execute(command.Command("SCARD", key), transform.integer)

    async def sdiff(self, *keys: str) -> set[str]:
        """Members of the first set that are in none of the others."""
        return await self._execute(command.Command("SDIFF", *keys), transform.string_set)

    async def sdiffstore(self, destination: str, *keys: str) -> int:
        return await self._execute(command.Command("SDIFFSTORE", destination, *keys), transform.integer)

    async def sinter(self, *keys: str) -> set[str]:
        return await self._execute(command.Command("SINTER", *keys), transform.string_set)

    async def sinterstore(self, destination: str, *keys: str) -> int:
        return await self._execute(command.Command("SINTERSTORE", destination, *keys), transform.integer)

    async def sismember(self, key: str, member: base.ArgT) -> bool:
        return await self._execute(command.Command("SISMEMBER", key, member), transform.boolean)

    async def smembers(self, key: str) -> set[str]:
        return await self._execute(command.Command("SMEMBERS", key), transform.string_set)

    async def smismember(self, key: str, *members: base.ArgT) -> list[bool]:
        """Membership of every member, in the order given."""
        return await self._execute(command.Command("SMISMEMBER", key, *members), transform.boolean_list)

    async def smove(self, source: str, destination: str, member: base.ArgT) -> bool:
        """Atomically move ``member``; False if it was not in ``source``."""
        return await self._execute(command.Command("SMOVE", source, destination, member), transform.boolean)

    async def spop(self, key: str) -> str | None:
        """Remove and return a random member, or None if the set is empty."""
        return await self._execute(command.Command("SPOP", key), transform.nullable(transform.string))

    async def spop_count(self, key: str, count: int) -> list[str]:
        """Remove and return up to ``count`` random members."""
        return await self._execute(command.Command("SPOP", key, count), _string_list_or_empty)

    async def srandmember(self, key: str) -> str | None:
        return await self._execute(command.Command("SRANDMEMBER", key), transform.nullable(transform.string))

    async def srandmember_count(self, key: str, count: int) -> list[str]:
        """Random members without removing them.

        A positive ``count`` returns distinct members, a negative one may
        repeat members and always returns ``abs(count)`` of them.
        """
        return await self._execute(command.Command("SRANDMEMBER", key, count), _string_list_or_empty)

    async def srem(self, key: str, *members: base.ArgT) -> int:
        return await self._execute(command.Command("SREM", key, *members), transform.integer)

    async def sunion(self, *keys: str) -> set[str]:
        return await self._execute(command.Command("SUNION", *keys), transform.string_set)

    async def sunionstore(self, destination: str, *keys: str) -> int:
        return await self._execute(command.Command("SUNIONSTORE", destination, *keys), transform.integer)

    async def sscan(
        self,
        key: str,
        cursor: str = scan.START_CURSOR,
        *,
        match: str | None = None,
        count: int | None = None,
    ) -> scan.ScanPage[str]:
        cmd = command.Command("SSCAN", key, cursor).option("MATCH", match or None).option("COUNT", count)
        return await self._execute(cmd, scan.scan_page(transform.string_list))

    def sscan_iter(
        self,
        key: str,
        *,
        match: str | None = None,
        count: int | None = None,
    ) -> scan.ScanIterator[str]:
        return self._scan_iterator(functools.partial(self.sscan, key, match=match, count=count))
