"""Module containing hash commands."""

import collections.abc
import functools

from redikit import command, scan, transform
from redikit.commands import base

__all__: collections.abc.Sequence[str] = ("HashCommands",)


class HashCommands(base.CommandMixin):
    __slots__ = ()

    async def hdel(self, key: str, *fields: str) -> int:
        return await self._execute(command.Command("HDEL", key, *fields), transform.integer)

    async def hexists(self, key: str, field: str) -> bool:
        return await self._execute(command.Command("HEXISTS", key, field), transform.boolean)

    async def hget(self, key: str, field: str) -> str | None:
        return await self._execute(command.Command("HGET", key, field), transform.nullable(transform.string))

    async def hgetall(self, key: str) -> dict[str, str]:
        """All fields and values of the hash; empty if it does not exist."""
        return await self._execute(command.Command("HGETALL", key), transform.field_value_dict)

    async def hincrby(self, key: str, field: str, increment: int) -> int:
        return await self._execute(command.Command("HINCRBY", key, field, increment), transform.integer)

    async def hincrbyfloat(self, key: str, field: str, increment: float) -> float:
        return await self._execute(command.Command("HINCRBYFLOAT", key, field, increment), transform.double)

    async def hkeys(self, key: str) -> list[str]:
        return await self._execute(command.Command("HKEYS", key), transform.string_list)

    async def hlen(self, key: str) -> int:
        return await self._execute(command.Command("HLEN", key), transform.integer)

    async def hmget(self, key: str, *fields: str) -> list[str | None]:
        return await self._execute(command.Command("HMGET", key, *fields), transform.optional_string_list)

    async def hset(self, key: str, mapping: collections.abc.Mapping[str, base.ArgT]) -> int:
        """Set the fields in ``mapping``, returning how many were added (not updated).

        See also: https://redis.io/docs/latest/commands/hset/
        """
        if not mapping:
            msg = "hset requires at least one field"
            raise ValueError(msg)

        cmd = command.Command("HSET", key)
        for field, value in mapping.items():
            cmd.arg(field).arg(value)

        return await self._execute(cmd, transform.integer)

    async def hsetnx(self, key: str, field: str, value: base.ArgT) -> bool:
        return await self._execute(command.Command("HSETNX", key, field, value), transform.boolean)

    async def hstrlen(self, key: str, field: str) -> int:
        """Length of the value of ``field``; 0 if the field or hash does not exist."""
        return await self._execute(command.Command("HSTRLEN", key, field), transform.integer)

    async def hvals(self, key: str) -> list[str]:
        return await self._execute(command.Command("HVALS", key), transform.string_list)

    async def hscan(
        self,
        key: str,
        cursor: str = scan.START_CURSOR,
        *,
        match: str | None = None,
        count: int | None = None,
    ) -> scan.ScanPage[transform.FieldValue]:
        """Fetch one page of field-value pairs.

        See also: https://redis.io/docs/latest/commands/hscan/
        """
        cmd = command.Command("HSCAN", key, cursor).option("MATCH", match or None).option("COUNT", count)
        return await self._execute(cmd, scan.scan_page(transform.field_values))

    def hscan_iter(
        self,
        key: str,
        *,
        match: str | None = None,
        count: int | None = None,
    ) -> scan.ScanIterator[transform.FieldValue]:
        return self._scan_iterator(functools.partial(self.hscan, key, match=match, count=count))
