"""Module containing sorted set commands.

Score bounds accept anything Redis does: numbers, ``"-inf"``/``"+inf"`` and
exclusive bounds such as ``"(5"``. Lexicographic bounds must carry their
``[``/``(`` prefix or be ``"-"``/``"+"``.
"""

import collections.abc
import functools
import typing

from redikit import command, scan, transform
from redikit.commands import base, strings

__all__: collections.abc.Sequence[str] = ("SortedSetCommands", "Aggregate", "Comparison")


Aggregate: typing.TypeAlias = typing.Literal["SUM", "MIN", "MAX"]
Comparison: typing.TypeAlias = typing.Literal["GT", "LT"]
ScoreBound: typing.TypeAlias = str | int | float

_optional_double = transform.nullable(transform.double)
_member_scores = transform.nil_as_empty(transform.member_scores)


def _zadd_command(  # noqa: PLR0913
    key: str,
    *,
    mode: strings.SetMode | None,
    comparison: Comparison | None,
    changed: bool,
    incr: bool,
) -> command.Command:
    cmd = command.Command("ZADD", key)
    if mode is not None:
        cmd.arg(mode.value)
    if comparison is not None:
        cmd.arg(comparison)

    return cmd.flag("CH", changed).flag("INCR", incr)


def _combine_command(
    name: str,
    keys: collections.abc.Sequence[str],
    *,
    weights: collections.abc.Sequence[float] | None,
    aggregate: Aggregate | None,
    destination: str | None = None,
) -> command.Command:
    cmd = command.Command(name)
    if destination is not None:
        cmd.arg(destination)

    cmd.arg(len(keys)).args(keys)
    if weights:
        if len(weights) != len(keys):
            msg = f"Expected {len(keys)} weights, got {len(weights)}"
            raise ValueError(msg)

        cmd.arg("WEIGHTS").args(weights)

    return cmd.option("AGGREGATE", aggregate)


class SortedSetCommands(base.CommandMixin):
    __slots__ = ()

    async def zadd(  # noqa: PLR0913
        self,
        key: str,
        mapping: collections.abc.Mapping[str, float],
        *,
        mode: strings.SetMode | None = None,
        comparison: Comparison | None = None,
        changed: bool = False,
    ) -> int:
        """Add members with their scores.

        Returns the number of members added, or added plus updated when
        ``changed`` is set. ``NX`` cannot be combined with a ``comparison``.

        See also: https://redis.io/docs/latest/commands/zadd/
        """
        if not mapping:
            msg = "zadd requires at least one member"
            raise ValueError(msg)

        if mode is strings.SetMode.NX and comparison is not None:
            msg = "NX cannot be combined with GT or LT"
            raise ValueError(msg)

        cmd = _zadd_command(key, mode=mode, comparison=comparison, changed=changed, incr=False)
        for member, score in mapping.items():
            cmd.arg(score).arg(member)

        return await self._execute(cmd, transform.integer)

    async def zadd_incr(  # noqa: PLR0913
        self,
        key: str,
        member: str,
        increment: float,
        *,
        mode: strings.SetMode | None = None,
        comparison: Comparison | None = None,
    ) -> float | None:
        """``ZADD ... INCR``: increment one member like ``zincrby``.

        Returns the new score, or None if ``mode``/``comparison`` prevented
        the update.
        """
        if mode is strings.SetMode.NX and comparison is not None:
            msg = "NX cannot be combined with GT or LT"
            raise ValueError(msg)

        cmd = _zadd_command(key, mode=mode, comparison=comparison, changed=False, incr=True)
        return await self._execute(cmd.arg(increment).arg(member), _optional_double)

    async def zcard(self, key: str) -> int:
        return await self._execute(command.Command("ZCARD", key), transform.integer)

    async def zcount(self, key: str, min_score: ScoreBound, max_score: ScoreBound) -> int:
        return await self._execute(command.Command("ZCOUNT", key, min_score, max_score), transform.integer)

    async def zincrby(self, key: str, increment: float, member: str) -> float:
        return await self._execute(command.Command("ZINCRBY", key, increment, member), transform.double)

    async def zinter(
        self,
        keys: collections.abc.Sequence[str],
        *,
        weights: collections.abc.Sequence[float] | None = None,
        aggregate: Aggregate | None = None,
        with_scores: bool = False,
    ) -> list[str]:
        """Intersect the sorted sets at ``keys``.

        With ``with_scores`` the reply stays flat (member, score, ...); use
        ``zinter_with_scores`` for pairs.
        """
        cmd = _combine_command("ZINTER", keys, weights=weights, aggregate=aggregate)
        return await self._execute(cmd.flag("WITHSCORES", with_scores), transform.string_list)

    async def zinter_with_scores(
        self,
        keys: collections.abc.Sequence[str],
        *,
        weights: collections.abc.Sequence[float] | None = None,
        aggregate: Aggregate | None = None,
    ) -> list[transform.MemberScore]:
        cmd = _combine_command("ZINTER", keys, weights=weights, aggregate=aggregate)
        return await self._execute(cmd.arg("WITHSCORES"), transform.member_scores)

    async def zinterstore(
        self,
        destination: str,
        keys: collections.abc.Sequence[str],
        *,
        weights: collections.abc.Sequence[float] | None = None,
        aggregate: Aggregate | None = None,
    ) -> int:
        cmd = _combine_command("ZINTERSTORE", keys, weights=weights, aggregate=aggregate, destination=destination)
        return await self._execute(cmd, transform.integer)

    async def zunion(
        self,
        keys: collections.abc.Sequence[str],
        *,
        weights: collections.abc.Sequence[float] | None = None,
        aggregate: Aggregate | None = None,
        with_scores: bool = False,
    ) -> list[str]:
        cmd = _combine_command("ZUNION", keys, weights=weights, aggregate=aggregate)
        return await self._execute(cmd.flag("WITHSCORES", with_scores), transform.string_list)

    async def zunion_with_scores(
        self,
        keys: collections.abc.Sequence[str],
        *,
        weights: collections.abc.Sequence[float] | None = None,
        aggregate: Aggregate | None = None,
    ) -> list[transform.MemberScore]:
        cmd = _combine_command("ZUNION", keys, weights=weights, aggregate=aggregate)
        return await self._execute(cmd.arg("WITHSCORES"), transform.member_scores)

    async def zunionstore(
        self,
        destination: str,
        keys: collections.abc.Sequence[str],
        *,
        weights: collections.abc.Sequence[float] | None = None,
        aggregate: Aggregate | None = None,
    ) -> int:
        cmd = _combine_command("ZUNIONSTORE", keys, weights=weights, aggregate=aggregate, destination=destination)
        return await self._execute(cmd, transform.integer)

    async def zlexcount(self, key: str, min_lex: str, max_lex: str) -> int:
        return await self._execute(command.Command("ZLEXCOUNT", key, min_lex, max_lex), transform.integer)

    async def zmscore(self, key: str, *members: str) -> list[float | None]:
        return await self._execute(command.Command("ZMSCORE", key, *members), transform.optional_double_list)

    async def zpopmax(self, key: str, count: int | None = None) -> list[transform.MemberScore]:
        """Remove and return up to ``count`` (default 1) highest scoring members."""
        cmd = command.Command("ZPOPMAX", key)
        if count is not None:
            cmd.arg(count)

        return await self._execute(cmd, _member_scores)

    async def zpopmin(self, key: str, count: int | None = None) -> list[transform.MemberScore]:
        cmd = command.Command("ZPOPMIN", key)
        if count is not None:
            cmd.arg(count)

        return await self._execute(cmd, _member_scores)

    async def bzpopmax(self, keys: collections.abc.Sequence[str], timeout: float) -> transform.KeyedMemberScore | None:
        """Blocking ``zpopmax`` over the first non-empty set in ``keys``; None on timeout."""
        return await self._execute(command.Command("BZPOPMAX", *keys, timeout), transform.keyed_member_score)

    async def bzpopmin(self, keys: collections.abc.Sequence[str], timeout: float) -> transform.KeyedMemberScore | None:
        return await self._execute(command.Command("BZPOPMIN", *keys, timeout), transform.keyed_member_score)

    async def zrange(self, key: str, start: int, stop: int, *, with_scores: bool = False) -> list[str]:
        """Members by rank, lowest score first; ``stop`` is inclusive."""
        cmd = command.Command("ZRANGE", key, start, stop).flag("WITHSCORES", with_scores)
        return await self._execute(cmd, transform.string_list)

    async def zrange_with_scores(self, key: str, start: int, stop: int) -> list[transform.MemberScore]:
        cmd = command.Command("ZRANGE", key, start, stop, "WITHSCORES")
        return await self._execute(cmd, transform.member_scores)

    async def zrevrange(self, key: str, start: int, stop: int, *, with_scores: bool = False) -> list[str]:
        cmd = command.Command("ZREVRANGE", key, start, stop).flag("WITHSCORES", with_scores)
        return await self._execute(cmd, transform.string_list)

    async def zrevrange_with_scores(self, key: str, start: int, stop: int) -> list[transform.MemberScore]:
        cmd = command.Command("ZREVRANGE", key, start, stop, "WITHSCORES")
        return await self._execute(cmd, transform.member_scores)

    async def zrangebylex(
        self,
        key: str,
        min_lex: str,
        max_lex: str,
        *,
        offset: int | None = None,
        count: int | None = None,
    ) -> list[str]:
        cmd = command.Command("ZRANGEBYLEX", key, min_lex, max_lex).pair("LIMIT", offset, count)
        return await self._execute(cmd, transform.string_list)

    async def zrevrangebylex(
        self,
        key: str,
        max_lex: str,
        min_lex: str,
        *,
        offset: int | None = None,
        count: int | None = None,
    ) -> list[str]:
        cmd = command.Command("ZREVRANGEBYLEX", key, max_lex, min_lex).pair("LIMIT", offset, count)
        return await self._execute(cmd, transform.string_list)

    async def zrangebyscore(  # noqa: PLR0913
        self,
        key: str,
        min_score: ScoreBound,
        max_score: ScoreBound,
        *,
        with_scores: bool = False,
        offset: int | None = None,
        count: int | None = None,
    ) -> list[str]:
        """Members with a score between ``min_score`` and ``max_score``.

        ``LIMIT`` is only sent when both ``offset`` and ``count`` are given.

        See also: https://redis.io/docs/latest/commands/zrangebyscore/
        """
        cmd = (
            command.Command("ZRANGEBYSCORE", key, min_score, max_score)
            .flag("WITHSCORES", with_scores)
            .pair("LIMIT", offset, count)
        )
        return await self._execute(cmd, transform.string_list)

    async def zrangebyscore_with_scores(
        self,
        key: str,
        min_score: ScoreBound,
        max_score: ScoreBound,
        *,
        offset: int | None = None,
        count: int | None = None,
    ) -> list[transform.MemberScore]:
        cmd = (
            command.Command("ZRANGEBYSCORE", key, min_score, max_score, "WITHSCORES")
            .pair("LIMIT", offset, count)
        )
        return await self._execute(cmd, transform.member_scores)

    async def zrevrangebyscore(  # noqa: PLR0913
        self,
        key: str,
        max_score: ScoreBound,
        min_score: ScoreBound,
        *,
        with_scores: bool = False,
        offset: int | None = None,
        count: int | None = None,
    ) -> list[str]:
        cmd = (
            command.Command("ZREVRANGEBYSCORE", key, max_score, min_score)
            .flag("WITHSCORES", with_scores)
            .pair("LIMIT", offset, count)
        )
        return await self._execute(cmd, transform.string_list)

    async def zrevrangebyscore_with_scores(
        self,
        key: str,
        max_score: ScoreBound,
        min_score: ScoreBound,
        *,
        offset: int | None = None,
        count: int | None = None,
    ) -> list[transform.MemberScore]:
        cmd = (
            command.Command("ZREVRANGEBYSCORE", key, max_score, min_score, "WITHSCORES")
            .pair("LIMIT", offset, count)
        )
        return await self._execute(cmd, transform.member_scores)

    async def zrank(self, key: str, member: str) -> int | None:
        """Rank of ``member``, lowest score first; None if it is not a member."""
        return await self._execute(command.Command("ZRANK", key, member), transform.nullable(transform.integer))

    async def zrevrank(self, key: str, member: str) -> int | None:
        return await self._execute(command.Command("ZREVRANK", key, member), transform.nullable(transform.integer))

    async def zrem(self, key: str, *members: str) -> int:
        return await self._execute(command.Command("ZREM", key, *members), transform.integer)

    async def zremrangebylex(self, key: str, min_lex: str, max_lex: str) -> int:
        return await self._execute(command.Command("ZREMRANGEBYLEX", key, min_lex, max_lex), transform.integer)

    async def zremrangebyrank(self, key: str, start: int, stop: int) -> int:
        return await self._execute(command.Command("ZREMRANGEBYRANK", key, start, stop), transform.integer)

    async def zremrangebyscore(self, key: str, min_score: ScoreBound, max_score: ScoreBound) -> int:
        return await self._execute(command.Command("ZREMRANGEBYSCORE", key, min_score, max_score), transform.integer)

    async def zscore(self, key: str, member: str) -> float | None:
        return await self._execute(command.Command("ZSCORE", key, member), _optional_double)

    async def zscan(
        self,
        key: str,
        cursor: str = scan.START_CURSOR,
        *,
        match: str | None = None,
        count: int | None = None,
    ) -> scan.ScanPage[transform.MemberScore]:
        cmd = command.Command("ZSCAN", key, cursor).option("MATCH", match or None).option("COUNT", count)
        return await self._execute(cmd, scan.scan_page(transform.member_scores))

    def zscan_iter(
        self,
        key: str,
        *,
        match: str | None = None,
        count: int | None = None,
    ) -> scan.ScanIterator[transform.MemberScore]:
        return self._scan_iterator(functools.partial(self.zscan, key, match=match, count=count))
