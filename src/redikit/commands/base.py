"""Module containing the base class shared by all command mixins."""

import collections.abc
import typing

from redikit import command, scan, transform

__all__: collections.abc.Sequence[str] = ("CommandMixin", "ArgT")

T = typing.TypeVar("T")

ArgT: typing.TypeAlias = command.ArgT


class CommandMixin:
    """Base for command mixins.

    Mixins only build a ``Command`` and choose the rule that decodes its
    reply; running it is up to the concrete class through ``_execute``.
    """

    __slots__ = ()

    async def _execute(self, cmd: command.Command, rule: transform.Rule[T], /) -> T:
        raise NotImplementedError

    def _scan_iterator(self, fetch: scan.PageFetcher[T], /) -> scan.ScanIterator[T]:
        return scan.ScanIterator(fetch)
