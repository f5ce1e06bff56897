"""Module containing the cursor-based scan protocol.

SCAN, HSCAN, SSCAN and ZSCAN share one contract: start at cursor ``"0"``, feed
every returned cursor back verbatim, stop once the store answers ``"0"``.
Cursors are opaque strings and are never parsed or compared across commands.

Redis only guarantees that elements present for the whole iteration are
returned at least once. Elements added or removed meanwhile may be seen zero,
one or several times; this module does not deduplicate.
"""

import collections.abc
import dataclasses
import logging
import typing

from redikit import error, reply, transform

__all__: collections.abc.Sequence[str] = (
    "START_CURSOR",
    "PageFetcher",
    "ScanPage",
    "ScanIterator",
    "scan_page",
)

_LOGGER = logging.getLogger(__name__)

START_CURSOR: typing.Final = "0"

T = typing.TypeVar("T")


@dataclasses.dataclass(frozen=True, slots=True)
class ScanPage(typing.Generic[T]):
    """One page of a scan: the cursor to resume from and the decoded items."""

    cursor: str
    items: list[T]

    @property
    def done(self) -> bool:
        """Whether this is the last page of the iteration."""
        return self.cursor == START_CURSOR


PageFetcher: typing.TypeAlias = typing.Callable[[str], typing.Awaitable[ScanPage[T]]]


def scan_page(item_rule: transform.Rule[list[T]]) -> transform.Rule[ScanPage[T]]:
    """Build a rule decoding ``[cursor, [items...]]`` with ``item_rule`` for the items."""

    def decode(data: reply.Reply) -> ScanPage[T]:
        if not isinstance(data, reply.NestedArray) or len(data) != 2:  # noqa: PLR2004
            msg = f"Expected a [cursor, items] scan reply, got {reply.describe(data)}"
            raise error.ProtocolError(msg)

        cursor, items = data.items
        return ScanPage(transform.string(cursor), item_rule(items))

    return decode


class ScanIterator(typing.Generic[T]):
    """Asynchronously iterate over all pages of a scan.

    ``fetch`` is called with the cursor to resume from and returns the next
    page. Iteration starts from ``START_CURSOR`` and ends after the first page
    whose cursor is ``START_CURSOR`` again, however many pages that takes.

    Iteration holds no server-side state, so stopping early with ``cancel()``
    (or simply abandoning the iterator) leaks nothing.

    ```py
    async for page in client.scan_iter(match="user:*"):
        ...

    async for key in client.scan_iter(match="user:*").items():
        ...
    ```
    """

    __slots__ = ("_fetch", "_cursor", "_finished", "pages_fetched")

    def __init__(self, fetch: PageFetcher[T], /) -> None:
        self._fetch = fetch
        self._cursor: str = START_CURSOR
        self._finished = False
        self.pages_fetched = 0

    @property
    def cursor(self) -> str:
        """The cursor the next page will be requested with."""
        return self._cursor

    @property
    def finished(self) -> bool:
        return self._finished

    def cancel(self) -> None:
        """Stop the iteration; no further pages will be requested."""
        self._finished = True

    def __aiter__(self) -> "ScanIterator[T]":
        return self

    async def __anext__(self) -> ScanPage[T]:
        if self._finished:
            raise StopAsyncIteration

        page = await self._fetch(self._cursor)
        self.pages_fetched += 1
        _LOGGER.debug(
            "scan page %s: cursor %s -> %s, %s items",
            self.pages_fetched,
            self._cursor,
            page.cursor,
            len(page.items),
        )

        self._cursor = page.cursor
        if page.done:
            self._finished = True

        return page

    async def items(self) -> collections.abc.AsyncIterator[T]:
        """Iterate over the items of every page, in page order."""
        async for page in self:
            for item in page.items:
                yield item

    async def collect(self) -> list[T]:
        """Fetch all remaining pages and return their items, duplicates included."""
        return [item async for item in self.items()]
