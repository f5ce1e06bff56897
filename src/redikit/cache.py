"""Module containing a small string cache stored in Redis.

Entries are plain string keys written with ``SETEX``; expiry is left to
Redis, so there is nothing to clean up client side.
"""

import collections.abc
import dataclasses
import logging
import typing

from redikit import client, error

__all__: collections.abc.Sequence[str] = ("RedisCache", "DEFAULT_LIFE_IN_SECONDS")

_LOGGER = logging.getLogger(__name__)

DEFAULT_LIFE_IN_SECONDS: typing.Final[int] = 60

ValueGenerator: typing.TypeAlias = typing.Callable[[str], collections.abc.Awaitable[str]]


@dataclasses.dataclass(slots=True)
class RedisCache:
    """Asynchronous string cache backed by a ``Redis`` client."""

    client: client.Redis
    default_life: int = DEFAULT_LIFE_IN_SECONDS

    async def save(self, key: str, value: str, life_in_seconds: int | None = None) -> None:
        """Cache ``value`` under ``key`` for ``life_in_seconds`` (default ``default_life``)."""
        life = self.default_life if life_in_seconds is None else life_in_seconds
        await self.client.setex(key, life, value)

    async def read(self, key: str) -> str:
        """Return the cached value of ``key``.

        Raises ``NotCached`` if there is none.
        """
        value = await self.client.get(key)
        if value is None:
            msg = f"{key!r} is not cached"
            raise error.NotCached(msg)

        return value

    async def read_or(self, key: str, fallback: str | None = None) -> str | None:
        """Return the cached value of ``key``, or ``fallback`` if it cannot be read for any reason."""
        try:
            return await self.read(key)
        except error.RedisError:
            _LOGGER.debug("cache read of %r failed, using fallback", key, exc_info=True)
            return fallback

    async def read_through(
        self,
        key: str,
        generator: ValueGenerator,
        life_in_seconds: int | None = None,
    ) -> str:
        """Return the cached value of ``key``, generating and caching it if needed.

        A value produced by ``generator`` is returned even if caching it
        fails; errors raised by ``generator`` itself propagate.
        """
        try:
            return await self.read(key)
        except error.RedisError:
            pass

        value = await generator(key)

        try:
            await self.save(key, value, life_in_seconds)
        except error.RedisError:
            _LOGGER.warning("failed to cache generated value for %r", key, exc_info=True)

        return value

    async def remove(self, key: str) -> None:
        await self.client.delete(key)

    async def remove_all(self) -> None:
        # FLUSHDB would drop unrelated keys in the same database.
        msg = "Removing all cached entries is not supported"
        raise NotImplementedError(msg)

    async def cached_keys(self) -> set[str]:
        msg = "Listing cached keys is not supported"
        raise NotImplementedError(msg)

    async def clean_up(self) -> None:
        """Do nothing; Redis expires entries on its own."""
