"""Module containing the redikit exception hierarchy."""

import collections.abc
import dataclasses

__all__: collections.abc.Sequence[str] = (
    "RedisError",
    "ConnectionError",
    "ConnectionUnavailableError",
    "StateError",
    "ProtocolError",
    "ResponseError",
    "NotCached",
)


class RedisError(Exception):
    ...


class ConnectionError(RedisError):
    """The network exchange with Redis failed after a channel was acquired."""


class ConnectionUnavailableError(ConnectionError):
    """No channel could be acquired; the command was never sent."""


class StateError(RedisError):
    ...


class ProtocolError(RedisError):
    """A reply arrived but did not have the shape its command expects."""


@dataclasses.dataclass
class ResponseError(RedisError):
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code} {self.message}" if self.message else self.code

    @classmethod
    def from_response(cls, response: bytes) -> "ResponseError":
        code, _, message = response.decode("utf-8", errors="replace").partition(" ")
        return cls(code, message)


class NotCached(RedisError):
    """The requested cache entry does not exist."""
