"""An asyncio Redis client with typed commands, pooled connections and transactions."""

import collections.abc

from redikit.cache import RedisCache
from redikit.client import Redis
from redikit.command import Command
from redikit.commands import SetMode, ValueType
from redikit.config import RedisConfig
from redikit.connection import Connection
from redikit.error import (
    ConnectionError,  # noqa: A004
    ConnectionUnavailableError,
    NotCached,
    ProtocolError,
    RedisError,
    ResponseError,
    StateError,
)
from redikit.pool import ConnectionPool
from redikit.scan import ScanIterator, ScanPage
from redikit.transaction import Transaction, TransactionResult, TransactionState

__version__ = "0.1.0"

__all__: collections.abc.Sequence[str] = (
    "Command",
    "Connection",
    "ConnectionError",
    "ConnectionPool",
    "ConnectionUnavailableError",
    "NotCached",
    "ProtocolError",
    "Redis",
    "RedisCache",
    "RedisConfig",
    "RedisError",
    "ResponseError",
    "ScanIterator",
    "ScanPage",
    "SetMode",
    "StateError",
    "Transaction",
    "TransactionResult",
    "TransactionState",
    "ValueType",
)
