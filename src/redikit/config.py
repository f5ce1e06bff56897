"""Module containing client configuration."""

import collections.abc
import dataclasses
import typing
import urllib.parse

if typing.TYPE_CHECKING:
    import typing_extensions

__all__: collections.abc.Sequence[str] = ("RedisConfig", "RedisURL", "parse_url")


DEFAULT_PORT: typing.Final = 6379

# Flat-properties keys, e.g. ``redis.<instance>.maxPoolSize=16``.
_PROPERTY_KEYS: typing.Final = {
    "url": "url",
    "maxPoolSize": "max_pool_size",
    "maxWaitingHandlers": "max_waiting_handlers",
    "maxPoolWaiting": "max_pool_waiting",
    "poolCleanerInterval": "pool_cleaner_interval",
}


@dataclasses.dataclass(frozen=True, slots=True)
class RedisURL:
    """The connection parameters encoded in a ``redis://`` url."""

    host: str
    port: int = DEFAULT_PORT
    username: str | None = None
    password: str | None = dataclasses.field(default=None, repr=False)
    db: int = 0


def parse_url(url: str) -> RedisURL:
    """Parse ``redis://[[username]:password@]host[:port][/db]``.

    Raises ``ValueError`` for any other scheme or a missing host.
    """
    parsed = urllib.parse.urlparse(url)
    if not parsed.hostname or parsed.scheme != "redis":
        msg = "Only urls of scheme 'redis://[[user]:password@]host[:port][/db]' are supported"
        raise ValueError(msg)

    path = parsed.path.lstrip("/")
    try:
        db = int(path) if path else 0
    except ValueError:
        msg = f"Invalid database number in url: {path!r}"
        raise ValueError(msg) from None

    return RedisURL(
        host=parsed.hostname,
        port=parsed.port or DEFAULT_PORT,
        username=urllib.parse.unquote(parsed.username) if parsed.username else None,
        password=urllib.parse.unquote(parsed.password) if parsed.password is not None else None,
        db=db,
    )


@dataclasses.dataclass(frozen=True, slots=True)
class RedisConfig:
    """Connection and pool settings for one Redis instance.

    ``max_pool_size`` caps open connections, ``max_pool_waiting`` caps callers
    queued for a free connection, ``max_waiting_handlers`` caps callers either
    holding or waiting for one, and idle connections are swept every
    ``pool_cleaner_interval`` milliseconds.
    """

    url: str
    max_pool_size: int = 16
    max_waiting_handlers: int = 32
    max_pool_waiting: int = 24
    pool_cleaner_interval: int = 5000

    def __post_init__(self) -> None:
        parse_url(self.url)

        for name in ("max_pool_size", "max_waiting_handlers", "pool_cleaner_interval"):
            if getattr(self, name) <= 0:
                msg = f"{name} must be positive, got {getattr(self, name)}"
                raise ValueError(msg)

        if self.max_pool_waiting < 0:
            msg = f"max_pool_waiting must not be negative, got {self.max_pool_waiting}"
            raise ValueError(msg)

    @property
    def parsed_url(self) -> RedisURL:
        return parse_url(self.url)

    @classmethod
    def from_mapping(cls, mapping: collections.abc.Mapping[str, typing.Any]) -> "typing_extensions.Self":
        """Create a config from a mapping.

        Both the attribute names and the camelCase property names are
        accepted. Missing optional keys take their defaults; ``url`` is
        required.
        """
        kwargs: dict[str, typing.Any] = {}
        for key, value in mapping.items():
            name = _PROPERTY_KEYS.get(key, key)
            if name not in _PROPERTY_KEYS.values():
                msg = f"Unknown redis config key {key!r}"
                raise ValueError(msg)

            kwargs[name] = value if name == "url" else int(value)

        if "url" not in kwargs:
            msg = "Redis config requires a 'url'"
            raise ValueError(msg)

        return cls(**kwargs)

    @classmethod
    def from_properties(
        cls,
        properties: collections.abc.Mapping[str, str],
        instance: str,
    ) -> "typing_extensions.Self":
        """Create a config from flat ``redis.<instance>.<key>`` properties.

        Keys belonging to other instances are ignored.
        """
        prefix = f"redis.{instance}."
        return cls.from_mapping(
            {key[len(prefix):]: value for key, value in properties.items() if key.startswith(prefix)},
        )
