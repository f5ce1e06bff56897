"""Module containing the typed Redis reply model.

Every reply read from the wire is exactly one of the variants below. Decode
rules in ``redikit.transform`` match on these types instead of inspecting
loosely-typed python values.
"""

import collections.abc
import dataclasses
import typing

__all__: collections.abc.Sequence[str] = (
    "Nil",
    "NIL",
    "Integer",
    "Double",
    "BulkString",
    "ByteBlob",
    "Status",
    "ErrorReply",
    "FlatArray",
    "NestedArray",
    "Reply",
    "make_array",
    "make_bulk",
    "describe",
)


@dataclasses.dataclass(frozen=True, slots=True)
class Nil:
    """The absent value (``$-1``, ``*-1`` or ``_``)."""


NIL: typing.Final = Nil()


@dataclasses.dataclass(frozen=True, slots=True)
class Integer:
    value: int


@dataclasses.dataclass(frozen=True, slots=True)
class Double:
    """A floating point number, kept as the text Redis sent."""

    text: bytes

    def to_float(self) -> float:
        return float(self.text)


@dataclasses.dataclass(frozen=True, slots=True)
class BulkString:
    """A bulk payload that is valid UTF-8."""

    value: bytes

    @property
    def text(self) -> str:
        return self.value.decode("utf-8")


@dataclasses.dataclass(frozen=True, slots=True)
class ByteBlob:
    """A bulk payload that is not valid UTF-8, e.g. the output of DUMP."""

    value: bytes


@dataclasses.dataclass(frozen=True, slots=True)
class Status:
    """A simple string reply such as ``OK`` or ``QUEUED``."""

    value: str


@dataclasses.dataclass(frozen=True, slots=True)
class ErrorReply:
    """An error value nested inside an array reply.

    Top-level errors are raised as ``ResponseError`` by the connection; only
    errors embedded in aggregate replies (EXEC) survive as values.
    """

    code: str
    message: str


@dataclasses.dataclass(frozen=True, slots=True)
class FlatArray:
    """An array reply none of whose items is itself an array."""

    items: tuple["Reply", ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> collections.abc.Iterator["Reply"]:
        return iter(self.items)


@dataclasses.dataclass(frozen=True, slots=True)
class NestedArray:
    """An array reply with at least one array among its items."""

    items: tuple["Reply", ...]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> collections.abc.Iterator["Reply"]:
        return iter(self.items)


Reply: typing.TypeAlias = typing.Union[
    Nil,
    Integer,
    Double,
    BulkString,
    ByteBlob,
    Status,
    ErrorReply,
    FlatArray,
    NestedArray,
]


def make_array(items: collections.abc.Iterable[Reply]) -> FlatArray | NestedArray:
    """Build the right array variant for ``items``."""
    items = tuple(items)
    if any(isinstance(item, (FlatArray, NestedArray)) for item in items):
        return NestedArray(items)

    return FlatArray(items)


def make_bulk(value: bytes) -> BulkString | ByteBlob:
    """Build the right bulk variant for ``value``."""
    try:
        value.decode("utf-8")
    except UnicodeDecodeError:
        return ByteBlob(value)

    return BulkString(value)


def describe(reply: Reply) -> str:
    """Short human readable form of a reply, used in error messages."""
    if isinstance(reply, (FlatArray, NestedArray)):
        return f"{type(reply).__name__}[{len(reply)}]"

    return repr(reply)
