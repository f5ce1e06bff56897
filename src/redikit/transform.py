"""Module containing reply decode rules for high-level Redis commands.

A decode rule is a plain callable taking one ``reply.Reply`` and returning a
python value. Every command picks its rule up front; a rule never guesses, so
a reply whose type does not match raises ``ProtocolError`` instead of being
coerced.
"""

import collections.abc
import typing

from redikit import error, reply

__all__: collections.abc.Sequence[str] = (
    "Rule",
    "FieldValue",
    "MemberScore",
    "KeyedElement",
    "KeyedMemberScore",
    "LcsMatch",
    "LcsResult",
    "nullable",
    "raw",
    "integer",
    "status",
    "ok",
    "string",
    "blob",
    "double",
    "boolean",
    "array_of",
    "string_list",
    "string_set",
    "nil_as_empty",
    "integer_list",
    "boolean_list",
    "optional_double_list",
    "optional_string_list",
    "field_values",
    "field_value_dict",
    "member_scores",
    "keyed_element",
    "keyed_member_score",
    "lcs_result",
    "exec_results",
)

T = typing.TypeVar("T")

Rule: typing.TypeAlias = typing.Callable[[reply.Reply], T]

_ARRAYS = (reply.FlatArray, reply.NestedArray)


def _mismatch(expected: str, actual: reply.Reply) -> error.RedisError:
    if isinstance(actual, reply.ErrorReply):
        # Errors nested in array replies are still reported by the store.
        return error.ResponseError(actual.code, actual.message)

    return error.ProtocolError(f"Expected {expected}, got {reply.describe(actual)}")


def _items(data: reply.Reply, expected: str = "an array") -> tuple[reply.Reply, ...]:
    if isinstance(data, _ARRAYS):
        return data.items

    raise _mismatch(expected, data)


class FieldValue(typing.NamedTuple):
    """A hash field with its value."""

    field: str
    value: str


class MemberScore(typing.NamedTuple):
    """A sorted set member with its score."""

    member: str
    score: float


class KeyedElement(typing.NamedTuple):
    """An element popped by a blocking list command, with the list it came from."""

    key: str
    element: str


class KeyedMemberScore(typing.NamedTuple):
    """A member popped by a blocking sorted set command."""

    key: str
    member: str
    score: float


class LcsMatch(typing.NamedTuple):
    """One matching range pair of an ``LCS ... IDX`` reply.

    Ranges are inclusive ``(start, end)`` offsets into the first and second
    string respectively.
    """

    first: tuple[int, int]
    second: tuple[int, int]
    length: int | None


class LcsResult(typing.NamedTuple):
    matches: list[LcsMatch]
    length: int


def nullable(rule: Rule[T]) -> Rule[T | None]:
    """Map ``Nil`` to ``None`` and decode anything else with ``rule``."""

    def decode(data: reply.Reply) -> T | None:
        if isinstance(data, reply.Nil):
            return None

        return rule(data)

    return decode


def raw(data: reply.Reply) -> reply.Reply:
    """Return the reply untouched."""
    return data


def integer(data: reply.Reply) -> int:
    if isinstance(data, reply.Integer):
        return data.value

    raise _mismatch("an integer", data)


def status(data: reply.Reply) -> str:
    if isinstance(data, reply.Status):
        return data.value

    raise _mismatch("a status", data)


def ok(data: reply.Reply) -> None:
    """Require the ``OK`` status."""
    if isinstance(data, reply.Status) and data.value == "OK":
        return

    raise _mismatch("status 'OK'", data)


def string(data: reply.Reply) -> str:
    if isinstance(data, reply.BulkString):
        return data.text

    if isinstance(data, reply.Status):
        return data.value

    raise _mismatch("a string", data)


def blob(data: reply.Reply) -> bytes:
    if isinstance(data, (reply.BulkString, reply.ByteBlob)):
        return data.value

    raise _mismatch("a bulk string", data)


def double(data: reply.Reply) -> float:
    """Decode a double, sent either as a RESP3 double or as bulk text."""
    if isinstance(data, reply.Double):
        return data.to_float()

    if isinstance(data, reply.BulkString):
        try:
            return float(data.value)
        except ValueError:
            pass

    raise _mismatch("a double", data)


def boolean(data: reply.Reply) -> bool:
    """Decode the 1/0 integer convention; any other integer is a mismatch."""
    value = integer(data)
    if value == 1:
        return True

    if value == 0:
        return False

    msg = f"Expected integer 0 or 1, got {value}"
    raise error.ProtocolError(msg)


def array_of(rule: Rule[T]) -> Rule[list[T]]:
    """Decode every item of an array reply with ``rule``."""

    def decode(data: reply.Reply) -> list[T]:
        return [rule(item) for item in _items(data)]

    return decode


string_list: Rule[list[str]] = array_of(string)
optional_string_list: Rule[list[str | None]] = array_of(nullable(string))
integer_list: Rule[list[int]] = array_of(integer)
boolean_list: Rule[list[bool]] = array_of(boolean)
optional_double_list: Rule[list[float | None]] = array_of(nullable(double))


def string_set(data: reply.Reply) -> set[str]:
    return set(string_list(data))


def nil_as_empty(rule: Rule[list[T]]) -> Rule[list[T]]:
    """Decode ``Nil`` as an empty list, anything else with ``rule``."""

    def decode(data: reply.Reply) -> list[T]:
        if isinstance(data, reply.Nil):
            return []

        return rule(data)

    return decode


def _pairwise(data: reply.Reply, expected: str) -> collections.abc.Iterator[tuple[reply.Reply, reply.Reply]]:
    items = _items(data, expected)
    if len(items) % 2:
        msg = f"Expected {expected} of even length, got {len(items)} items"
        raise error.ProtocolError(msg)

    item_iter = iter(items)
    return zip(item_iter, item_iter, strict=True)


def field_values(data: reply.Reply) -> list[FieldValue]:
    """Split a flat ``[field, value, ...]`` array into pairs."""
    return [FieldValue(string(field), string(value)) for field, value in _pairwise(data, "field-value pairs")]


def field_value_dict(data: reply.Reply) -> dict[str, str]:
    return dict(field_values(data))


def member_scores(data: reply.Reply) -> list[MemberScore]:
    """Split a flat ``[member, score, ...]`` array into pairs."""
    return [MemberScore(string(member), double(score)) for member, score in _pairwise(data, "member-score pairs")]


def keyed_element(data: reply.Reply) -> KeyedElement | None:
    """Decode the ``[key, element]`` reply of BLPOP and friends."""
    if isinstance(data, reply.Nil):
        return None

    items = _items(data)
    if len(items) != 2:  # noqa: PLR2004
        msg = f"Expected a [key, element] array, got {len(items)} items"
        raise error.ProtocolError(msg)

    return KeyedElement(string(items[0]), string(items[1]))


def keyed_member_score(data: reply.Reply) -> KeyedMemberScore | None:
    """Decode the ``[key, member, score]`` reply of BZPOPMIN and BZPOPMAX."""
    if isinstance(data, reply.Nil):
        return None

    items = _items(data)
    if len(items) != 3:  # noqa: PLR2004
        msg = f"Expected a [key, member, score] array, got {len(items)} items"
        raise error.ProtocolError(msg)

    return KeyedMemberScore(string(items[0]), string(items[1]), double(items[2]))


def _range(data: reply.Reply) -> tuple[int, int]:
    values = integer_list(data)
    if len(values) != 2:  # noqa: PLR2004
        msg = f"Expected a [start, end] range, got {len(values)} items"
        raise error.ProtocolError(msg)

    return values[0], values[1]


def lcs_result(data: reply.Reply) -> LcsResult:
    """Decode the map-shaped reply of ``LCS ... IDX``.

    Shape::

        ["matches", [[[s1, e1], [s2, e2]] | [[s1, e1], [s2, e2], len], ...], "len", n]
    """
    fields = {string(key): value for key, value in _pairwise(data, "an LCS IDX map")}

    try:
        raw_matches, length = fields["matches"], fields["len"]
    except KeyError as exc:
        msg = f"LCS IDX reply is missing {exc.args[0]!r}"
        raise error.ProtocolError(msg) from None

    matches: list[LcsMatch] = []
    for raw_match in _items(raw_matches):
        parts = _items(raw_match)
        if len(parts) not in (2, 3):
            msg = f"Expected an LCS match of 2 or 3 items, got {len(parts)}"
            raise error.ProtocolError(msg)

        matches.append(
            LcsMatch(
                _range(parts[0]),
                _range(parts[1]),
                integer(parts[2]) if len(parts) == 3 else None,  # noqa: PLR2004
            ),
        )

    return LcsResult(matches, integer(length))


def exec_results(rules: collections.abc.Sequence[Rule[typing.Any]]) -> Rule[list[typing.Any]]:
    """Decode an EXEC reply positionally, one rule per queued command.

    An error reply in some position becomes a ``ResponseError`` instance in
    that position of the result instead of failing the whole decode. Likewise
    a result that does not fit its rule is stored as the ``ProtocolError``.
    """

    def decode(data: reply.Reply) -> list[typing.Any]:
        items = _items(data, "an EXEC array")
        if len(items) != len(rules):
            msg = f"EXEC returned {len(items)} results for {len(rules)} queued commands"
            raise error.ProtocolError(msg)

        results: list[typing.Any] = []
        for rule, item in zip(rules, items, strict=True):
            if isinstance(item, reply.ErrorReply):
                results.append(error.ResponseError(item.code, item.message))
            else:
                try:
                    results.append(rule(item))
                except (error.ProtocolError, error.ResponseError) as exc:
                    results.append(exc)

        return results

    return decode
