"""Module containing command implementation."""

import collections.abc
import dataclasses
import typing

if typing.TYPE_CHECKING:
    import typing_extensions

__all__: collections.abc.Sequence[str] = ("Command", "ArgT")


ArgT: typing.TypeAlias = str | bytes | int | float


@dataclasses.dataclass(slots=True)
class Command:
    """A Redis command.

    This class handles encoding of arguments before they're accepted by a
    ``Connection``. Besides plain positional arguments it offers helpers for
    optional clauses; callers append clauses in the order the command's
    grammar prescribes, and an absent optional value never emits a token.
    """

    arguments: list[bytes]

    def __init__(self, name: str | bytes, *args: ArgT) -> None:
        self.arguments = []
        self.arg(name)
        for arg in args:
            self.arg(arg)

    @property
    def name(self) -> str:
        return self.arguments[0].decode("utf-8", errors="replace").upper()

    def arg(self, value: ArgT) -> "typing_extensions.Self":
        """Add an argument to this command."""
        if isinstance(value, bytes):
            pass
        elif isinstance(value, str):
            value = value.encode()
        elif isinstance(value, bool):
            msg = "Booleans are not valid Redis arguments, use flag() instead"
            raise TypeError(msg)
        elif isinstance(value, int | float):
            value = str(value).encode()
        else:
            msg = f"Cannot encode {type(value).__name__!r} as a Redis argument"
            raise TypeError(msg)

        self.arguments.append(value)
        return self

    def args(self, values: collections.abc.Iterable[ArgT]) -> "typing_extensions.Self":
        """Add every value in ``values`` as an argument."""
        for value in values:
            self.arg(value)
        return self

    def flag(self, token: str, enabled: bool, /) -> "typing_extensions.Self":  # noqa: FBT001
        """Add ``token`` only if ``enabled``."""
        if enabled:
            self.arg(token)
        return self

    def option(self, token: str, value: ArgT | None, /) -> "typing_extensions.Self":
        """Add ``token value`` only if ``value`` is provided."""
        if value is not None:
            self.arg(token).arg(value)
        return self

    def pair(
        self,
        token: str,
        first: ArgT | None,
        second: ArgT | None,
        /,
    ) -> "typing_extensions.Self":
        """Add ``token first second`` only if both companions are provided."""
        if first is not None and second is not None:
            self.arg(token).arg(first).arg(second)
        return self

    def repeat(self, token: str, values: collections.abc.Iterable[ArgT] | None, /) -> "typing_extensions.Self":
        """Add ``token value`` for every value."""
        for value in values or ():
            self.arg(token).arg(value)
        return self

    def __str__(self) -> str:
        return " ".join(arg.decode("utf-8", errors="replace") for arg in self.arguments)

    def __len__(self) -> int:
        return len(self.arguments)

    def __iter__(self) -> collections.abc.Iterator[bytes]:
        return iter(self.arguments)
