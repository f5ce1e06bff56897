"""Command mixins, one per Redis data type family."""

import collections.abc

from redikit.commands.base import CommandMixin
from redikit.commands.bits import BitCommands, BitOperation
from redikit.commands.hashes import HashCommands
from redikit.commands.keys import KeyCommands, ValueType
from redikit.commands.lists import Direction, ListCommands
from redikit.commands.sets import SetCommands
from redikit.commands.sorted_sets import Aggregate, Comparison, SortedSetCommands
from redikit.commands.strings import SetMode, StringCommands

__all__: collections.abc.Sequence[str] = (
    "Aggregate",
    "BitCommands",
    "BitOperation",
    "CommandMixin",
    "Comparison",
    "Direction",
    "HashCommands",
    "KeyCommands",
    "ListCommands",
    "SetCommands",
    "SetMode",
    "SortedSetCommands",
    "StringCommands",
    "ValueType",
)
