#!/usr/bin/env python3

"""Data model for location records and the DWARF scope tree."""

from dataclasses import dataclass, field
from typing import Union


@dataclass
class LocationRecord:
    """One row of the line table: code address to source position.

    ``line == 0`` means the row carries no line information.
    """

    address: int
    source_id: int
    line: int
    column: int


@dataclass
class LocationInfo:
    """Line table output: registered sources and sorted location records."""

    sources: list[str]
    locations: list[LocationRecord]


# Attribute values of a scope entry. The set is closed: every DWARF attribute
# is mapped to exactly one of these.


@dataclass(frozen=True)
class IntValue:
    value: int


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class RangesValue:
    ranges: tuple[tuple[int, int], ...]


@dataclass(frozen=True)
class ExpressionValue:
    expr: bytes


@dataclass(frozen=True)
class LocationListValue:
    entries: tuple[tuple[int, int, bytes], ...]


@dataclass(frozen=True)
class UidValue:
    uid: int


@dataclass(frozen=True)
class UidRefValue:
    uid: int
    name: str | None = None


@dataclass(frozen=True)
class IgnoredValue:
    """Recognized attribute that is intentionally not exported."""


@dataclass(frozen=True)
class UnknownValue:
    """Attribute encoding with no mapping."""


AttrValue = Union[
    IntValue,
    BoolValue,
    StringValue,
    RangesValue,
    ExpressionValue,
    LocationListValue,
    UidValue,
    UidRefValue,
    IgnoredValue,
    UnknownValue,
]

IGNORED = IgnoredValue()
UNKNOWN = UnknownValue()


@dataclass
class DebugInfoObj:
    """A DWARF entry in the scope tree; children are arena indices."""

    tag: str
    attrs: dict[str, AttrValue] = field(default_factory=dict)
    children: list[int] = field(default_factory=list)


@dataclass
class ScopeArena:
    """Flat storage for the scope forest.

    Nodes are addressed by their index in ``nodes``. ``roots`` lists the unit
    entries in unit order.
    """

    nodes: list[DebugInfoObj] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)

    def add(self, node: DebugInfoObj, parent: int | None = None) -> int:
        index = len(self.nodes)
        self.nodes.append(node)
        if parent is None:
            self.roots.append(index)
        else:
            self.nodes[parent].children.append(index)
        return index

    def __getitem__(self, index: int) -> DebugInfoObj:
        return self.nodes[index]

    def __len__(self) -> int:
        return len(self.nodes)
