"""Typed commands produced by the DSL parser.

Each entity has a single ``Set*`` command carrying its identity and the
attributes to merge; whether that creates or updates is decided by the
interpreter.
"""

from dataclasses import dataclass, field
from enum import Enum

from graph_delta.model import EdgeKey


class RankKind(str, Enum):
    SAME = "same"
    MIN = "min"
    MAX = "max"


class DefaultsTarget(str, Enum):
    NODE = "node"
    EDGE = "edge"


@dataclass(slots=True, frozen=True)
class SetNode:
    node_id: str
    attrs: dict[str, str] = field(default_factory=dict)
    parent: str | None = None
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class DeleteNode:
    node_id: str
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class SetEdge:
    key: EdgeKey
    attrs: dict[str, str] = field(default_factory=dict)
    parent: str | None = None
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class DeleteEdge:
    key: EdgeKey
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class SetSubgraph:
    subgraph_id: str
    attrs: dict[str, str] = field(default_factory=dict)
    parent: str | None = None
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class DeleteSubgraph:
    subgraph_id: str
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class SetGraphAttrs:
    attrs: dict[str, str]
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class DeleteGraphAttrs:
    keys: tuple[str, ...]
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class SetDefaults:
    target: DefaultsTarget
    attrs: dict[str, str]
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class DeleteDefaults:
    target: DefaultsTarget
    keys: tuple[str, ...]
    line: int = field(default=0, compare=False)


@dataclass(slots=True, frozen=True)
class SetRank:
    kind: RankKind
    members: tuple[str, ...]
    line: int = field(default=0, compare=False)


Command = (
    SetNode
    | DeleteNode
    | SetEdge
    | DeleteEdge
    | SetSubgraph
    | DeleteSubgraph
    | SetGraphAttrs
    | DeleteGraphAttrs
    | SetDefaults
    | DeleteDefaults
    | SetRank
)
