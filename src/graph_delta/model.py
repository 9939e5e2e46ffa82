"""In-memory graph model.

A :class:`Graph` is a flat, ordered list of :class:`Chunk` records. Scope
nesting is expressed through each chunk's ``parent`` (a subgraph id, or
``None`` for the root), so the order of a scope's children is the order of
those chunks in the flat list.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from graph_delta.errors import GraphModelError

RANK_KINDS = ("same", "min", "max")


class ChunkKind(str, Enum):
    NODE = "node"
    EDGE = "edge"
    SUBGRAPH = "subgraph"


@dataclass(slots=True, frozen=True)
class EdgeKey:
    source: str
    target: str
    source_port: str | None = None
    target_port: str | None = None

    def touches(self, node_id: str) -> bool:
        return node_id in (self.source, self.target)

    def __str__(self) -> str:
        return f"{_endpoint(self.source, self.source_port)} -> {_endpoint(self.target, self.target_port)}"


@dataclass(slots=True, frozen=True)
class AnonymousId:
    """Key of a subgraph written without a name.

    It never compares equal to a string, so no identifier in DOT text or a
    command can refer to an anonymous subgraph.
    """

    ordinal: int

    def __str__(self) -> str:
        return f"%anonymous{self.ordinal}"


ScopeId = str | AnonymousId
ChunkKey = str | EdgeKey | AnonymousId


@dataclass(slots=True)
class Chunk:
    """One node, edge or subgraph statement.

    ``parent`` is the scope that owns the chunk. For subgraphs, ``members``
    lists nodes owned by another scope but also mentioned in this one; a rank
    group over nodes that already exist holds them only as members, so
    :meth:`Graph.children_of` does not return them. Use
    :meth:`Graph.members_of` for every node a subgraph mentions.
    """

    kind: ChunkKind
    key: ChunkKey
    parent: ScopeId | None = None
    attrs: dict[str, str] = field(default_factory=dict)
    members: list[str] = field(default_factory=list)
    node_defaults: dict[str, str] = field(default_factory=dict)
    edge_defaults: dict[str, str] = field(default_factory=dict)

    @classmethod
    def node(cls, node_id: str, attrs: dict[str, str] | None = None, parent: ScopeId | None = None) -> Chunk:
        return cls(ChunkKind.NODE, node_id, parent=parent, attrs=dict(attrs or {}))

    @classmethod
    def edge(cls, key: EdgeKey, attrs: dict[str, str] | None = None, parent: ScopeId | None = None) -> Chunk:
        return cls(ChunkKind.EDGE, key, parent=parent, attrs=dict(attrs or {}))

    @classmethod
    def subgraph(
        cls,
        subgraph_id: ScopeId,
        attrs: dict[str, str] | None = None,
        parent: ScopeId | None = None,
        members: list[str] | None = None,
    ) -> Chunk:
        return cls(
            ChunkKind.SUBGRAPH,
            subgraph_id,
            parent=parent,
            attrs=dict(attrs or {}),
            members=list(members or []),
        )

    def copy(self) -> Chunk:
        return Chunk(
            self.kind,
            self.key,
            parent=self.parent,
            attrs=dict(self.attrs),
            members=list(self.members),
            node_defaults=dict(self.node_defaults),
            edge_defaults=dict(self.edge_defaults),
        )

    @property
    def identity(self) -> tuple[ChunkKind, ChunkKey]:
        return self.kind, self.key

    @property
    def anonymous(self) -> bool:
        return isinstance(self.key, AnonymousId)

    @property
    def rank(self) -> str | None:
        """The rank kind when this chunk is a rank group, else ``None``."""
        if self.kind is not ChunkKind.SUBGRAPH or not self.anonymous:
            return None
        rank = self.attrs.get("rank")
        return rank if rank in RANK_KINDS else None


@dataclass(slots=True)
class Graph:
    name: str | None = None
    directed: bool = True
    strict: bool = False
    chunks: list[Chunk] = field(default_factory=list)
    graph_attrs: dict[str, str] = field(default_factory=dict)
    node_defaults: dict[str, str] = field(default_factory=dict)
    edge_defaults: dict[str, str] = field(default_factory=dict)
    anonymous_counter: int = 0

    @property
    def edge_operator(self) -> str:
        return "->" if self.directed else "--"

    # --- lookups ---

    def find(self, kind: ChunkKind, key: ChunkKey) -> Chunk | None:
        for chunk in self.chunks:
            if chunk.kind is kind and chunk.key == key:
                return chunk
        return None

    def find_node(self, node_id: str) -> Chunk | None:
        return self.find(ChunkKind.NODE, node_id)

    def find_edge(self, key: EdgeKey) -> Chunk | None:
        return self.find(ChunkKind.EDGE, key)

    def find_subgraph(self, subgraph_id: ScopeId) -> Chunk | None:
        return self.find(ChunkKind.SUBGRAPH, subgraph_id)

    def nodes(self) -> list[Chunk]:
        return [chunk for chunk in self.chunks if chunk.kind is ChunkKind.NODE]

    def edges(self) -> list[Chunk]:
        return [chunk for chunk in self.chunks if chunk.kind is ChunkKind.EDGE]

    def subgraphs(self) -> list[Chunk]:
        return [chunk for chunk in self.chunks if chunk.kind is ChunkKind.SUBGRAPH]

    def rank_groups(self) -> list[Chunk]:
        return [chunk for chunk in self.chunks if chunk.rank is not None]

    def children_of(self, scope_id: ScopeId | None) -> list[Chunk]:
        if scope_id is not None and self.find_subgraph(scope_id) is None:
            raise GraphModelError(f"Unknown subgraph: {scope_id}")
        return [chunk for chunk in self.chunks if chunk.parent == scope_id]

    def descendants_of(self, scope_id: ScopeId) -> list[Chunk]:
        """Every chunk whose parent chain includes ``scope_id``, in flat order."""
        scopes = {scope_id}
        changed = True
        while changed:
            changed = False
            for chunk in self.chunks:
                if (
                    chunk.kind is ChunkKind.SUBGRAPH
                    and chunk.parent in scopes
                    and chunk.key not in scopes
                ):
                    scopes.add(chunk.key)
                    changed = True
        return [chunk for chunk in self.chunks if chunk.parent in scopes]

    def edges_touching(self, node_id: str) -> list[Chunk]:
        return [chunk for chunk in self.edges() if chunk.key.touches(node_id)]

    def members_of(self, scope_id: ScopeId) -> list[str]:
        """Ids of every node a subgraph mentions: owned nodes, then members."""
        owned = [chunk.key for chunk in self.children_of(scope_id) if chunk.kind is ChunkKind.NODE]
        return owned + self.find_subgraph(scope_id).members

    def ancestors_of(self, scope_id: ScopeId | None) -> list[ScopeId]:
        chain: list[ScopeId] = []
        while scope_id is not None:
            if scope_id in chain:
                raise GraphModelError(f"Subgraph nesting cycle at {scope_id}")
            chain.append(scope_id)
            scope = self.find_subgraph(scope_id)
            if scope is None:
                raise GraphModelError(f"Unknown subgraph: {scope_id}")
            scope_id = scope.parent
        return chain

    # --- mutation ---

    def upsert_chunk(self, chunk: Chunk) -> Chunk:
        """Replace the chunk with the same identity in place, or append it."""
        if chunk.parent is not None:
            if self.find_subgraph(chunk.parent) is None:
                raise GraphModelError(f"Unknown parent subgraph: {chunk.parent}")
            if chunk.kind is ChunkKind.SUBGRAPH and chunk.key in self.ancestors_of(chunk.parent):
                raise GraphModelError(f"Subgraph {chunk.key} cannot be nested inside itself")

        for index, existing in enumerate(self.chunks):
            if existing.identity == chunk.identity:
                self.chunks[index] = chunk
                return chunk

        self.chunks.append(chunk)
        return chunk

    def remove_chunk(self, kind: ChunkKind, key: ChunkKey) -> Chunk | None:
        for index, chunk in enumerate(self.chunks):
            if chunk.kind is kind and chunk.key == key:
                return self.chunks.pop(index)
        return None

    def rename_node(self, old_id: str, new_id: str) -> Chunk:
        """Give a node a new id, rewriting edge endpoints and member lists.

        An edge whose rewritten key already exists is merged into that edge.
        """
        node = self.find_node(old_id)
        if node is None:
            raise GraphModelError(f"Unknown node: {old_id}")
        if new_id == old_id:
            return node
        if self.find_node(new_id) is not None:
            raise GraphModelError(f"Node {new_id} already exists")

        node.key = new_id
        for edge in self.edges_touching(old_id):
            key = edge.key
            renamed = EdgeKey(
                new_id if key.source == old_id else key.source,
                new_id if key.target == old_id else key.target,
                key.source_port,
                key.target_port,
            )
            existing = self.find_edge(renamed)
            if existing is None:
                edge.key = renamed
            else:
                existing.attrs.update(edge.attrs)
                self.chunks.remove(edge)

        for subgraph in self.subgraphs():
            subgraph.members = [new_id if member == old_id else member for member in subgraph.members]
        return node

    def new_anonymous_id(self) -> AnonymousId:
        while True:
            self.anonymous_counter += 1
            candidate = AnonymousId(self.anonymous_counter)
            if self.find_subgraph(candidate) is None:
                return candidate

    def copy(self) -> Graph:
        return Graph(
            name=self.name,
            directed=self.directed,
            strict=self.strict,
            chunks=[chunk.copy() for chunk in self.chunks],
            graph_attrs=dict(self.graph_attrs),
            node_defaults=dict(self.node_defaults),
            edge_defaults=dict(self.edge_defaults),
            anonymous_counter=self.anonymous_counter,
        )

    # --- traversal ---

    def walk(self, scope_id: ScopeId | None = None, depth: int = 0) -> Iterator[tuple[int, Chunk]]:
        """Yield ``(depth, chunk)`` pairs in render order."""
        for chunk in self.children_of(scope_id):
            yield depth, chunk
            if chunk.kind is ChunkKind.SUBGRAPH:
                yield from self.walk(chunk.key, depth + 1)

    def canonical(self) -> dict[str, Any]:
        """Structural form of the graph used for equality checks.

        Chunks are listed in render order and anonymous subgraph ids are
        renumbered by position, so two graphs that render the same
        structure compare equal.
        """
        aliases: dict[AnonymousId, AnonymousId] = {}
        for _, chunk in self.walk():
            if chunk.kind is ChunkKind.SUBGRAPH and chunk.anonymous:
                aliases[chunk.key] = AnonymousId(len(aliases))

        chunks = []
        for _, chunk in self.walk():
            key = aliases.get(chunk.key, chunk.key) if chunk.kind is ChunkKind.SUBGRAPH else chunk.key
            chunks.append(
                (
                    chunk.kind.value,
                    key,
                    aliases.get(chunk.parent, chunk.parent),
                    dict(chunk.attrs),
                    tuple(chunk.members),
                    dict(chunk.node_defaults),
                    dict(chunk.edge_defaults),
                )
            )

        return {
            "name": self.name,
            "directed": self.directed,
            "strict": self.strict,
            "graph_attrs": dict(self.graph_attrs),
            "node_defaults": dict(self.node_defaults),
            "edge_defaults": dict(self.edge_defaults),
            "chunks": chunks,
        }


def structurally_equal(left: Graph, right: Graph) -> bool:
    return left.canonical() == right.canonical()


def _endpoint(node_id: str, port: str | None) -> str:
    return node_id if port is None else f"{node_id}:{port}"
