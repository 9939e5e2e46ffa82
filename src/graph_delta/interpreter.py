import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from graph_delta.dsl.ast import (
    Command,
    DefaultsTarget,
    DeleteDefaults,
    DeleteEdge,
    DeleteGraphAttrs,
    DeleteNode,
    DeleteSubgraph,
    SetDefaults,
    SetEdge,
    SetGraphAttrs,
    SetNode,
    SetRank,
    SetSubgraph,
)
from graph_delta.errors import GraphDeltaError, GraphModelError, InterpretError, ParseError
from graph_delta.events import CommandApplied, CommandFailed
from graph_delta.model import AnonymousId, Chunk, ChunkKind, Graph, ScopeId

logger = logging.getLogger(__name__)

# A node set command carrying this attribute renames the node.
RENAME_ATTR = "id"


class ErrorPolicy(str, Enum):
    ABORT = "abort"
    CONTINUE = "continue"


@dataclass(slots=True)
class InterpreterOptions:
    error_policy: ErrorPolicy = ErrorPolicy.ABORT


@dataclass(slots=True)
class CommandFailure:
    index: int
    command: Command | None
    error: GraphDeltaError


@dataclass(slots=True)
class BatchResult:
    graph: Graph
    applied: list[Command] = field(default_factory=list)
    failures: list[CommandFailure] = field(default_factory=list)
    aborted: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures


Listener = Callable[[CommandApplied | CommandFailed], None]


class Interpreter:
    """Applies DSL commands to graphs without mutating the input graph."""

    def __init__(self, options: InterpreterOptions | None = None, listener: Listener | None = None):
        self._options = options or InterpreterOptions()
        self._listener = listener
        self._handlers: dict[type, Callable[[Graph, Command], None]] = {
            SetNode: self._set_node,
            DeleteNode: self._delete_node,
            SetEdge: self._set_edge,
            DeleteEdge: self._delete_edge,
            SetSubgraph: self._set_subgraph,
            DeleteSubgraph: self._delete_subgraph,
            SetGraphAttrs: self._set_graph_attrs,
            DeleteGraphAttrs: self._delete_graph_attrs,
            SetDefaults: self._set_defaults,
            DeleteDefaults: self._delete_defaults,
            SetRank: self._set_rank,
        }

    @property
    def options(self) -> InterpreterOptions:
        return self._options

    def apply(self, graph: Graph, command: Command) -> Graph:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise InterpretError(f"Unsupported command: {command!r}", command=command)

        updated = graph.copy()
        try:
            handler(updated, command)
        except GraphModelError as exc:
            raise InterpretError(str(exc), command=command, cause=exc) from exc
        logger.debug("Applied %r", command)
        return updated

    def apply_batch(self, graph: Graph, commands: Iterable[Command | ParseError]) -> BatchResult:
        """Apply commands in order.

        Items may be :class:`ParseError` instances for lines that failed to
        parse; they count as failed commands. With ``ErrorPolicy.ABORT`` the
        batch stops at the first failure and the result holds the graph as
        of the last successful command.
        """
        result = BatchResult(graph=graph)
        for index, command in enumerate(commands):
            if isinstance(command, ParseError):
                failed_command, error = None, command
            else:
                try:
                    result.graph = self.apply(result.graph, command)
                except InterpretError as exc:
                    failed_command, error = command, exc
                else:
                    result.applied.append(command)
                    self._emit(CommandApplied(index=index, command=command))
                    continue

            result.failures.append(CommandFailure(index, failed_command, error))
            skipped = self._options.error_policy is ErrorPolicy.CONTINUE
            self._emit(CommandFailed(index, failed_command, error, skipped=skipped))
            if not skipped:
                logger.debug("Aborting batch at command %d: %s", index, error)
                result.aborted = True
                break
            logger.warning("Skipping command %d: %s", index, error)

        return result

    def _emit(self, event: CommandApplied | CommandFailed) -> None:
        if self._listener is not None:
            self._listener(event)

    # --- nodes ---

    def _set_node(self, graph: Graph, command: SetNode) -> None:
        _require_scope(graph, command.parent, command)
        attrs = dict(command.attrs)
        new_id = attrs.pop(RENAME_ATTR, None)
        existing = graph.find_node(command.node_id)
        if existing is None:
            if new_id is not None:
                raise InterpretError(f"Cannot rename unknown node: {command.node_id}", command=command)
            graph.upsert_chunk(Chunk.node(command.node_id, attrs, parent=command.parent))
            return

        if command.parent is not None and existing.parent != command.parent:
            raise InterpretError(
                f"Node {command.node_id} already exists in {_scope_name(existing.parent)}",
                command=command,
            )
        if new_id is not None:
            existing = graph.rename_node(command.node_id, new_id)
        existing.attrs.update(attrs)

    def _delete_node(self, graph: Graph, command: DeleteNode) -> None:
        if graph.remove_chunk(ChunkKind.NODE, command.node_id) is None:
            logger.debug("Node %s not present", command.node_id)
        _forget_node(graph, command.node_id)

    # --- edges ---

    def _set_edge(self, graph: Graph, command: SetEdge) -> None:
        _require_scope(graph, command.parent, command)
        existing = graph.find_edge(command.key)
        if existing is None:
            graph.upsert_chunk(Chunk.edge(command.key, command.attrs, parent=command.parent))
            return

        if command.parent is not None and existing.parent != command.parent:
            raise InterpretError(
                f"Edge {command.key} already exists in {_scope_name(existing.parent)}",
                command=command,
            )
        existing.attrs.update(command.attrs)

    def _delete_edge(self, graph: Graph, command: DeleteEdge) -> None:
        if graph.remove_chunk(ChunkKind.EDGE, command.key) is None:
            logger.debug("Edge %s not present", command.key)

    # --- subgraphs ---

    def _set_subgraph(self, graph: Graph, command: SetSubgraph) -> None:
        _require_scope(graph, command.parent, command)
        existing = graph.find_subgraph(command.subgraph_id)
        if existing is None:
            graph.upsert_chunk(
                Chunk.subgraph(command.subgraph_id, command.attrs, parent=command.parent)
            )
            return

        if command.parent is not None and existing.parent != command.parent:
            raise InterpretError(
                f"Subgraph {command.subgraph_id} already exists in {_scope_name(existing.parent)}",
                command=command,
            )
        existing.attrs.update(command.attrs)

    def _delete_subgraph(self, graph: Graph, command: DeleteSubgraph) -> None:
        if graph.find_subgraph(command.subgraph_id) is None:
            logger.debug("Subgraph %s not present", command.subgraph_id)
            return

        removed = graph.descendants_of(command.subgraph_id)
        graph.remove_chunk(ChunkKind.SUBGRAPH, command.subgraph_id)
        for chunk in removed:
            graph.remove_chunk(chunk.kind, chunk.key)
        for chunk in removed:
            if chunk.kind is ChunkKind.NODE:
                _forget_node(graph, chunk.key)

    # --- graph attributes and defaults ---

    def _set_graph_attrs(self, graph: Graph, command: SetGraphAttrs) -> None:
        graph.graph_attrs.update(command.attrs)

    def _delete_graph_attrs(self, graph: Graph, command: DeleteGraphAttrs) -> None:
        for key in command.keys:
            graph.graph_attrs.pop(key, None)

    def _set_defaults(self, graph: Graph, command: SetDefaults) -> None:
        _defaults(graph, command.target).update(command.attrs)

    def _delete_defaults(self, graph: Graph, command: DeleteDefaults) -> None:
        defaults = _defaults(graph, command.target)
        for key in command.keys:
            defaults.pop(key, None)

    # --- rank groups ---

    def _set_rank(self, graph: Graph, command: SetRank) -> None:
        kind = command.kind.value
        wanted = set(command.members)

        # Groups of the same kind sharing a member are replaced by one new
        # group appended at the end of the root scope, after every node it
        # references.
        for group in graph.rank_groups():
            if group.parent is not None or group.rank != kind:
                continue
            if wanted.isdisjoint(graph.members_of(group.key)):
                continue
            for child in graph.children_of(group.key):
                child.parent = None
            graph.remove_chunk(ChunkKind.SUBGRAPH, group.key)

        group = graph.upsert_chunk(
            Chunk.subgraph(graph.new_anonymous_id(), {"rank": kind})
        )
        for node_id in command.members:
            if graph.find_node(node_id) is None:
                graph.upsert_chunk(Chunk.node(node_id, parent=group.key))
            else:
                group.members.append(node_id)


def _require_scope(graph: Graph, scope_id: str | None, command: Command) -> None:
    if scope_id is not None and graph.find_subgraph(scope_id) is None:
        raise InterpretError(f"Unknown parent subgraph: {scope_id}", command=command)


def _scope_name(scope_id: ScopeId | None) -> str:
    if scope_id is None:
        return "the root graph"
    if isinstance(scope_id, AnonymousId):
        return "an anonymous subgraph"
    return f"subgraph {scope_id}"


def _defaults(graph: Graph, target: DefaultsTarget) -> dict[str, str]:
    if target is DefaultsTarget.NODE:
        return graph.node_defaults
    return graph.edge_defaults


def _forget_node(graph: Graph, node_id: str) -> None:
    """Drop edges and member references to a node that no longer exists."""
    for edge in graph.edges_touching(node_id):
        graph.remove_chunk(ChunkKind.EDGE, edge.key)

    for subgraph in graph.subgraphs():
        if node_id in subgraph.members:
            subgraph.members.remove(node_id)

    for group in graph.rank_groups():
        if not group.members and not graph.children_of(group.key):
            graph.remove_chunk(ChunkKind.SUBGRAPH, group.key)


def apply(graph: Graph, command: Command) -> Graph:
    return Interpreter().apply(graph, command)


def apply_commands(
    graph: Graph,
    commands: Iterable[Command | ParseError],
    options: InterpreterOptions | None = None,
) -> BatchResult:
    return Interpreter(options).apply_batch(graph, commands)
