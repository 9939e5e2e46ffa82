from dataclasses import dataclass, field

from graph_delta.errors import GraphModelError
from graph_delta.model import ChunkKind, Graph


@dataclass(slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_graph(graph: Graph, strict: bool = False) -> ValidationResult:
    """Check the model invariants a graph built by hand might break.

    Dangling edge endpoints and empty rank groups are legal DOT and are
    reported as warnings unless ``strict`` is set.
    """
    result = ValidationResult()

    seen: set[tuple[ChunkKind, object]] = set()
    for chunk in graph.chunks:
        if chunk.identity in seen:
            result.errors.append(f"duplicate {chunk.kind.value}: {chunk.key}")
        seen.add(chunk.identity)

    subgraph_ids = {chunk.key for chunk in graph.subgraphs()}
    node_ids = {chunk.key for chunk in graph.nodes()}

    for chunk in graph.chunks:
        if chunk.parent is not None and chunk.parent not in subgraph_ids:
            result.errors.append(f"unknown parent subgraph for {chunk.kind.value} {chunk.key}: {chunk.parent}")

    for subgraph in graph.subgraphs():
        try:
            graph.ancestors_of(subgraph.key)
        except GraphModelError as exc:
            result.errors.append(str(exc))
        for member in subgraph.members:
            if member not in node_ids:
                result.errors.append(f"subgraph {subgraph.key} lists unknown node: {member}")

    warnings: list[str] = []
    for edge in graph.edges():
        for endpoint in (edge.key.source, edge.key.target):
            if endpoint not in node_ids:
                warnings.append(f"edge {edge.key} references undeclared node: {endpoint}")

    for group in graph.rank_groups():
        if not group.members and not any(chunk.parent == group.key for chunk in graph.chunks):
            warnings.append(f"empty rank={group.rank} group")

    if strict:
        result.errors.extend(warnings)
    else:
        result.warnings.extend(warnings)

    return result
