import re

from graph_delta.model import Chunk, ChunkKind, Graph, ScopeId

BARE_ID = re.compile(r"[^\W\d]\w*\Z")
NUMERAL = re.compile(r"-?(\.\d+|\d+(\.\d*)?)\Z")
KEYWORDS = {"strict", "graph", "digraph", "subgraph", "node", "edge"}
COMPASS_POINTS = {"n", "ne", "e", "se", "s", "sw", "w", "nw", "c", "_"}


def render(graph: Graph, indent: str = "    ") -> str:
    """Render a graph as DOT text that parses back to the same structure."""
    header = "digraph" if graph.directed else "graph"
    if graph.strict:
        header = f"strict {header}"
    if graph.name is not None:
        header = f"{header} {quote(graph.name)}"

    lines = [f"{header} {{"]
    for keyword, attrs in (
        ("graph", graph.graph_attrs),
        ("node", graph.node_defaults),
        ("edge", graph.edge_defaults),
    ):
        if attrs:
            lines.append(f"{indent}{keyword} {format_attrs(attrs)};")

    _render_scope(graph, None, 1, lines, indent)
    lines.append("}")
    return "\n".join(lines) + "\n"


def quote(value: str) -> str:
    """Return ``value`` bare when DOT reads it back unchanged, else quoted."""
    if value.lower() not in KEYWORDS and (BARE_ID.match(value) or NUMERAL.match(value)):
        return value
    return f'"{_escape(value)}"'


def format_attrs(attrs: dict[str, str]) -> str:
    return "[" + ", ".join(f"{quote(key)}={quote(value)}" for key, value in attrs.items()) + "]"


def _render_scope(
    graph: Graph, scope_id: ScopeId | None, depth: int, lines: list[str], indent: str
) -> None:
    pad = indent * depth
    for chunk in graph.children_of(scope_id):
        if chunk.kind is ChunkKind.SUBGRAPH:
            _render_subgraph(graph, chunk, depth, lines, indent)
            continue

        if chunk.kind is ChunkKind.NODE:
            statement = quote(chunk.key)
        else:
            key = chunk.key
            source = _endpoint(key.source, key.source_port)
            target = _endpoint(key.target, key.target_port)
            statement = f"{source} {graph.edge_operator} {target}"

        if chunk.attrs:
            statement = f"{statement} {format_attrs(chunk.attrs)}"
        lines.append(f"{pad}{statement};")


def _render_subgraph(graph: Graph, chunk: Chunk, depth: int, lines: list[str], indent: str) -> None:
    pad = indent * depth
    inner = indent * (depth + 1)

    if chunk.anonymous:
        lines.append(f"{pad}{{")
    else:
        lines.append(f"{pad}subgraph {quote(chunk.key)} {{")

    for key, value in chunk.attrs.items():
        lines.append(f"{inner}{quote(key)}={quote(value)};")
    if chunk.node_defaults:
        lines.append(f"{inner}node {format_attrs(chunk.node_defaults)};")
    if chunk.edge_defaults:
        lines.append(f"{inner}edge {format_attrs(chunk.edge_defaults)};")

    _render_scope(graph, chunk.key, depth + 1, lines, indent)
    for member in chunk.members:
        lines.append(f"{inner}{quote(member)};")

    lines.append(f"{pad}}}")


def _endpoint(node_id: str, port: str | None) -> str:
    if port is None:
        return quote(node_id)
    name, _, compass = port.rpartition(":")
    if name and compass in COMPASS_POINTS:
        return f"{quote(node_id)}:{quote(name)}:{compass}"
    return f"{quote(node_id)}:{quote(port)}"


def _escape(value: str) -> str:
    # Backslashes stay literal unless the lexer would read them as an escape
    # or a line continuation.
    escaped: list[str] = []
    for index, char in enumerate(value):
        following = value[index + 1 : index + 2]
        if char == '"':
            escaped.append('\\"')
        elif char == "\\" and following in {"", "\\", '"', "\n"}:
            escaped.append("\\\\")
        else:
            escaped.append(char)
    return "".join(escaped)
