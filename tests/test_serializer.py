import pytest

from graph_delta.dsl.parser import parse_dsl
from graph_delta.interpreter import apply_commands
from graph_delta.model import Chunk, EdgeKey, Graph, structurally_equal
from graph_delta.parser.parser import parse_dot
from graph_delta.serializer import quote, render

KITCHEN_SINK = r"""
strict digraph "Kitchen Sink" {
    graph [rankdir=LR, label="Top level"];
    node [shape=box, fontname="Helvetica"];
    edge [color=gray];
    // comment
    start [shape=circle, label="Start here"];
    subgraph cluster_backend {
        label="Backend";
        node [style=filled];
        api [label="API"];
        subgraph cluster_db {
            label=Database;
            db [shape=cylinder];
        }
        start;
    }
    { rank=same; api; worker; }
    worker [label="Worker \"1\"", tooltip="C:\\jobs\\", note="line\nbreak"];
    start -> api:in [label="request"];
    api:out:e -> db;
    db -> worker -> start [style=dashed];
    "odd id" -> start;
}
"""


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("abc", "abc"),
        ("_private9", "_private9"),
        ("1.5", "1.5"),
        ("-2", "-2"),
        (".5", ".5"),
        ("", '""'),
        ("hello world", '"hello world"'),
        ("node", '"node"'),
        ("Subgraph", '"Subgraph"'),
        ("9lives", '"9lives"'),
        ("#ff0000", '"#ff0000"'),
        ("a-b", '"a-b"'),
        ('say "hi"', '"say \\"hi\\""'),
        ("a\\nb", '"a\\nb"'),
        ("trailing\\", '"trailing\\\\"'),
    ],
)
def test_quote(value, expected):
    assert quote(value) == expected


def test_render_layout():
    graph = parse_dot('digraph G { rankdir=LR; node [shape=box]; A [label="Node A"]; A -> B [color=red]; }')

    assert render(graph) == (
        "digraph G {\n"
        "    graph [rankdir=LR];\n"
        "    node [shape=box];\n"
        '    A [label="Node A"];\n'
        "    A -> B [color=red];\n"
        "}\n"
    )


def test_render_subgraphs_and_rank_groups():
    graph = parse_dot(
        "graph { a; subgraph cluster_x { label=X; b; a; } { rank=same; a; b; } a -- b; }"
    )

    assert render(graph) == (
        "graph {\n"
        "    a;\n"
        "    subgraph cluster_x {\n"
        "        label=X;\n"
        "        b;\n"
        "        a;\n"
        "    }\n"
        "    {\n"
        "        rank=same;\n"
        "        a;\n"
        "        b;\n"
        "    }\n"
        "    a -- b;\n"
        "}\n"
    )


def test_render_ports():
    graph = Graph()
    graph.upsert_chunk(Chunk.edge(EdgeKey("a", "b", "p1:n", "my port")))

    assert "    a:p1:n -> b:\"my port\";\n" in render(graph)


def test_kitchen_sink_round_trip():
    graph = parse_dot(KITCHEN_SINK)

    rendered = render(graph)
    reparsed = parse_dot(rendered)

    assert structurally_equal(reparsed, graph)
    assert render(reparsed) == rendered


def test_kitchen_sink_content_survives():
    reparsed = parse_dot(render(parse_dot(KITCHEN_SINK)))

    assert reparsed.strict is True
    assert reparsed.name == "Kitchen Sink"
    worker = reparsed.find_node("worker")
    assert worker.attrs == {
        "label": 'Worker "1"',
        "tooltip": "C:\\jobs\\",
        "note": "line\\nbreak",
    }
    assert reparsed.find_edge(EdgeKey("api", "db", "out:e")) is not None
    assert reparsed.find_node("start").parent is None
    assert reparsed.find_subgraph("cluster_backend").members == ["start"]
    (group,) = reparsed.rank_groups()
    assert group.members == ["api"]
    assert worker.parent == group.key


def test_rank_group_round_trip():
    graph = parse_dot("digraph { A; B; }")
    result = apply_commands(graph, parse_dsl("rank same A B"))

    reparsed = parse_dot(render(result.graph))

    (group,) = reparsed.rank_groups()
    assert group.attrs == {"rank": "same"}
    assert group.members == ["A", "B"]
    assert structurally_equal(reparsed, result.graph)


def test_interpreter_output_round_trips():
    graph = parse_dot("digraph G { a [label=\"A\"]; subgraph cluster_x { b; } a -> b; }")
    commands = parse_dsl(
        """
        node c -> cluster_x color="light blue"
        subgraph cluster_y -> cluster_x label="Inner y"
        node d -> cluster_y
        edge c:out -> d [label="c to d"]
        rank same a e
        graph label="Edited graph"
        node default shape=box
        edge default delete color
        node delete b
        """
    )

    result = apply_commands(graph, commands)
    assert result.ok

    reparsed = parse_dot(render(result.graph))

    assert structurally_equal(reparsed, result.graph)


def test_anonymous_ids_are_never_rendered():
    graph = apply_commands(Graph(), parse_dsl("rank min x y")).graph

    rendered = render(graph)

    assert "%anonymous" not in rendered
    assert "subgraph" not in rendered


def test_render_does_not_mutate():
    graph = parse_dot(KITCHEN_SINK)
    before = graph.canonical()

    render(graph)

    assert graph.canonical() == before


def test_subgraph_named_like_anonymous_block_keeps_its_name():
    graph = parse_dot('digraph { { rank=same; a; } subgraph "%anonymous1" { b; } }')

    rendered = render(graph)

    assert 'subgraph "%anonymous1" {' in rendered
    assert structurally_equal(parse_dot(rendered), graph)


def test_renamed_node_and_scoped_edge_round_trip():
    graph = parse_dot("digraph { subgraph cluster_x { a; b; } { rank=same; a; c; } a -> c; }")
    commands = parse_dsl("node a id=alpha\nedge alpha -> b -> cluster_x [label=inner]")

    result = apply_commands(graph, commands)
    assert result.ok

    rendered = render(result.graph)
    assert "alpha -> b [label=inner];" in rendered
    assert structurally_equal(parse_dot(rendered), result.graph)
