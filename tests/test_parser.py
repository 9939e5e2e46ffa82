import pytest

from graph_delta.errors import ParseError
from graph_delta.model import ChunkKind, EdgeKey
from graph_delta.parser.parser import parse_dot


def test_parser_supports_nodes_edges_defaults_and_chains():
    dot = """
    digraph Flow {
      graph [rankdir=LR];
      node [shape=box];
      edge [color=gray];
      start [type=start, class=entry];
      step;
      finish [type=exit];
      start -> step -> finish [label=next, when="context.ok = yes"];
    }
    """

    graph = parse_dot(dot)

    assert graph.name == "Flow"
    assert graph.directed is True
    assert graph.graph_attrs == {"rankdir": "LR"}
    assert graph.node_defaults == {"shape": "box"}
    assert graph.edge_defaults == {"color": "gray"}
    assert graph.find_node("start").attrs == {"type": "start", "class": "entry"}
    assert graph.find_node("step").attrs == {}
    edges = graph.edges()
    assert [edge.key for edge in edges] == [EdgeKey("start", "step"), EdgeKey("step", "finish")]
    assert edges[0].attrs == {"label": "next", "when": "context.ok = yes"}
    assert edges[1].attrs == edges[0].attrs
    assert edges[1].attrs is not edges[0].attrs


class TestAttributePresence:
    def test_node_attributes(self):
        graph = parse_dot('digraph { a [label="Node A", color=red]; }')

        assert graph.find_node("a").attrs == {"label": "Node A", "color": "red"}

    def test_edge_attributes(self):
        graph = parse_dot("digraph { a -> b [weight=2, style=dashed]; }")

        assert graph.find_edge(EdgeKey("a", "b")).attrs == {"weight": "2", "style": "dashed"}

    def test_subgraph_attributes(self):
        graph = parse_dot(
            """
            digraph {
              subgraph cluster_a {
                label="Cluster A";
                graph [style=filled];
                node [shape=circle];
                edge [arrowhead=none];
              }
            }
            """
        )

        cluster = graph.find_subgraph("cluster_a")
        assert cluster.attrs == {"label": "Cluster A", "style": "filled"}
        assert cluster.node_defaults == {"shape": "circle"}
        assert cluster.edge_defaults == {"arrowhead": "none"}

    def test_graph_attributes(self):
        graph = parse_dot('digraph { rankdir=LR; graph [splines=ortho, label="My graph"]; }')

        assert graph.graph_attrs == {"rankdir": "LR", "splines": "ortho", "label": "My graph"}

    def test_default_attributes(self):
        graph = parse_dot("digraph { node [shape=box]; edge [color=gray]; }")

        assert graph.node_defaults == {"shape": "box"}
        assert graph.edge_defaults == {"color": "gray"}


def test_attribute_separators_and_quoting():
    graph = parse_dot('digraph { a [x=1; y=2 "quoted key"="a b", z=3][w=4]; }')

    assert graph.find_node("a").attrs == {
        "x": "1",
        "y": "2",
        "quoted key": "a b",
        "z": "3",
        "w": "4",
    }


def test_quoted_identifiers_and_escapes():
    graph = parse_dot(r'digraph { "my \"node\"" [label="C:\\temp", note="a\nb"]; }')

    node = graph.find_node('my "node"')
    assert node.attrs == {"label": "C:\\temp", "note": "a\\nb"}


def test_string_concatenation():
    graph = parse_dot('digraph { a [label="left " + "right"]; }')

    assert graph.find_node("a").attrs == {"label": "left right"}


def test_repeated_statements_accumulate_attributes():
    graph = parse_dot("digraph { a [color=red, shape=box]; a [color=blue, label=x]; }")

    attrs = graph.find_node("a").attrs
    assert attrs == {"color": "blue", "shape": "box", "label": "x"}
    assert list(attrs) == ["color", "shape", "label"]
    assert len(graph.nodes()) == 1


def test_nested_and_anonymous_subgraphs():
    graph = parse_dot(
        """
        digraph {
          subgraph cluster_a {
            x [color=red];
            subgraph cluster_inner { y; }
          }
          { rank=same; x; z; }
          z [label=Z];
        }
        """
    )

    assert graph.find_node("x").parent == "cluster_a"
    assert graph.find_subgraph("cluster_inner").parent == "cluster_a"
    assert graph.find_node("y").parent == "cluster_inner"

    (group,) = graph.rank_groups()
    assert group.anonymous is True
    assert group.attrs == {"rank": "same"}
    assert group.members == ["x"]
    assert graph.find_node("z").parent == group.key
    assert graph.find_node("z").attrs == {"label": "Z"}


def test_subgraph_keyword_without_id_is_anonymous():
    graph = parse_dot("digraph { subgraph { rank=min; a; } }")

    (group,) = graph.subgraphs()
    assert group.anonymous is True
    assert group.rank == "min"


def test_named_subgraph_never_reopens_anonymous_block():
    graph = parse_dot('digraph { { a; } subgraph "%anonymous1" { b; } }')

    anonymous, named = graph.subgraphs()
    assert anonymous.anonymous is True
    assert graph.children_of(anonymous.key)[0].key == "a"
    assert named.key == "%anonymous1"
    assert named.anonymous is False
    assert graph.find_node("b").parent == "%anonymous1"


def test_reopened_subgraph_appends_to_same_chunk():
    graph = parse_dot("digraph { subgraph s { a; } b; subgraph s { c; } }")

    assert len(graph.subgraphs()) == 1
    assert [chunk.key for chunk in graph.children_of("s")] == ["a", "c"]


def test_undirected_graph_uses_line_operator():
    graph = parse_dot("strict graph G { a -- b; }")

    assert graph.directed is False
    assert graph.strict is True
    assert graph.find_edge(EdgeKey("a", "b")) is not None


@pytest.mark.parametrize(
    "dot",
    [
        "graph { a -> b; }",
        "digraph { a -- b; }",
    ],
)
def test_edge_operator_must_match_graph_type(dot):
    with pytest.raises(ParseError, match="edge operator"):
        parse_dot(dot)


def test_edge_ports_distinguish_parallel_edges():
    graph = parse_dot("digraph { a:p1 -> b:p2:n; a:p3 -> b:p4; a -> b; }")

    assert [edge.key for edge in graph.edges()] == [
        EdgeKey("a", "b", "p1", "p2:n"),
        EdgeKey("a", "b", "p3", "p4"),
        EdgeKey("a", "b"),
    ]


def test_edges_without_ports_collapse():
    graph = parse_dot("digraph { a -> b [x=1]; a -> b [y=2]; }")

    (edge,) = graph.edges()
    assert edge.attrs == {"x": "1", "y": "2"}


def test_edges_do_not_declare_nodes():
    graph = parse_dot("digraph { a -> b; }")

    assert graph.nodes() == []
    assert [chunk.kind for chunk in graph.chunks] == [ChunkKind.EDGE]


def test_edges_inside_subgraph_belong_to_it():
    graph = parse_dot("digraph { subgraph cluster_x { a -> b; } }")

    assert graph.find_edge(EdgeKey("a", "b")).parent == "cluster_x"


def test_keywords_are_case_insensitive():
    graph = parse_dot("DiGraph { Node [shape=box]; SUBGRAPH s { a; } }")

    assert graph.node_defaults == {"shape": "box"}
    assert graph.find_subgraph("s") is not None


def test_parse_error_reports_line_and_column():
    with pytest.raises(ParseError) as excinfo:
        parse_dot("digraph {\n  a [label=]\n}")

    assert excinfo.value.line == 2
    assert excinfo.value.column == 12


@pytest.mark.parametrize(
    "dot",
    [
        "a -> b",
        "digraph { a -> { b c } }",
        "digraph { { a } -> b }",
        "digraph { a [label=x ",
        "digraph { a } extra",
    ],
)
def test_parse_errors(dot):
    with pytest.raises(ParseError):
        parse_dot(dot)
