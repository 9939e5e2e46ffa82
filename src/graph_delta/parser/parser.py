import logging

from graph_delta.errors import ParseError
from graph_delta.model import Chunk, EdgeKey, Graph, ScopeId
from graph_delta.parser.lexer import Token, lex

logger = logging.getLogger(__name__)

EDGE_TOKENS = {"ARROW", "LINE"}


class DotParser:
    def __init__(self, source: str):
        self._tokens = lex(source)
        self._index = 0

    def parse(self) -> Graph:
        strict = self._accept_keyword("strict")
        if self._accept_keyword("digraph"):
            directed = True
        elif self._accept_keyword("graph"):
            directed = False
        else:
            raise self._error("Expected 'digraph' or 'graph'", self._peek())

        name = None
        if self._peek().is_id:
            name = self._consume().value
        self._expect("LBRACE")
        graph = Graph(name=name, directed=directed, strict=strict)

        self._parse_statements(graph, None)

        self._expect("RBRACE")
        self._expect("EOF")
        logger.debug("Parsed DOT graph %r with %d chunks", name, len(graph.chunks))
        return graph

    def _parse_statements(self, graph: Graph, scope: ScopeId | None) -> None:
        while self._peek().kind not in {"RBRACE", "EOF"}:
            self._parse_statement(graph, scope)
            if self._peek().kind == "SEMICOLON":
                self._consume()

    def _parse_statement(self, graph: Graph, scope: ScopeId | None) -> None:
        token = self._peek()
        if token.kind == "LBRACE" or self._at_keyword("subgraph"):
            self._parse_subgraph(graph, scope)
            if self._peek().kind in EDGE_TOKENS:
                raise self._error("Subgraph edge endpoints are not supported", self._peek())
            return

        if not token.is_id:
            raise self._error("Expected statement", token)

        keyword = token.value.lower() if token.kind == "IDENT" else None
        if keyword in {"graph", "node", "edge"} and self._peek(1).kind == "LBRACKET":
            self._consume()
            attrs = self._parse_attr_list()
            self._scope_attrs(graph, scope, keyword).update(attrs)
            return

        if self._peek(1).kind == "EQUALS":
            key = self._consume().value
            self._consume()
            self._scope_attrs(graph, scope, "graph")[key] = self._expect_value()
            return

        node_id, port = self._parse_node_ref()
        if self._peek().kind in EDGE_TOKENS:
            self._parse_edge_statement(graph, scope, (node_id, port))
            return

        attrs = self._parse_attr_list(optional=True)
        _declare_node(graph, scope, node_id, attrs)

    def _parse_subgraph(self, graph: Graph, scope: ScopeId | None) -> None:
        subgraph_id = None
        if self._accept_keyword("subgraph") and self._peek().is_id:
            subgraph_id = self._consume().value
        self._expect("LBRACE")

        if subgraph_id is None:
            chunk = graph.upsert_chunk(
                Chunk.subgraph(graph.new_anonymous_id(), parent=scope)
            )
        else:
            chunk = graph.find_subgraph(subgraph_id)
            if chunk is None:
                chunk = graph.upsert_chunk(Chunk.subgraph(subgraph_id, parent=scope))

        self._parse_statements(graph, chunk.key)
        self._expect("RBRACE")

    def _parse_edge_statement(
        self, graph: Graph, scope: ScopeId | None, first: tuple[str, str | None]
    ) -> None:
        chain = [first]
        while self._peek().kind in EDGE_TOKENS:
            operator = self._consume()
            if (operator.kind == "ARROW") != graph.directed:
                expected = graph.edge_operator
                raise self._error(f"Expected edge operator {expected!r}", operator)
            if self._peek().kind == "LBRACE" or self._at_keyword("subgraph"):
                raise self._error("Subgraph edge endpoints are not supported", self._peek())
            chain.append(self._parse_node_ref())

        attrs = self._parse_attr_list(optional=True)

        for (source, source_port), (target, target_port) in zip(chain, chain[1:]):
            key = EdgeKey(source, target, source_port, target_port)
            existing = graph.find_edge(key)
            if existing is None:
                graph.upsert_chunk(Chunk.edge(key, attrs, parent=scope))
            else:
                existing.attrs.update(attrs)

    def _parse_node_ref(self) -> tuple[str, str | None]:
        node_id = self._expect_value()
        port = None
        if self._peek().kind == "COLON":
            self._consume()
            port = self._expect_value()
            if self._peek().kind == "COLON":
                self._consume()
                port = f"{port}:{self._expect_value()}"
        return node_id, port

    def _parse_attr_list(self, optional: bool = False) -> dict[str, str]:
        if optional and self._peek().kind != "LBRACKET":
            return {}

        attrs: dict[str, str] = {}
        self._expect("LBRACKET")
        while True:
            while self._peek().kind != "RBRACKET":
                key = self._expect_value()
                self._expect("EQUALS")
                attrs[key] = self._expect_value()
                if self._peek().kind in {"COMMA", "SEMICOLON"}:
                    self._consume()
            self._expect("RBRACKET")
            if self._peek().kind != "LBRACKET":
                return attrs
            self._consume()

    def _scope_attrs(self, graph: Graph, scope: ScopeId | None, target: str) -> dict[str, str]:
        if scope is None:
            return {
                "graph": graph.graph_attrs,
                "node": graph.node_defaults,
                "edge": graph.edge_defaults,
            }[target]
        chunk = graph.find_subgraph(scope)
        return {
            "graph": chunk.attrs,
            "node": chunk.node_defaults,
            "edge": chunk.edge_defaults,
        }[target]

    def _expect_value(self) -> str:
        token = self._peek()
        if not token.is_id:
            raise self._error("Expected identifier", token)
        value = self._consume().value
        while token.kind == "STRING" and self._peek().kind == "PLUS":
            self._consume()
            token = self._peek()
            if token.kind != "STRING":
                raise self._error("Expected quoted string after '+'", token)
            value += self._consume().value
        return value

    def _at_keyword(self, value: str) -> bool:
        token = self._peek()
        return token.kind == "IDENT" and token.value.lower() == value

    def _accept_keyword(self, value: str) -> bool:
        if self._at_keyword(value):
            self._consume()
            return True
        return False

    def _expect(self, kind: str) -> Token:
        token = self._peek()
        if token.kind != kind:
            raise self._error(f"Expected {kind}", token)
        return self._consume()

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._index + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _consume(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _error(self, message: str, token: Token) -> ParseError:
        found = "end of input" if token.kind == "EOF" else repr(token.value)
        return ParseError(f"{message}, found {found}", line=token.line, column=token.column)


def _declare_node(graph: Graph, scope: ScopeId | None, node_id: str, attrs: dict[str, str]) -> None:
    existing = graph.find_node(node_id)
    if existing is None:
        graph.upsert_chunk(Chunk.node(node_id, attrs, parent=scope))
        return

    existing.attrs.update(attrs)
    if scope is not None and existing.parent != scope:
        subgraph = graph.find_subgraph(scope)
        if node_id not in subgraph.members:
            subgraph.members.append(node_id)


def parse_dot(source: str) -> Graph:
    return DotParser(source).parse()
