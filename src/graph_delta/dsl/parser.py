"""Parser for the graph editing command language.

One command per line::

    node A shape=box
    node delete A
    edge A:out -> B [label="x"]
    edge A -> B -> cluster_backend color=red
    node A id=A2
    subgraph cluster_db -> cluster_backend label=Database
    graph rankdir=LR
    node default delete shape
    rank same A B

Every rule below returns the value it matched and command builders combine
those named results; nothing is located by counting tokens.
"""

import logging
from collections.abc import Callable, Iterator

from graph_delta.dsl.ast import (
    Command,
    DefaultsTarget,
    DeleteDefaults,
    DeleteEdge,
    DeleteGraphAttrs,
    DeleteNode,
    DeleteSubgraph,
    RankKind,
    SetDefaults,
    SetEdge,
    SetGraphAttrs,
    SetNode,
    SetRank,
    SetSubgraph,
)
from graph_delta.errors import ParseError
from graph_delta.model import EdgeKey
from graph_delta.parser.lexer import Token, lex

logger = logging.getLogger(__name__)


class DslParser:
    def __init__(self, source: str, line: int = 1):
        self._line = line
        try:
            self._tokens = lex(source)
        except ParseError as exc:
            raise ParseError(exc.message, line=line, column=exc.column) from exc
        self._index = 0
        self._commands: dict[str, Callable[[], Command]] = {
            "node": self._node_command,
            "edge": self._edge_command,
            "subgraph": self._subgraph_command,
            "graph": self._graph_command,
            "rank": self._rank_command,
        }

    def parse(self) -> Command | None:
        token = self._peek()
        if token.kind == "EOF":
            return None

        handler = self._commands.get(token.value) if token.kind == "IDENT" else None
        if handler is None:
            raise self._error("Expected one of 'node', 'edge', 'subgraph', 'graph', 'rank'", token)
        self._consume()

        command = handler()
        self._expect("EOF")
        return command

    # --- commands ---

    def _node_command(self) -> Command:
        if self._accept_keyword("delete"):
            return DeleteNode(node_id=self._identifier(), line=self._line)
        if self._accept_keyword("default"):
            return self._defaults_command(DefaultsTarget.NODE)

        node_id = self._identifier()
        parent = self._parent_ref()
        attrs = self._attr_list()
        return SetNode(node_id=node_id, attrs=attrs, parent=parent, line=self._line)

    def _edge_command(self) -> Command:
        if self._accept_keyword("delete"):
            return DeleteEdge(key=self._edge_ref(), line=self._line)
        if self._accept_keyword("default"):
            return self._defaults_command(DefaultsTarget.EDGE)

        key = self._edge_ref()
        parent = self._parent_ref()
        attrs = self._attr_list()
        return SetEdge(key=key, attrs=attrs, parent=parent, line=self._line)

    def _subgraph_command(self) -> Command:
        if self._accept_keyword("delete"):
            return DeleteSubgraph(subgraph_id=self._identifier(), line=self._line)

        subgraph_id = self._identifier()
        parent = self._parent_ref()
        attrs = self._attr_list()
        return SetSubgraph(subgraph_id=subgraph_id, attrs=attrs, parent=parent, line=self._line)

    def _graph_command(self) -> Command:
        if self._accept_keyword("delete"):
            return DeleteGraphAttrs(keys=self._key_list(), line=self._line)

        attrs = self._attr_list()
        if not attrs:
            raise self._error("Expected key=value", self._peek())
        return SetGraphAttrs(attrs=attrs, line=self._line)

    def _defaults_command(self, target: DefaultsTarget) -> Command:
        if self._accept_keyword("delete"):
            return DeleteDefaults(target=target, keys=self._key_list(), line=self._line)
        return SetDefaults(target=target, attrs=self._attr_list(), line=self._line)

    def _rank_command(self) -> Command:
        kind = self._rank_kind()
        members = [self._identifier()]
        while self._peek().kind != "EOF":
            if self._peek().kind in {"COMMA", "SEMICOLON"}:
                self._consume()
                continue
            members.append(self._identifier())
        return SetRank(kind=kind, members=tuple(dict.fromkeys(members)), line=self._line)

    # --- sub-rules ---

    def _edge_ref(self) -> EdgeKey:
        source, source_port = self._endpoint()
        operator = self._peek()
        if operator.kind not in {"ARROW", "LINE"}:
            raise self._error("Expected '->'", operator)
        self._consume()
        target, target_port = self._endpoint()
        return EdgeKey(source, target, source_port, target_port)

    def _endpoint(self) -> tuple[str, str | None]:
        node_id = self._identifier()
        port = None
        if self._peek().kind == "COLON":
            self._consume()
            port = self._identifier()
            if self._peek().kind == "COLON":
                self._consume()
                port = f"{port}:{self._identifier()}"
        return node_id, port

    def _parent_ref(self) -> str | None:
        if self._peek().kind != "ARROW":
            return None
        self._consume()
        return self._identifier()

    def _attr_list(self) -> dict[str, str]:
        bracketed = self._peek().kind == "LBRACKET"
        if bracketed:
            self._consume()
        closing = "RBRACKET" if bracketed else "EOF"

        attrs: dict[str, str] = {}
        while self._peek().kind != closing:
            key, value = self._attr_pair()
            attrs[key] = value
            if self._peek().kind in {"COMMA", "SEMICOLON"}:
                self._consume()

        if bracketed:
            self._consume()
        return attrs

    def _attr_pair(self) -> tuple[str, str]:
        key = self._identifier()
        self._expect("EQUALS")
        return key, self._identifier()

    def _key_list(self) -> tuple[str, ...]:
        keys = [self._identifier()]
        while self._peek().kind != "EOF":
            if self._peek().kind in {"COMMA", "SEMICOLON"}:
                self._consume()
                continue
            keys.append(self._identifier())
        return tuple(keys)

    def _rank_kind(self) -> RankKind:
        token = self._peek()
        if token.kind != "IDENT" or token.value not in {kind.value for kind in RankKind}:
            raise self._error("Expected 'same', 'min' or 'max'", token)
        self._consume()
        return RankKind(token.value)

    def _identifier(self) -> str:
        token = self._peek()
        if not token.is_id:
            raise self._error("Expected identifier", token)
        return self._consume().value

    # --- token helpers ---

    def _accept_keyword(self, value: str) -> bool:
        token = self._peek()
        if token.kind == "IDENT" and token.value == value:
            self._consume()
            return True
        return False

    def _expect(self, kind: str) -> Token:
        token = self._peek()
        if token.kind != kind:
            raise self._error(f"Expected {kind}", token)
        return self._consume()

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _consume(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _error(self, message: str, token: Token) -> ParseError:
        found = "end of line" if token.kind == "EOF" else repr(token.value)
        return ParseError(f"{message}, found {found}", line=self._line, column=token.column)


def parse_command(source: str, line: int = 1) -> Command | None:
    """Parse a single command line; blank and comment lines give ``None``."""
    return DslParser(source, line=line).parse()


def iter_dsl(source: str) -> Iterator[tuple[int, Command | ParseError]]:
    """Yield ``(line, command or error)`` for every non-blank line."""
    for line_number, text in enumerate(source.splitlines(), start=1):
        try:
            command = parse_command(text, line=line_number)
        except ParseError as exc:
            logger.debug("Rejected DSL line %d: %s", line_number, exc)
            yield line_number, exc
            continue
        if command is not None:
            yield line_number, command


def parse_dsl(source: str) -> list[Command]:
    commands: list[Command] = []
    for _, result in iter_dsl(source):
        if isinstance(result, ParseError):
            raise result
        commands.append(result)
    return commands
