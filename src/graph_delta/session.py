import logging

from graph_delta.dsl.ast import Command
from graph_delta.dsl.parser import iter_dsl
from graph_delta.errors import HistoryError
from graph_delta.interpreter import BatchResult, Interpreter, InterpreterOptions
from graph_delta.model import Graph
from graph_delta.parser.parser import parse_dot
from graph_delta.serializer import render

logger = logging.getLogger(__name__)


class EditSession:
    """One editing session over a sequence of graph versions.

    Every applied batch that changes the graph pushes a new version; the
    versions themselves are never mutated, so undo and redo only move the
    cursor.
    """

    def __init__(self, graph: Graph, options: InterpreterOptions | None = None):
        self._interpreter = Interpreter(options)
        self._versions: list[Graph] = [graph]
        self._cursor = 0

    @classmethod
    def from_dot(cls, source: str, options: InterpreterOptions | None = None) -> "EditSession":
        return cls(parse_dot(source), options)

    @property
    def graph(self) -> Graph:
        return self._versions[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._versions) - 1

    def apply(self, source: str | list[Command]) -> BatchResult:
        commands = [result for _, result in iter_dsl(source)] if isinstance(source, str) else source
        result = self._interpreter.apply_batch(self.graph, commands)
        if result.applied:
            del self._versions[self._cursor + 1 :]
            self._versions.append(result.graph)
            self._cursor += 1
            logger.debug("Session at version %d", self._cursor)
        return result

    def undo(self) -> Graph:
        if not self.can_undo:
            raise HistoryError("Nothing to undo")
        self._cursor -= 1
        return self.graph

    def redo(self) -> Graph:
        if not self.can_redo:
            raise HistoryError("Nothing to redo")
        self._cursor += 1
        return self.graph

    def render(self) -> str:
        return render(self.graph)
