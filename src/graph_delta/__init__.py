from graph_delta.dsl.parser import parse_dsl
from graph_delta.errors import (
    GraphDeltaError,
    GraphModelError,
    HistoryError,
    InterpretError,
    ParseError,
)
from graph_delta.interpreter import (
    BatchResult,
    ErrorPolicy,
    Interpreter,
    InterpreterOptions,
    apply,
    apply_commands,
)
from graph_delta.model import AnonymousId, Chunk, ChunkKind, EdgeKey, Graph, structurally_equal
from graph_delta.parser.parser import parse_dot
from graph_delta.runner import edit
from graph_delta.serializer import render
from graph_delta.session import EditSession

__all__ = [
    "AnonymousId",
    "BatchResult",
    "Chunk",
    "ChunkKind",
    "EdgeKey",
    "EditSession",
    "ErrorPolicy",
    "Graph",
    "GraphDeltaError",
    "GraphModelError",
    "HistoryError",
    "InterpretError",
    "Interpreter",
    "InterpreterOptions",
    "ParseError",
    "apply",
    "apply_commands",
    "edit",
    "parse_dot",
    "parse_dsl",
    "render",
    "structurally_equal",
]
