"""Error hierarchy for graph-delta."""

from __future__ import annotations

from typing import Any


class GraphDeltaError(Exception):
    """Base error for all graph-delta errors."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ParseError(GraphDeltaError):
    """Malformed DOT or DSL text."""

    def __init__(
        self,
        message: str,
        *,
        line: int,
        column: int,
        cause: Exception | None = None,
    ):
        super().__init__(f"{message} (line {line}, column {column})", cause=cause)
        self.message = message
        self.line = line
        self.column = column


class GraphModelError(GraphDeltaError):
    """A model primitive was asked to break a graph invariant."""


class InterpretError(GraphDeltaError):
    """A DSL command could not be applied to the graph."""

    def __init__(
        self,
        message: str,
        *,
        command: Any = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.command = command


class HistoryError(GraphDeltaError):
    """Undo or redo was requested with no version to move to."""
