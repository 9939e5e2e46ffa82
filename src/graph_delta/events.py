from dataclasses import dataclass

from graph_delta.dsl.ast import Command
from graph_delta.errors import GraphDeltaError


@dataclass(slots=True)
class CommandApplied:
    index: int
    command: Command


@dataclass(slots=True)
class CommandFailed:
    index: int
    command: Command | None
    error: GraphDeltaError
    skipped: bool
