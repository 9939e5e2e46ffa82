import logging
from dataclasses import dataclass

from graph_delta.dsl.parser import iter_dsl
from graph_delta.errors import GraphModelError
from graph_delta.interpreter import BatchResult, Interpreter, InterpreterOptions
from graph_delta.model import Graph
from graph_delta.parser.parser import parse_dot
from graph_delta.serializer import render
from graph_delta.validation import ValidationResult, validate_graph

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EditResult:
    dot: str
    graph: Graph
    batch: BatchResult
    validation: ValidationResult | None = None


def edit(
    dot_source: str,
    dsl_source: str,
    options: InterpreterOptions | None = None,
    validate: bool = False,
) -> EditResult:
    graph = parse_dot(dot_source)

    commands = [result for _, result in iter_dsl(dsl_source)]
    batch = Interpreter(options).apply_batch(graph, commands)
    if batch.failures:
        logger.info(
            "%d of %d commands failed%s",
            len(batch.failures),
            len(commands),
            " (aborted)" if batch.aborted else "",
        )

    validation = None
    if validate:
        validation = validate_graph(batch.graph)
        if validation.errors:
            raise GraphModelError("Invalid graph: " + "; ".join(validation.errors))

    return EditResult(
        dot=render(batch.graph),
        graph=batch.graph,
        batch=batch,
        validation=validation,
    )
