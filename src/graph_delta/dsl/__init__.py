from graph_delta.dsl.parser import iter_dsl, parse_command, parse_dsl

__all__ = ["iter_dsl", "parse_command", "parse_dsl"]
