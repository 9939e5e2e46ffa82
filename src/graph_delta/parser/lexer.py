from bisect import bisect_right
from dataclasses import dataclass

from graph_delta.errors import ParseError


@dataclass(slots=True, frozen=True)
class Token:
    kind: str
    value: str
    position: int
    line: int
    column: int

    @property
    def is_id(self) -> bool:
        return self.kind in {"IDENT", "STRING"}


SINGLE_CHAR_TOKENS = {
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACKET",
    "]": "RBRACKET",
    "=": "EQUALS",
    ",": "COMMA",
    ";": "SEMICOLON",
    ":": "COLON",
    "+": "PLUS",
}

EDGE_OPERATORS = {"->": "ARROW", "--": "LINE"}


class _Source:
    def __init__(self, text: str):
        self.text = text
        self._line_starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)

    def location(self, index: int) -> tuple[int, int]:
        line = bisect_right(self._line_starts, index)
        return line, index - self._line_starts[line - 1] + 1

    def at_line_start(self, index: int) -> bool:
        line_start = self._line_starts[bisect_right(self._line_starts, index) - 1]
        return self.text[line_start:index].strip() == ""

    def error(self, message: str, index: int) -> ParseError:
        line, column = self.location(index)
        return ParseError(message, line=line, column=column)


def lex(source: str) -> list[Token]:
    """Split DOT or DSL text into tokens.

    Quoted strings come back unquoted as STRING tokens; only ``\\"`` and
    ``\\\\`` are escapes, any other backslash is kept as written.
    """
    text = _Source(source)
    tokens: list[Token] = []
    index = 0
    length = len(source)

    def emit(kind: str, value: str, start: int) -> None:
        line, column = text.location(start)
        tokens.append(Token(kind, value, start, line, column))

    while index < length:
        char = source[index]
        if char.isspace():
            index += 1
            continue

        if source.startswith("//", index) or (char == "#" and text.at_line_start(index)):
            index = _skip_to_line_end(source, index)
            continue

        if source.startswith("/*", index):
            end = source.find("*/", index + 2)
            if end == -1:
                raise text.error("Unterminated comment", index)
            index = end + 2
            continue

        if char == '"':
            value, end = _read_string(text, index)
            emit("STRING", value, index)
            index = end
            continue

        operator = EDGE_OPERATORS.get(source[index : index + 2])
        if operator is not None:
            emit(operator, source[index : index + 2], index)
            index += 2
            continue

        token_kind = SINGLE_CHAR_TOKENS.get(char)
        if token_kind is not None:
            emit(token_kind, char, index)
            index += 1
            continue

        if _is_identifier_start(source, index):
            value, end = _read_identifier(source, index)
            emit("IDENT", value, index)
            index = end
            continue

        raise text.error(f"Unexpected character {char!r}", index)

    emit("EOF", "", length)
    return tokens


def _skip_to_line_end(source: str, index: int) -> int:
    while index < len(source) and source[index] != "\n":
        index += 1
    return index


def _read_string(text: _Source, start: int) -> tuple[str, int]:
    source = text.text
    index = start + 1
    result: list[str] = []

    while index < len(source):
        char = source[index]
        if char == '"':
            return "".join(result), index + 1
        if char == "\\" and index + 1 < len(source):
            following = source[index + 1]
            if following in {'"', "\\"}:
                result.append(following)
                index += 2
                continue
            if following == "\n":
                index += 2
                continue
        result.append(char)
        index += 1

    raise text.error("Unterminated string literal", start)


def _read_identifier(source: str, index: int) -> tuple[str, int]:
    start = index
    index += 1
    while index < len(source) and _is_identifier_part(source[index]):
        index += 1
    return source[start:index], index


def _is_identifier_start(source: str, index: int) -> bool:
    char = source[index]
    if char == "-":
        following = source[index + 1 : index + 2]
        return following.isdigit() or following == "."
    return _is_identifier_part(char)


def _is_identifier_part(char: str) -> bool:
    return char.isalnum() or char in "_.#"
