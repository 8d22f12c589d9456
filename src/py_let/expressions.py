"""Value evaluator — the right-hand side of ``let`` statements.

A deliberately small expression language:

    expr  := term { '.' term }
    term  := 'single quoted'        ('' stands for one quote)
           | "double quoted"        (\\n \\t \\\\ \\" escapes)
           | [-]digits              integer
           | $NAME                  environment variable
           | &name                  global option value
           | ( expr )

The dot concatenates the string forms of its operands.  Evaluation
stops at the first character that cannot continue the expression; the
caller gets that remainder back and decides whether it is an error.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

from py_let.errors import ExpressionError, ExpressionErrorKind
from py_let.options import OPTION_NAME_CHARS, OPTION_NAME_FIRST_CHARS
from py_let.variables import ENV_NAME_CHARS, ENV_NAME_FIRST_CHARS

Value: TypeAlias = str | int
EnvReader: TypeAlias = Callable[[str], str]
OptionReader: TypeAlias = Callable[[str], bool | int | str | None]

_ESCAPES: dict[str, str] = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}


def to_string(value: Value) -> str:
    """Return the text form of an evaluated value."""
    return str(value)


def evaluate(
    text: str,
    getenv: EnvReader,
    getopt: OptionReader | None = None,
) -> tuple[Value, str]:
    """Evaluate the expression at the start of *text*.

    Args:
        text: Input beginning with an expression.
        getenv: Reads ``$NAME`` references; must never fail.
        getopt: Reads ``&name`` references; returns None when unknown.

    Returns:
        The value and the unconsumed remainder (leading whitespace
        stripped).

    Raises:
        ExpressionError: If no valid expression starts *text*.

    """
    parser = _Parser(text, getenv, getopt)
    value = parser.expression()
    return value, parser.rest()


class _Parser:
    """Recursive-descent evaluator over a single string."""

    def __init__(self, text: str, getenv: EnvReader, getopt: OptionReader | None) -> None:
        self._text = text
        self._pos = 0
        self._getenv = getenv
        self._getopt = getopt

    def rest(self) -> str:
        self._skip_whitespace()
        return self._text[self._pos :]

    def _peek(self, offset: int = 0) -> str:
        index = self._pos + offset
        return self._text[index] if index < len(self._text) else ""

    def _skip_whitespace(self) -> None:
        while self._peek() and self._peek().isspace():
            self._pos += 1

    def _fail(self, kind: ExpressionErrorKind, pos: int | None = None) -> ExpressionError:
        start = self._pos if pos is None else pos
        return ExpressionError(kind, self._text[start:])

    def expression(self) -> Value:
        self._skip_whitespace()
        value = self._term()
        while True:
            self._skip_whitespace()
            # ".=" is an operator, never a concatenation.
            if self._peek() != "." or self._peek(1) == "=":
                return value
            self._pos += 1
            self._skip_whitespace()
            value = to_string(value) + to_string(self._term())

    def _term(self) -> Value:
        ch = self._peek()
        if ch == "'":
            return self._single_quoted()
        if ch == '"':
            return self._double_quoted()
        if ch.isdigit() or (ch == "-" and self._peek(1).isdigit()):
            return self._number()
        if ch == "$":
            return self._env_reference()
        if ch == "&":
            return self._option_reference()
        if ch == "(":
            return self._group()
        raise self._fail(ExpressionErrorKind.INVALID_EXPRESSION)

    def _single_quoted(self) -> str:
        start = self._pos
        self._pos += 1
        chars: list[str] = []
        while True:
            ch = self._peek()
            if not ch:
                raise self._fail(ExpressionErrorKind.MISSING_QUOTE, start)
            self._pos += 1
            if ch == "'":
                if self._peek() != "'":
                    return "".join(chars)
                self._pos += 1
            chars.append(ch)

    def _double_quoted(self) -> str:
        start = self._pos
        self._pos += 1
        chars: list[str] = []
        while True:
            ch = self._peek()
            if not ch:
                raise self._fail(ExpressionErrorKind.MISSING_QUOTE, start)
            self._pos += 1
            if ch == '"':
                return "".join(chars)
            if ch == "\\" and self._peek():
                escaped = self._peek()
                self._pos += 1
                chars.append(_ESCAPES.get(escaped, escaped))
                continue
            chars.append(ch)

    def _number(self) -> int:
        start = self._pos
        self._pos += 1
        while self._peek().isdigit():
            self._pos += 1
        return int(self._text[start : self._pos])

    def _name(self, first: str, other: str) -> str:
        if not self._peek() or self._peek() not in first:
            raise self._fail(ExpressionErrorKind.INVALID_EXPRESSION)
        start = self._pos
        self._pos += 1
        while self._peek() and self._peek() in other:
            self._pos += 1
        return self._text[start : self._pos]

    def _env_reference(self) -> str:
        self._pos += 1
        return self._getenv(self._name(ENV_NAME_FIRST_CHARS, ENV_NAME_CHARS))

    def _option_reference(self) -> Value:
        start = self._pos
        self._pos += 1
        name = self._name(OPTION_NAME_FIRST_CHARS, OPTION_NAME_CHARS)
        value = self._getopt(name) if self._getopt is not None else None
        if value is None:
            raise self._fail(ExpressionErrorKind.INVALID_EXPRESSION, start)
        if isinstance(value, bool):
            return int(value)
        return value

    def _group(self) -> Value:
        start = self._pos
        self._pos += 1
        try:
            value = self.expression()
        except ExpressionError as e:
            if e.kind is ExpressionErrorKind.MISSING_QUOTE:
                raise
            raise self._fail(ExpressionErrorKind.INVALID_SUBEXPRESSION, start) from e
        self._skip_whitespace()
        if self._peek() != ")":
            raise self._fail(ExpressionErrorKind.INVALID_SUBEXPRESSION, start)
        self._pos += 1
        return value
