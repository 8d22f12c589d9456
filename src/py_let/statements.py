"""Statement parser — sigils, names and operators.

A ``let`` statement starts with a *target* and an *operator*:

    $NAME      environment variable
    &name      option, global and (if it exists) local
    &g:name    global option only
    &l:name    local option only

followed by one of ``=``, ``.=``, ``+=``, ``-=``.  Everything after the
operator belongs to the value evaluator.

Names are read greedily from a fixed alphabet and stop silently at the
maximum name length.  Whatever name characters remain are left in the
input, where the next step (operator extraction for ``let``, the
trailing-character check for ``unlet``) reports them.
"""

from collections.abc import Iterator
from enum import Enum, StrEnum

from py_let.errors import ParseError, ParseErrorKind
from py_let.options import OPTION_NAME_CHARS, OPTION_NAME_FIRST_CHARS
from py_let.variables import ENV_NAME_CHARS, ENV_NAME_FIRST_CHARS, VAR_NAME_MAX


class VariableKind(Enum):
    """What a statement's target refers to."""

    ENV_VAR = "envvar"
    ANY_OPTION = "option"
    GLOBAL_OPTION = "global-option"
    LOCAL_OPTION = "local-option"

    @property
    def is_option(self) -> bool:
        """Return True for the three option kinds."""
        return self is not VariableKind.ENV_VAR


class Operator(StrEnum):
    """Statement operators, valued by their spelling."""

    ASSIGN = "="
    APPEND = ".="
    ADD = "+="
    SUBTRACT = "-="


_OPERATOR_LEADS: dict[str, Operator] = {
    ".": Operator.APPEND,
    "+": Operator.ADD,
    "-": Operator.SUBTRACT,
}

_SCOPE_PREFIXES: dict[str, VariableKind] = {
    "g:": VariableKind.GLOBAL_OPTION,
    "l:": VariableKind.LOCAL_OPTION,
}


def _take(text: str, alphabet: str, limit: int) -> tuple[str, str]:
    """Split off the longest prefix of *text* drawn from *alphabet*, up to *limit*."""
    end = 0
    while end < len(text) and end < limit and text[end] in alphabet:
        end += 1
    return text[:end], text[end:]


def parse_name(text: str, first: str, other: str, limit: int = VAR_NAME_MAX) -> tuple[str, str]:
    """Read a name of the form ``first {other}`` from the start of *text*.

    Returns:
        The name and the rest of the input.

    Raises:
        ParseError: EMPTY_NAME at end of input, INVALID_NAME if the
            first character is not in *first*.

    """
    if not text:
        raise ParseError(ParseErrorKind.EMPTY_NAME, "Unsupported variable name: empty name")
    if limit <= 0 or text[0] not in first:
        raise ParseError(ParseErrorKind.INVALID_NAME, "Incorrect variable name")
    tail, rest = _take(text[1:], other, limit - 1)
    return text[0] + tail, rest


def extract_name(text: str, *, name_max: int = VAR_NAME_MAX) -> tuple[VariableKind, str, str]:
    """Read the target of a ``let`` statement.

    Returns:
        ``(kind, name, rest)``.

    Raises:
        ParseError: For an unknown sigil or a bad/empty name.

    """
    if text.startswith("$"):
        name, rest = parse_name(text[1:], ENV_NAME_FIRST_CHARS, ENV_NAME_CHARS, name_max)
        return VariableKind.ENV_VAR, name, rest

    if text.startswith("&"):
        text = text[1:]
        kind = _SCOPE_PREFIXES.get(text[:2], VariableKind.ANY_OPTION)
        if kind is not VariableKind.ANY_OPTION:
            text = text[2:]
        name, rest = parse_name(text, OPTION_NAME_FIRST_CHARS, OPTION_NAME_CHARS, name_max)
        return kind, name, rest

    raise ParseError(ParseErrorKind.UNSUPPORTED_KIND, "Incorrect variable type")


def extract_operator(text: str) -> tuple[Operator, str]:
    """Read the operator at the start of *text*.

    Returns:
        ``(operator, rest)`` with the operator consumed.

    Raises:
        ParseError: MISSING_EQUALS if no ``=`` is where one must be.

    """
    operator = _OPERATOR_LEADS.get(text[:1])
    rest = text[1:] if operator is not None else text
    if not rest.startswith("="):
        msg = f"Incorrect :let statement: '=' expected at {rest}"
        raise ParseError(ParseErrorKind.MISSING_EQUALS, msg)
    return operator or Operator.ASSIGN, rest[1:]


def trailing_error() -> ParseError:
    """Return the error for unconsumed input after a ``let`` value."""
    return ParseError(
        ParseErrorKind.TRAILING_CHARACTERS, "Incorrect :let statement: trailing characters"
    )


def _split_token(text: str) -> tuple[str, str]:
    end = 0
    while end < len(text) and not text[end].isspace():
        end += 1
    return text[:end], text[end:]


def unlet_targets(text: str, *, name_max: int = VAR_NAME_MAX) -> Iterator[str | ParseError]:
    """Walk the tokens of an ``unlet`` statement.

    Yields each well-formed variable name, or a ``ParseError`` for a
    token that is wrong on its own (the caller records it and keeps
    going).

    Raises:
        ParseError: TRAILING_CHARACTERS when a name is followed by a
            non-whitespace character; nothing after it is processed.

    """
    rest = text.lstrip()
    while rest:
        if not rest.startswith("$"):
            token, rest = _split_token(rest)
            yield ParseError(
                ParseErrorKind.UNSUPPORTED_KIND, f"Unsupported variable type: {token}"
            )
            rest = rest.lstrip()
            continue

        name, rest = _take(rest[1:], ENV_NAME_CHARS, name_max)
        if rest and not rest[0].isspace():
            raise ParseError(ParseErrorKind.TRAILING_CHARACTERS, "Trailing characters")
        rest = rest.lstrip()

        if not name:
            yield ParseError(ParseErrorKind.EMPTY_NAME, "Unsupported variable name: empty name")
            continue
        yield name
