"""Errors raised by the variable engine.

Every failure the engine can report derives from ``VariableError``.
The shell catches that one type and turns it into a single diagnostic
line, so callers only ever handle one user-facing exception.
The message of each exception *is* that diagnostic line.
"""

from enum import StrEnum


class VariableError(Exception):
    """Base class for every failure reported by the engine."""


class ParseErrorKind(StrEnum):
    """What went wrong while tokenizing a statement."""

    UNSUPPORTED_KIND = "unsupported-kind"
    INVALID_NAME = "invalid-name"
    EMPTY_NAME = "empty-name"
    MISSING_EQUALS = "missing-equals"
    TRAILING_CHARACTERS = "trailing-characters"


class ParseError(VariableError):
    """Raised when a statement is lexically malformed."""

    def __init__(self, kind: ParseErrorKind, message: str) -> None:
        """Create a parse error of the given *kind*."""
        super().__init__(message)
        self.kind = kind


class ExpressionErrorKind(StrEnum):
    """Failure classes of the value evaluator."""

    INVALID_EXPRESSION = "invalid-expression"
    INVALID_SUBEXPRESSION = "invalid-subexpression"
    MISSING_QUOTE = "missing-quote"
    INTERNAL = "internal"


_EXPRESSION_MESSAGES: dict[ExpressionErrorKind, str] = {
    ExpressionErrorKind.INVALID_EXPRESSION: "Invalid expression",
    ExpressionErrorKind.INVALID_SUBEXPRESSION: "Invalid subexpression",
    ExpressionErrorKind.MISSING_QUOTE: "Invalid :let expression (missing quote)",
    ExpressionErrorKind.INTERNAL: "Internal error",
}


class ExpressionError(VariableError):
    """Raised when the right-hand side of a statement cannot be evaluated.

    Attributes:
        kind: The failure class.
        position: The unparsed text at the point of failure.

    """

    def __init__(self, kind: ExpressionErrorKind, position: str) -> None:
        """Create an evaluator error pointing at *position*."""
        label = _EXPRESSION_MESSAGES[kind]
        message = label if kind is ExpressionErrorKind.INTERNAL else f"{label}: {position}"
        super().__init__(message)
        self.kind = kind
        self.position = position


class OperatorTypeError(VariableError):
    """Raised when an operator does not apply to the target's kind."""

    def __init__(self) -> None:
        """Create the error with its fixed message."""
        super().__init__("Wrong variable type for this operation")


class UnknownOptionError(VariableError):
    """Raised when the required scope has no definition for an option."""

    def __init__(self, name: str, scope: str) -> None:
        """Create the error for option *name* in *scope*."""
        super().__init__(f"Unknown {scope} option name: {name}")
        self.name = name
        self.scope = scope


class AllocationError(VariableError):
    """Raised when a record or its value cannot be allocated."""

    def __init__(self) -> None:
        """Create the error with its fixed message."""
        super().__init__("Not enough memory")


class NotFoundError(VariableError):
    """Raised when an ``unlet`` target is absent or already removed."""

    def __init__(self, name: str) -> None:
        """Create the error for variable *name*."""
        super().__init__(f"No such variable: {name}")
        self.name = name


class OptionError(VariableError):
    """Raised when the option store rejects a value or an operation."""
