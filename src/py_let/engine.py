"""The variable engine — ``let``, ``unlet`` and completion.

The engine owns one variable registry, one environment table, one
option store and one audit log.  Nothing here is module-level state:
whoever runs the command loop creates an engine, calls ``bootstrap()``
once at startup and ``teardown()`` once at shutdown, and threads the
engine through everything in between.

A ``let`` statement runs through four stages and stops at the first
failure:

    1. **Parse** the target and the operator.
    2. **Evaluate** the right-hand side; leftovers are an error.
    3. **Validate** the operator against the target's kind.
    4. **Execute** against the registry or the option store.

An ``unlet`` statement keeps going past bad tokens and reports one
error per token, unless a token is malformed badly enough (trailing
characters) to abandon the rest of the statement.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from py_let.completion import CompletionList, complete_variables
from py_let.dispatcher import OperationDispatcher, validate
from py_let.env import Environment
from py_let.errors import (
    NotFoundError,
    OperatorTypeError,
    ParseError,
    ParseErrorKind,
    VariableError,
)
from py_let.expressions import Value, evaluate, to_string
from py_let.logging import Logger
from py_let.options import OptionScope, OptionStore
from py_let.statements import extract_name, extract_operator, trailing_error, unlet_targets
from py_let.variables import VAR_NAME_MAX, VariableRegistry

_SOURCE = "engine"


@dataclass
class UnletResult:
    """Outcome of one ``unlet`` statement.

    Attributes:
        removed: Names that were removed, in order.
        errors: One error per rejected token.
        fatal: The error that abandoned the statement, if any.

    """

    removed: list[str] = field(default_factory=lambda: [])  # noqa: PIE807
    errors: list[VariableError] = field(default_factory=lambda: [])  # noqa: PIE807
    fatal: ParseError | None = None

    @property
    def error_count(self) -> int:
        """Return the number of errors, the fatal one included."""
        return len(self.errors) + (1 if self.fatal is not None else 0)

    @property
    def ok(self) -> bool:
        """Return True when every token was removed."""
        return self.error_count == 0

    def messages(self) -> list[str]:
        """Return one diagnostic line per error, in order."""
        lines = [str(error) for error in self.errors]
        if self.fatal is not None:
            lines.append(str(self.fatal))
        return lines


class VariableEngine:
    """Interpreter for ``let``/``unlet`` over variables and options."""

    def __init__(
        self,
        *,
        environment: Environment | None = None,
        options: OptionStore | None = None,
        logger: Logger | None = None,
        case_sensitive: bool | None = None,
        name_max: int = VAR_NAME_MAX,
    ) -> None:
        """Create an engine.

        Args:
            environment: The table changes are mirrored to; a private
                in-memory table if omitted.
            options: The option store; empty if omitted.
            logger: Audit log; a fresh one if omitted.
            case_sensitive: Name comparison rule; platform default if None.
            name_max: Longest variable or option name.

        """
        self._environment = environment if environment is not None else Environment()
        self._options = options if options is not None else OptionStore()
        self._logger = logger if logger is not None else Logger()
        self._name_max = name_max
        self._registry = VariableRegistry(
            case_sensitive=case_sensitive, name_max=name_max, logger=self._logger
        )
        self._dispatcher = OperationDispatcher(
            registry=self._registry,
            environment=self._environment,
            options=self._options,
            logger=self._logger,
        )

    @property
    def registry(self) -> VariableRegistry:
        """Return the variable registry."""
        return self._registry

    @property
    def environment(self) -> Environment:
        """Return the environment table."""
        return self._environment

    @property
    def options(self) -> OptionStore:
        """Return the option store."""
        return self._options

    @property
    def logger(self) -> Logger:
        """Return the audit log."""
        return self._logger

    @property
    def name_max(self) -> int:
        """Return the longest accepted name."""
        return self._name_max

    # -- lifecycle ----------------------------------------------------------

    def bootstrap(self, entries: Iterable[str] | None = None) -> None:
        """Load inherited variables (from the environment table by default)."""
        self._registry.bootstrap(self._environment.entries() if entries is None else entries)

    def teardown(self) -> None:
        """Restore the environment table and empty the registry."""
        self._registry.teardown(self._environment)

    # -- accessors ----------------------------------------------------------

    def read(self, name: str) -> str:
        """Return the value of ``$name``; ``""`` when unknown or removed."""
        return self._registry.read(name)

    def read_option(self, name: str) -> bool | int | str | None:
        """Return the global value of option *name*, or None."""
        option = self._options.lookup(name, OptionScope.GLOBAL)
        return None if option is None else option.value

    def evaluate(self, text: str) -> Value:
        """Evaluate a complete expression.

        Raises:
            ExpressionError: If *text* does not start with an expression.
            ParseError: If anything follows the expression.

        """
        value, rest = evaluate(text, self.read, self.read_option)
        if rest:
            raise ParseError(ParseErrorKind.TRAILING_CHARACTERS, f"Trailing characters: {rest}")
        return value

    # -- statements ---------------------------------------------------------

    def let(self, text: str) -> None:
        """Execute a ``let`` statement (without the ``let`` keyword).

        Raises:
            VariableError: On the first failure; nothing is changed.

        """
        kind, name, rest = extract_name(text.lstrip(), name_max=self._name_max)
        operator, rest = extract_operator(rest.lstrip())
        value, rest = evaluate(rest, self.read, self.read_option)
        if rest:
            raise trailing_error()
        if not validate(kind, operator, name, self._options):
            raise OperatorTypeError
        self._dispatcher.execute(kind, operator, name, to_string(value))

    def unlet(self, text: str) -> UnletResult:
        """Execute an ``unlet`` statement (without the ``unlet`` keyword)."""
        result = UnletResult()
        try:
            for target in unlet_targets(text, name_max=self._name_max):
                if isinstance(target, ParseError):
                    result.errors.append(target)
                    continue
                record = self._registry.find(target)
                if record is None or record.removed:
                    result.errors.append(NotFoundError(target))
                    continue
                self._registry.discard(record)
                self._environment.unset(record.name)
                result.removed.append(record.name)
        except ParseError as e:
            result.fatal = e

        if not result.ok:
            self._logger.warning(
                f"unlet finished with {result.error_count} error(s)", source=_SOURCE
            )
        return result

    def complete(self, text: str) -> CompletionList:
        """Complete the variable token *text*."""
        return complete_variables(text, self._registry)
