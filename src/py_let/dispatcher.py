"""Operation dispatcher — operator validation and execution.

Which operators a target accepts depends on what it is:

    ===============  ===  ====  ====  ====
    target           =    .=    +=    -=
    ===============  ===  ====  ====  ====
    $ENV             yes  yes   no    no
    bool option      no   no    no    no
    string option    yes  yes   no    no
    other option     yes  no    yes   yes
    unknown option   yes  yes   yes   yes
    ===============  ===  ====  ====  ====

Options are classified by their *global* definition whatever scope the
statement names.  An unknown option passes validation; execution then
reports it against the scope that was actually required.

Boolean options reject every operator, plain assignment included:
booleans are toggled with ``set`` and never through ``let``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from py_let.errors import AllocationError, UnknownOptionError
from py_let.options import Option, OptionKind, OptionScope, OptionStore
from py_let.statements import Operator, VariableKind

if TYPE_CHECKING:
    from py_let.env import Environment
    from py_let.logging import Logger
    from py_let.variables import VariableRegistry

_SOURCE = "engine"

_ENV_OPERATORS = frozenset([Operator.ASSIGN, Operator.APPEND])
_STRING_OPERATORS = frozenset([Operator.ASSIGN, Operator.APPEND])
_OTHER_OPERATORS = frozenset([Operator.ASSIGN, Operator.ADD, Operator.SUBTRACT])


def validate(kind: VariableKind, operator: Operator, name: str, options: OptionStore) -> bool:
    """Return True if *operator* may be applied to the target."""
    if kind is VariableKind.ENV_VAR:
        return operator in _ENV_OPERATORS

    option = options.lookup(name, OptionScope.GLOBAL)
    if option is None:
        return True

    match option.kind:
        case OptionKind.BOOL:
            return False
        case OptionKind.STRING:
            return operator in _STRING_OPERATORS
        case OptionKind.OTHER:
            return operator in _OTHER_OPERATORS


class OperationDispatcher:
    """Apply validated operations to variables and options."""

    def __init__(
        self,
        *,
        registry: VariableRegistry,
        environment: Environment,
        options: OptionStore,
        logger: Logger | None = None,
    ) -> None:
        """Create a dispatcher over the given stores.

        Args:
            registry: Environment-variable records.
            environment: The table every variable change is mirrored to.
            options: Global/local option definitions.
            logger: Optional audit log.

        """
        self._registry = registry
        self._environment = environment
        self._options = options
        self._logger = logger

    def execute(self, kind: VariableKind, operator: Operator, name: str, value: str) -> None:
        """Perform *operator* on the target with the string *value*.

        Raises:
            AllocationError: If a new variable record cannot be created.
            UnknownOptionError: If a required option scope is missing.
            OptionError: If the option store rejects the value.

        """
        if kind is VariableKind.ENV_VAR:
            if operator is Operator.APPEND:
                self._append_env(name, value)
            else:
                self._set_env(name, value)
            return

        if kind in (VariableKind.ANY_OPTION, VariableKind.LOCAL_OPTION):
            # A missing local definition only matters when l: was explicit.
            required = kind is VariableKind.LOCAL_OPTION
            self._apply_option(name, OptionScope.LOCAL, operator, value, required=required)
        if kind in (VariableKind.ANY_OPTION, VariableKind.GLOBAL_OPTION):
            self._apply_option(name, OptionScope.GLOBAL, operator, value, required=True)

    # -- environment variables ----------------------------------------------

    def _set_env(self, name: str, value: str) -> None:
        try:
            record = self._registry.get_or_create(name)
        except AllocationError:
            self._log_error(f"cannot create {name}: not enough memory")
            raise
        record.value = value
        record.removed = False
        self._environment.set(record.name, value)
        self._log(f"set ${name}")

    def _append_env(self, name: str, value: str) -> None:
        record = self._registry.find(name)
        if record is None or record.removed:
            self._set_env(name, value)
            return
        record.value += value
        self._environment.set(record.name, record.value)
        self._log(f"appended to ${name}")

    # -- options ------------------------------------------------------------

    def _apply_option(
        self,
        name: str,
        scope: OptionScope,
        operator: Operator,
        value: str,
        *,
        required: bool,
    ) -> None:
        option = self._options.lookup(name, scope)
        if option is None:
            if not required:
                return
            raise UnknownOptionError(name, scope.value)
        self._mutate(option, operator, value)
        self._log(f"{scope.value} option {name} {operator.value} {value!r}")

    def _mutate(self, option: Option, operator: Operator, value: str) -> None:
        match operator:
            case Operator.ASSIGN:
                self._options.set(option, value)
            case Operator.ADD | Operator.APPEND:
                self._options.add(option, value)
            case Operator.SUBTRACT:
                self._options.remove(option, value)

    def _log(self, message: str) -> None:
        if self._logger is not None:
            self._logger.debug(message, source=_SOURCE)

    def _log_error(self, message: str) -> None:
        if self._logger is not None:
            self._logger.error(message, source=_SOURCE)
