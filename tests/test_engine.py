"""Tests for the variable engine.

These exercise whole statements: ``let`` through parse, evaluate,
validate and execute; ``unlet`` with per-token and fatal errors; and
the bootstrap/teardown lifecycle against an environment table.
"""

import pytest

from py_let import variables
from py_let.engine import VariableEngine
from py_let.env import Environment
from py_let.errors import (
    AllocationError,
    ExpressionError,
    NotFoundError,
    OperatorTypeError,
    OptionError,
    ParseError,
    ParseErrorKind,
    UnknownOptionError,
)
from py_let.options import OptionScope, OptionStore, OptionType
from py_let.variables import VAR_NAME_MAX, EnvRecord


def _options() -> OptionStore:
    """Create a small option table."""
    store = OptionStore()
    store.define("flag", OptionType.BOOL, True)
    store.define("title", OptionType.STRING, "", local=True)
    store.define("tabstop", OptionType.INT, 8, local=True)
    store.define("history", OptionType.INT, 15)
    return store


def _engine(initial: dict[str, str] | None = None) -> VariableEngine:
    """Create a bootstrapped engine over an in-memory table."""
    engine = VariableEngine(
        environment=Environment(initial), options=_options(), case_sensitive=True
    )
    engine.bootstrap()
    return engine


def _option(engine: VariableEngine, name: str, scope: OptionScope) -> object:
    """Return the value of option *name* in *scope*."""
    option = engine.options.lookup(name, scope)
    assert option is not None
    return option.value


class TestLetEnv:
    """Verify let on environment variables."""

    def test_assign(self) -> None:
        """let $FOO = "bar" should set the record and the table."""
        engine = _engine()
        engine.let('$FOO = "bar"')
        assert engine.read("FOO") == "bar"
        assert engine.environment.get("FOO") == "bar"

    def test_append(self) -> None:
        """let $FOO .= "b" should append."""
        engine = _engine()
        engine.let('$FOO = "a"')
        engine.let('$FOO .= "b"')
        assert engine.read("FOO") == "ab"

    def test_no_whitespace_needed(self) -> None:
        """Whitespace around the operator is optional."""
        engine = _engine()
        engine.let("$FOO=1")
        assert engine.read("FOO") == "1"

    def test_value_from_other_variable(self) -> None:
        """The right-hand side can read other variables."""
        engine = _engine({"HOME": "/root"})
        engine.let("$BIN = $HOME . '/bin'")
        assert engine.read("BIN") == "/root/bin"

    def test_read_unknown(self) -> None:
        """Reading a name never assigned gives '' and never fails."""
        assert _engine().read("UNSET") == ""

    @pytest.mark.parametrize("operator", ["+=", "-="])
    def test_numeric_operators_rejected(self, operator: str) -> None:
        """'+=' and '-=' are not for environment variables."""
        engine = _engine()
        with pytest.raises(OperatorTypeError, match="Wrong variable type"):
            engine.let(f"$FOO {operator} 1")
        assert engine.registry.find("FOO") is None

    def test_assign_revives_tombstone(self) -> None:
        """Assigning after unlet makes an inherited name visible again."""
        engine = _engine({"PATH": "/bin"})
        engine.unlet("$PATH")
        engine.let("$PATH = '/opt'")
        assert engine.read("PATH") == "/opt"
        engine.teardown()
        assert engine.environment.get("PATH") == "/bin"

    def test_allocation_failure_is_reported(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A record that cannot be allocated is an error, not a crash."""
        engine = _engine()

        def _no_memory(**_kwargs: object) -> EnvRecord:
            raise MemoryError

        monkeypatch.setattr(variables, "EnvRecord", _no_memory)
        with pytest.raises(AllocationError):
            engine.let("$FOO = 'x'")
        assert len(engine.registry) == 0
        assert engine.environment.get("FOO") is None


class TestLetErrors:
    """Verify that let stops at the first failure."""

    def test_unsupported_kind(self) -> None:
        """A target without a sigil is rejected."""
        with pytest.raises(ParseError, match="Incorrect variable type"):
            _engine().let("FOO = 1")

    def test_missing_equals(self) -> None:
        """A target without an operator is rejected."""
        with pytest.raises(ParseError) as info:
            _engine().let("$FOO 'x'")
        assert info.value.kind is ParseErrorKind.MISSING_EQUALS

    def test_bad_expression(self) -> None:
        """An unterminated string is an evaluator error."""
        with pytest.raises(ExpressionError, match="missing quote"):
            _engine().let("$FOO = 'x")

    def test_trailing_characters(self) -> None:
        """Anything after the value is rejected and nothing changes."""
        engine = _engine()
        with pytest.raises(ParseError, match="trailing characters") as info:
            engine.let("$FOO = 'x' 'y'")
        assert info.value.kind is ParseErrorKind.TRAILING_CHARACTERS
        assert engine.registry.find("FOO") is None

    def test_overlong_name(self) -> None:
        """A name past the limit leaves characters where '=' should be."""
        engine = _engine()
        with pytest.raises(ParseError) as info:
            engine.let("$" + "X" * (VAR_NAME_MAX + 1) + " = 1")
        assert info.value.kind is ParseErrorKind.MISSING_EQUALS

    def test_name_at_limit(self) -> None:
        """A name exactly at the limit is fine."""
        engine = _engine()
        name = "X" * VAR_NAME_MAX
        engine.let(f"${name} = 1")
        assert engine.read(name) == "1"


class TestLetOptions:
    """Verify let on options."""

    def test_bool_option_cannot_be_assigned(self) -> None:
        """Even '=' is refused for booleans; use 'set' instead."""
        engine = _engine()
        with pytest.raises(OperatorTypeError):
            engine.let("&flag = 0")
        assert _option(engine, "flag", OptionScope.GLOBAL) is True

    def test_any_scope_global_only(self) -> None:
        """&name with only a global definition changes only the global value."""
        engine = _engine()
        engine.let("&history = 50")
        assert _option(engine, "history", OptionScope.GLOBAL) == 50  # noqa: PLR2004
        assert engine.options.lookup("history", OptionScope.LOCAL) is None

    def test_any_scope_both(self) -> None:
        """&name with a local override changes both definitions."""
        engine = _engine()
        engine.let("&tabstop += 2")
        assert _option(engine, "tabstop", OptionScope.LOCAL) == 10  # noqa: PLR2004
        assert _option(engine, "tabstop", OptionScope.GLOBAL) == 10  # noqa: PLR2004

    def test_local_scope(self) -> None:
        """&l:name leaves the global value alone."""
        engine = _engine()
        engine.let("&l:title = 'here'")
        assert _option(engine, "title", OptionScope.LOCAL) == "here"
        assert _option(engine, "title", OptionScope.GLOBAL) == ""

    def test_string_append(self) -> None:
        """'.=' on a string option appends."""
        engine = _engine()
        engine.let("&g:title = 'a'")
        engine.let("&g:title .= 'b'")
        assert _option(engine, "title", OptionScope.GLOBAL) == "ab"

    def test_unknown_option(self) -> None:
        """An unknown option is reported against the global scope."""
        with pytest.raises(UnknownOptionError, match="Unknown global option name: nope"):
            _engine().let("&nope = 1")

    def test_no_global_definition(self) -> None:
        """A local definition alone is not enough for &name."""
        engine = _engine()
        engine.options._scopes[OptionScope.GLOBAL].pop("tabstop")
        with pytest.raises(UnknownOptionError, match="global"):
            engine.let("&tabstop = 3")

    def test_option_store_rejection(self) -> None:
        """A value the store cannot take is an option error."""
        with pytest.raises(OptionError, match="Invalid number"):
            _engine().let("&history = 'many'")

    def test_option_reference_on_right(self) -> None:
        """The right-hand side can read option values."""
        engine = _engine()
        engine.let("$TS = &tabstop")
        assert engine.read("TS") == "8"


class TestUnlet:
    """Verify unlet."""

    def test_inherited_name(self) -> None:
        """An inherited name reads empty, leaves the table, comes back at teardown."""
        engine = _engine({"PATH": "/bin"})
        result = engine.unlet("$PATH")
        assert result.ok
        assert result.removed == ["PATH"]
        assert engine.read("PATH") == ""
        assert engine.environment.get("PATH") is None
        engine.teardown()
        assert engine.environment.get("PATH") == "/bin"

    def test_invented_name(self) -> None:
        """A runtime name is erased and leaves no trace at teardown."""
        engine = _engine()
        engine.let("$SCRATCH = 'x'")
        engine.unlet("$SCRATCH")
        assert engine.registry.find("SCRATCH") is None
        engine.teardown()
        assert engine.environment.get("SCRATCH") is None

    def test_unknown_name(self) -> None:
        """An unknown name is a per-token error."""
        result = _engine().unlet("$NOPE")
        assert result.error_count == 1
        assert isinstance(result.errors[0], NotFoundError)
        assert result.messages() == ["No such variable: NOPE"]

    def test_already_removed(self) -> None:
        """Removing twice reports the second time."""
        engine = _engine({"PATH": "/bin"})
        engine.unlet("$PATH")
        result = engine.unlet("$PATH")
        assert not result.ok
        assert isinstance(result.errors[0], NotFoundError)

    def test_errors_accumulate(self) -> None:
        """Bad tokens are counted and good ones still processed."""
        engine = _engine({"A": "1", "B": "2"})
        result = engine.unlet("$A opt $NOPE $ $B")
        expected_errors = 3
        assert result.error_count == expected_errors
        assert result.removed == ["A", "B"]
        assert result.fatal is None

    def test_trailing_characters_abort(self) -> None:
        """A trailing-character error stops the statement."""
        engine = _engine({"A": "1", "B": "2", "C": "3"})
        result = engine.unlet("$A $B- $C")
        assert result.removed == ["A"]
        assert result.fatal is not None
        assert result.fatal.kind is ParseErrorKind.TRAILING_CHARACTERS
        assert engine.read("C") == "3"
        assert result.messages()[-1] == "Trailing characters"

    def test_failed_unlet_is_logged(self) -> None:
        """A statement with errors leaves a warning."""
        engine = _engine()
        engine.unlet("$NOPE")
        assert any("1 error" in e.message for e in engine.logger.filter(source="engine"))


class TestLifecycle:
    """Verify bootstrap and teardown through the engine."""

    def test_bootstrap_reads_table(self) -> None:
        """bootstrap() without arguments loads the environment table."""
        engine = _engine({"HOME": "/root"})
        record = engine.registry.find("HOME")
        assert record is not None
        assert record.inherited

    def test_teardown_restores_changed_value(self) -> None:
        """A changed inherited value is put back."""
        engine = _engine({"HOME": "/root"})
        engine.let("$HOME = '/tmp'")
        assert engine.environment.get("HOME") == "/tmp"
        engine.teardown()
        assert engine.environment.get("HOME") == "/root"
        assert len(engine.registry) == 0

    def test_teardown_removes_invented(self) -> None:
        """A runtime variable is removed from the table."""
        engine = _engine()
        engine.let("$NEW = 1")
        engine.teardown()
        assert engine.environment.get("NEW") is None


class TestCaseInsensitiveEngine:
    """Verify the case rule on a Windows-like host."""

    def test_names_match_any_case(self) -> None:
        """Set, read, unlet and complete agree on Path == PATH."""
        engine = VariableEngine(environment=Environment({"Path": "C:\\"}), case_sensitive=False)
        engine.bootstrap()
        engine.let("$PATH .= 'bin'")
        assert engine.read("path") == "C:\\bin"
        assert engine.environment.get("Path") == "C:\\bin"
        assert engine.complete("$pa").candidates == ["Path", "$pa"]
        assert engine.unlet("$PATH").ok
        assert engine.read("Path") == ""


class TestEvaluate:
    """Verify whole-expression evaluation used by echo."""

    def test_value(self) -> None:
        """A complete expression gives its value."""
        engine = _engine({"A": "x"})
        assert engine.evaluate("$A . 'y'") == "xy"

    def test_trailing(self) -> None:
        """Leftovers are an error."""
        with pytest.raises(ParseError):
            _engine().evaluate("'a' 'b'")
