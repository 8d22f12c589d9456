"""The shell — command interpreter over a variable engine.

The shell reads a command string, splits off the command name, and
hands the rest of the line to a handler.  Handlers get the *raw* text
rather than a word list because ``let`` and ``echo`` parse expressions
that may contain quoted spaces.

Design choices:
    - **Returns strings, not prints.**  The caller decides how to
      display output, which keeps the shell fully testable.
    - **Command dispatch via a dict.**  Adding a command means writing
      a method and adding one dict entry.
    - **Errors become lines.**  Engine failures are exceptions inside
      the engine; the shell is the boundary that turns each one into a
      single ``Error: …`` line.
"""

import re
from collections.abc import Callable
from typing import TypeAlias

from py_let.config import PROJECT_NAME, VERSION
from py_let.engine import VariableEngine
from py_let.errors import OptionError, VariableError
from py_let.expressions import to_string
from py_let.logging import LogLevel
from py_let.options import Option, OptionScope, OptionType

# Type alias for a command handler: takes the argument text, returns output.
_Handler: TypeAlias = Callable[[str], str]

_SET_ASSIGNMENT = re.compile(r"^([a-z][A-Za-z0-9]*)([+-]?=)(.*)$")


class Shell:
    """Command interpreter attached to one variable engine."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, engine: VariableEngine) -> None:
        """Create a shell over *engine*.

        Args:
            engine: The engine whose variables and options the
                commands act on.  The caller owns its lifecycle.

        """
        self._engine = engine
        self._history: list[str] = []

        # Command dispatch table — maps command names to handler methods.
        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "let": self._cmd_let,
            "unlet": self._cmd_unlet,
            "echo": self._cmd_echo,
            "env": self._cmd_env,
            "set": self._cmd_set,
            "log": self._cmd_log,
            "history": self._cmd_history,
            "version": self._cmd_version,
            "exit": self._cmd_exit,
        }

    @property
    def engine(self) -> VariableEngine:
        """Return the engine this shell drives."""
        return self._engine

    @property
    def command_names(self) -> list[str]:
        """Return all command names, sorted."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one command line.

        Args:
            command: The raw command string (e.g. ``let $FOO = 'bar'``).

        Returns:
            The command output, an error message, or ``EXIT_SENTINEL``.

        """
        stripped = command.strip()
        if not stripped:
            return ""
        self._history.append(stripped)

        name, *rest = stripped.split(maxsplit=1)
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"
        return handler(rest[0] if rest else "")

    def run_script(self, script: str) -> list[str]:
        """Execute each non-blank, non-comment line of *script*."""
        results: list[str] = []
        for raw in script.splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            results.append(self.execute(line))
        return results

    # -- Command handlers ------------------------------------------------

    def _cmd_help(self, _args: str) -> str:
        """List available commands."""
        return "Available commands: " + ", ".join(self.command_names)

    def _cmd_let(self, args: str) -> str:
        """Assign to an environment variable or an option."""
        if not args:
            return "Usage: let $NAME = expr | let &[g:|l:]option = expr"
        try:
            self._engine.let(args)
        except VariableError as e:
            return f"Error: {e}"
        return ""

    def _cmd_unlet(self, args: str) -> str:
        """Remove environment variables."""
        if not args:
            return "Usage: unlet $NAME [$NAME ...]"
        result = self._engine.unlet(args)
        return "\n".join(f"Error: {message}" for message in result.messages())

    def _cmd_echo(self, args: str) -> str:
        """Evaluate an expression and print its value."""
        if not args:
            return ""
        try:
            return to_string(self._engine.evaluate(args))
        except VariableError as e:
            return f"Error: {e}"

    def _cmd_env(self, _args: str) -> str:
        """List visible environment variables."""
        items = self._engine.registry.items()
        return "\n".join(f"{k}={v}" for k, v in sorted(items)) if items else "No variables set."

    def _cmd_set(self, args: str) -> str:
        """Show or change options (the only way to change booleans)."""
        options = self._engine.options
        if not args:
            return "\n".join(_describe(opt) for opt in options.options())

        output: list[str] = []
        for word in args.split():
            try:
                line = self._set_one(word)
            except VariableError as e:
                output.append(f"Error: {e}")
                continue
            if line:
                output.append(line)
        return "\n".join(output)

    def _set_one(self, word: str) -> str:
        """Apply one ``set`` argument; return text to show, if any."""
        options = self._engine.options
        match = _SET_ASSIGNMENT.match(word)
        if match is not None:
            name, operator, value = match.groups()
            for option in self._definitions(name):
                if operator == "+=":
                    options.add(option, value)
                elif operator == "-=":
                    options.remove(option, value)
                else:
                    options.set(option, value)
            return ""

        if word.endswith("?"):
            return _describe(self._definitions(word[:-1])[-1])

        option = options.lookup(word, OptionScope.GLOBAL)
        if option is not None and option.type is not OptionType.BOOL:
            return _describe(option)

        for prefix, value in (("no", "0"), ("inv", None), ("", "1")):
            if not word.startswith(prefix):
                continue
            option = options.lookup(word[len(prefix) :], OptionScope.GLOBAL)
            if option is None or option.type is not OptionType.BOOL:
                continue
            for definition in self._definitions(option.name):
                text = value if value is not None else ("0" if definition.value else "1")
                options.set(definition, text)
            return ""

        msg = f"Unknown option: {word}"
        raise OptionError(msg)

    def _definitions(self, name: str) -> list[Option]:
        """Return the local (if any) and global definitions of *name*."""
        options = self._engine.options
        found = [
            option
            for option in (
                options.lookup(name, OptionScope.LOCAL),
                options.lookup(name, OptionScope.GLOBAL),
            )
            if option is not None
        ]
        if not found:
            msg = f"Unknown option: {name}"
            raise OptionError(msg)
        return found

    def _cmd_log(self, args: str) -> str:
        """Show audit log entries, optionally from a minimum level up."""
        min_level: LogLevel | None = None
        if args:
            try:
                min_level = LogLevel[args.upper()]
            except KeyError:
                return f"Error: unknown log level '{args}'"
        entries = self._engine.logger.filter(min_level=min_level)
        return "\n".join(str(e) for e in entries) if entries else "No log entries."

    def _cmd_history(self, _args: str) -> str:
        """Show command history."""
        if not self._history:
            return "No history."
        return "\n".join(f"  {i + 1}  {cmd}" for i, cmd in enumerate(self._history))

    def _cmd_version(self, _args: str) -> str:
        """Show version and engine settings."""
        registry = self._engine.registry
        rule = "case-sensitive" if registry.case_sensitive else "case-insensitive"
        lines = [
            f"{PROJECT_NAME} {VERSION}",
            f"Variable names: {rule}, at most {self._engine.name_max} characters",
            f"Tracked variables: {len(registry)}",
        ]
        return "\n".join(lines)

    def _cmd_exit(self, _args: str) -> str:
        """Signal the caller to stop; the caller tears the engine down."""
        return self.EXIT_SENTINEL


def _describe(option: Option) -> str:
    """Format an option the way ``set`` shows it."""
    if option.type is OptionType.BOOL:
        return f"  {option.name}" if option.value else f"no{option.name}"
    return f"  {option.name}={option.format()}"
