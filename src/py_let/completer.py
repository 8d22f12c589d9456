"""Context-aware tab completer for the py-let shell.

The completer separates **what to complete** (pure logic, fully
testable) from **how to wire it** (readline integration in the REPL).

The ``complete(text, state)`` method is the readline callback.  It
delegates to ``completions(text, line)`` which looks at the command
being typed and returns a list of candidate strings.
"""

from __future__ import annotations

import readline
from typing import TYPE_CHECKING

from py_let.options import OptionScope

if TYPE_CHECKING:
    from py_let.shell import Shell

# Commands whose arguments name variables.
_VARIABLE_COMMANDS: frozenset[str] = frozenset(["let", "unlet", "echo"])


class Completer:
    """Context-aware tab completer for the py-let shell."""

    def __init__(self, shell: Shell) -> None:
        """Create a completer attached to a shell instance.

        Args:
            shell: The shell whose commands and engine are used to
                generate completion candidates.

        """
        self._shell = shell

    def complete(self, text: str, state: int) -> str | None:
        """Readline callback — return the *state*-th candidate for *text*.

        Args:
            text: The partial word being completed.
            state: Index into the candidate list (0, 1, 2, …).

        Returns:
            The candidate at *state*, or ``None`` when exhausted.

        """
        line = readline.get_line_buffer()
        candidates = self.completions(text, line)
        if state < len(candidates):
            return candidates[state]
        return None

    def completions(self, text: str, line: str) -> list[str]:
        """Return completion candidates based on context.

        Args:
            text: The partial word under the cursor.
            line: The full input line so far.

        Returns:
            Candidate replacements for *text*.

        """
        words = line.lstrip().split()

        # No words yet, or still typing the first word → command completion
        if not words or (len(words) == 1 and not line.endswith(" ")):
            return [cmd for cmd in self._shell.command_names if cmd.startswith(text)]

        cmd = words[0]
        if cmd in _VARIABLE_COMMANDS:
            return self._complete_variable(cmd, text)
        if cmd == "set":
            return self._complete_options(text)
        return []

    # -- private completers ------------------------------------------------

    def _complete_variable(self, cmd: str, text: str) -> list[str]:
        """Complete a ``$NAME`` token, keeping the sigil on every match."""
        if cmd == "unlet" and not text:
            text = "$"
        if cmd != "let" and not text.startswith("$"):
            return []
        result = self._shell.engine.complete(text)
        sigil = text[: result.start]
        candidates = [sigil + name for group in result.groups for name in group]
        if result.fallback is not None:
            candidates.append(result.fallback)
        return candidates if result.start else result.candidates

    def _complete_options(self, text: str) -> list[str]:
        """Complete option names after ``set``."""
        options = self._shell.engine.options.options(OptionScope.GLOBAL)
        return [opt.name for opt in options if opt.name.startswith(text)]
