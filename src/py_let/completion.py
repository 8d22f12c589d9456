"""Completion provider for variable names.

Given the variable token of a statement (``$PA``, ``&tab``, …) the
provider fills a ``CompletionList``:

    - ``$`` tokens get every visible registry name starting with the
      typed prefix, in registry order, then the typed text itself as a
      final fallback so cycling through the candidates returns to what
      the user wrote.
    - Anything else gets exactly one candidate: the text unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_let.variables import VariableRegistry


class CompletionList:
    """Collects candidates in groups, followed by an optional fallback.

    Attributes:
        start: Offset into the completed text where group candidates
            begin (1 after a ``$`` sigil, else 0).

    """

    def __init__(self) -> None:
        """Create an empty list."""
        self.start = 0
        self._candidates: list[str] = []
        self._group_start = 0
        self._groups: list[list[str]] = []
        self._fallback: str | None = None

    def add_candidate(self, text: str) -> None:
        """Add *text* to the current group."""
        self._candidates.append(text)

    def end_group(self) -> None:
        """Close the current group of candidates."""
        self._groups.append(self._candidates[self._group_start :])
        self._group_start = len(self._candidates)

    def add_fallback(self, text: str) -> None:
        """Append the final candidate that restores the original input."""
        self._fallback = text

    @property
    def groups(self) -> list[list[str]]:
        """Return the closed groups."""
        return [list(group) for group in self._groups]

    @property
    def fallback(self) -> str | None:
        """Return the fallback candidate, if any."""
        return self._fallback

    @property
    def candidates(self) -> list[str]:
        """Return all candidates in order, fallback last."""
        result = list(self._candidates)
        if self._fallback is not None:
            result.append(self._fallback)
        return result

    def __len__(self) -> int:
        """Return the number of candidates, fallback included."""
        return len(self.candidates)


def complete_variables(text: str, registry: VariableRegistry) -> CompletionList:
    """Complete the variable token *text* against *registry*."""
    completions = CompletionList()
    if not text.startswith("$"):
        completions.add_candidate(text)
        return completions

    completions.start = 1
    for name in registry.names(text[1:]):
        completions.add_candidate(name)
    completions.end_group()
    completions.add_fallback(text)
    return completions
