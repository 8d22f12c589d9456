"""Environment bridge — the process environment table.

Every process carries a block of ``KEY=VALUE`` string pairs inherited
from its parent.  The variable registry mirrors each change it makes
into such a table, and restores the inherited entries at teardown.

Two implementations share one interface (``get``, ``set``, ``unset``,
``entries``):

    - ``Environment`` — a private in-memory table.  Used by the web UI
      and by tests, so nothing leaks into the real process.
    - ``OsEnvironment`` — the real table behind ``os.environ``.  Used by
      the interactive REPL.
"""

import os
from collections.abc import Mapping, MutableMapping


class Environment:
    """An in-memory environment table.

    Each instance is an independent copy — modifying one does not
    affect any other.
    """

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        """Create an environment, optionally pre-populated.

        Args:
            initial: Starting variables (copied, not referenced).

        """
        self._vars: MutableMapping[str, str] = dict(initial) if initial else {}

    def get(self, name: str) -> str | None:
        """Return the value for *name*, or None if not set."""
        return self._vars.get(name)

    def set(self, name: str, value: str) -> None:
        """Set *name* to *value* (creates or overwrites)."""
        self._vars[name] = value

    def unset(self, name: str) -> None:
        """Remove *name*; removing a missing name is not an error."""
        self._vars.pop(name, None)

    def entries(self) -> list[str]:
        """Return the table as ``NAME=VALUE`` strings, in insertion order."""
        return [f"{name}={value}" for name, value in self._vars.items()]

    def copy(self) -> "Environment":
        """Return an independent copy of this environment."""
        return Environment(initial=self._vars)

    def __len__(self) -> int:
        """Return the number of variables."""
        return len(self._vars)


class OsEnvironment(Environment):
    """The environment of the running process (``os.environ``).

    Reads and writes go straight to ``os.environ``; ``copy()`` still
    returns a detached in-memory ``Environment``.
    """

    def __init__(self) -> None:
        """Attach to ``os.environ``; no state is copied."""
        # os.environ is the table itself, so the in-memory setup is skipped.
        self._vars = os.environ
