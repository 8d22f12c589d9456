"""Variable registry — tracked environment-variable records.

The registry remembers every environment variable the engine knows
about: the ones inherited from the parent process at startup and the
ones created later by ``let $NAME = …``.  It owns the rules that keep
the OS environment honest:

    - **Inherited records are permanent.**  Removing one only marks it
      as *removed* (a tombstone) so its startup value can be written
      back at teardown.
    - **Invented records are erased.**  Removing a record that was not
      inherited frees its slot outright.
    - **Teardown restores.**  Inherited names get their startup value
      back, invented names are unset, then the registry empties.

Storage is a list of slots.  An erased record leaves ``None`` behind,
and the next new record reuses the first free slot, so iteration order
(which completion exposes) is slot order.

Name comparison follows the host platform: case-sensitive on POSIX,
case-insensitive on Windows.  The same rule is used for creation,
lookup, prefix matching and removal.
"""

from __future__ import annotations

import os
import string
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from py_let.errors import AllocationError

if TYPE_CHECKING:
    from py_let.env import Environment
    from py_let.logging import Logger

# Longest variable name kept; longer names are truncated, not rejected.
VAR_NAME_MAX = 64

# Environment-variable name alphabet.
ENV_NAME_FIRST_CHARS = string.ascii_letters + "_"
ENV_NAME_CHARS = string.ascii_letters + string.digits + "_"

_SOURCE = "registry"


def platform_case_sensitive() -> bool:
    """Return True when the host compares environment names case-sensitively."""
    return os.name != "nt"


@dataclass
class EnvRecord:
    """One tracked environment variable.

    Attributes:
        name: The variable name.
        value: The current value seen by ``read``.
        initial: The value inherited at startup (inherited records only).
        inherited: True if the name existed before the engine started.
        removed: Tombstone flag; only ever set on inherited records.

    """

    name: str
    value: str = ""
    initial: str = ""
    inherited: bool = False
    removed: bool = False


class VariableRegistry:
    """Slot-based store of ``EnvRecord`` objects."""

    def __init__(
        self,
        *,
        case_sensitive: bool | None = None,
        name_max: int = VAR_NAME_MAX,
        logger: Logger | None = None,
    ) -> None:
        """Create an empty registry.

        Args:
            case_sensitive: Name comparison rule; defaults to the
                platform's rule.
            name_max: Longest name kept by ``bootstrap``.
            logger: Optional audit log.

        """
        if case_sensitive is None:
            case_sensitive = platform_case_sensitive()
        self._case_sensitive = case_sensitive
        self._name_max = name_max
        self._logger = logger
        self._slots: list[EnvRecord | None] = []

    @property
    def case_sensitive(self) -> bool:
        """Return True if names compare case-sensitively."""
        return self._case_sensitive

    def _key(self, name: str) -> str:
        return name if self._case_sensitive else name.casefold()

    def _log(self, message: str) -> None:
        if self._logger is not None:
            self._logger.debug(message, source=_SOURCE)

    # -- lookup -------------------------------------------------------------

    def find(self, name: str) -> EnvRecord | None:
        """Return the live record for *name*, tombstoned or not.

        Never creates a record.
        """
        key = self._key(name)
        for record in self._slots:
            if record is not None and self._key(record.name) == key:
                return record
        return None

    def read(self, name: str) -> str:
        """Return the value of *name*, or ``""`` if unknown or removed."""
        record = self.find(name)
        if record is None or record.removed:
            return ""
        return record.value

    def names(self, prefix: str = "") -> list[str]:
        """Return visible names starting with *prefix*, in slot order."""
        key = self._key(prefix)
        return [
            record.name
            for record in self._slots
            if record is not None
            and not record.removed
            and self._key(record.name).startswith(key)
        ]

    def items(self) -> list[tuple[str, str]]:
        """Return ``(name, value)`` for every visible record."""
        return [
            (record.name, record.value)
            for record in self._slots
            if record is not None and not record.removed
        ]

    # -- mutation -----------------------------------------------------------

    def get_or_create(self, name: str) -> EnvRecord:
        """Return the live record for *name*, creating it if needed.

        A new record goes into the first free slot, or a new slot at
        the end.

        Raises:
            AllocationError: If the record cannot be built.  The
                registry is left exactly as it was.

        """
        key = self._key(name)
        free: int | None = None
        for index, record in enumerate(self._slots):
            if record is None:
                if free is None:
                    free = index
            elif self._key(record.name) == key:
                return record

        try:
            record = EnvRecord(name=name)
        except MemoryError as e:
            raise AllocationError from e

        if free is None:
            self._slots.append(record)
        else:
            self._slots[free] = record
        self._log(f"created {name}")
        return record

    def discard(self, record: EnvRecord) -> None:
        """Remove *record*: tombstone it if inherited, else erase it."""
        if record.inherited:
            record.removed = True
            self._log(f"tombstoned {record.name}")
            return
        for index, slot in enumerate(self._slots):
            if slot is record:
                self._slots[index] = None
                self._log(f"erased {record.name}")
                return

    # -- lifecycle ----------------------------------------------------------

    def bootstrap(self, entries: Iterable[str]) -> None:
        """Load the inherited environment.

        Each entry is a ``NAME=VALUE`` string.  Names longer than the
        limit are truncated.  A malformed entry, or one whose record
        cannot be built, is dropped and the rest still load.
        """
        loaded = 0
        for entry in entries:
            name, sep, value = entry.partition("=")
            if not sep or not name:
                self._warn(f"skipping malformed entry {entry!r}")
                continue
            name = name[: self._name_max]
            try:
                record = self.get_or_create(name)
            except AllocationError:
                self._warn(f"dropping {name}: not enough memory")
                continue
            record.inherited = True
            record.initial = value
            record.value = value
            loaded += 1
        if self._logger is not None:
            self._logger.info(f"bootstrapped {loaded} variables", source=_SOURCE)

    def teardown(self, bridge: Environment) -> None:
        """Restore or unset every live name in *bridge*, then empty."""
        for record in self._slots:
            if record is None:
                continue
            if record.inherited:
                bridge.set(record.name, record.initial)
            else:
                bridge.unset(record.name)
        count = len(self)
        self._slots.clear()
        if self._logger is not None:
            self._logger.info(f"restored environment ({count} records)", source=_SOURCE)

    def _warn(self, message: str) -> None:
        if self._logger is not None:
            self._logger.warning(message, source=_SOURCE)

    # -- container protocol -------------------------------------------------

    def __iter__(self) -> Iterator[EnvRecord]:
        """Iterate over live records (tombstoned included) in slot order."""
        return (record for record in self._slots if record is not None)

    def __len__(self) -> int:
        """Return the number of live records, tombstoned included."""
        return sum(1 for record in self._slots if record is not None)

    @property
    def slot_count(self) -> int:
        """Return the number of slots, free ones included."""
        return len(self._slots)
