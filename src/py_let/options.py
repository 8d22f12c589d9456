"""Option store — typed configuration options in two scopes.

An option is a named, typed setting.  Every option has a *global*
definition; some also carry an independent *local* copy that overrides
the global one for the current context (think of a per-window tab
width).

Option types and what the three mutation primitives mean for each:

    ===========  =================  ====================  ===============
    type         set                add                   remove
    ===========  =================  ====================  ===============
    BOOL         yes/no/1/0/…       error                 error
    INT          integer            arithmetic ``+``      arithmetic ``-``
    STRING       any text           append text           error
    STRING_LIST  comma list         append new items      drop items
    ENUM         one of values      error                 error
    SET          items of values    add items             drop items
    ===========  =================  ====================  ===============

The statement language only needs a coarse view of the type, the
``OptionKind`` (bool, string, everything else), to decide which
operators are legal.
"""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from enum import Enum, StrEnum
from typing import TypeAlias

from py_let.errors import OptionError

# Alphabets used by the statement parser for ``&name``.
OPTION_NAME_FIRST_CHARS = string.ascii_lowercase
OPTION_NAME_CHARS = string.ascii_letters + string.digits

_TRUE_WORDS = frozenset(["1", "yes", "on", "true"])
_FALSE_WORDS = frozenset(["0", "no", "off", "false"])


class OptionKind(Enum):
    """Coarse classification of an option's value."""

    BOOL = "bool"
    STRING = "string"
    OTHER = "other"


class OptionType(StrEnum):
    """Concrete value type of an option."""

    BOOL = "bool"
    INT = "int"
    STRING = "string"
    STRING_LIST = "stringlist"
    ENUM = "enum"
    SET = "set"

    @property
    def kind(self) -> OptionKind:
        """Return the coarse kind used for operator validation."""
        if self is OptionType.BOOL:
            return OptionKind.BOOL
        if self is OptionType.STRING:
            return OptionKind.STRING
        return OptionKind.OTHER


class OptionScope(StrEnum):
    """The two partitions of the option store."""

    GLOBAL = "global"
    LOCAL = "local"


OptionValue: TypeAlias = bool | int | str


@dataclass
class Option:
    """One definition of an option in one scope.

    Attributes:
        name: Option name.
        type: Value type.
        value: Current value (bool, int or str depending on type).
        scope: Which partition this definition lives in.
        values: Allowed values for ENUM and SET options.

    """

    name: str
    type: OptionType
    value: OptionValue
    scope: OptionScope = OptionScope.GLOBAL
    values: tuple[str, ...] = field(default_factory=tuple)

    @property
    def kind(self) -> OptionKind:
        """Return the coarse kind of this option."""
        return self.type.kind

    def format(self) -> str:
        """Return the value as text."""
        if self.type is OptionType.BOOL:
            return "1" if self.value else "0"
        return str(self.value)


def _split_items(text: str) -> list[str]:
    """Split a comma list, dropping empties and duplicates, keeping order."""
    items: list[str] = []
    for item in text.split(","):
        if item and item not in items:
            items.append(item)
    return items


class OptionStore:
    """Global and local option definitions."""

    def __init__(self) -> None:
        """Create an empty store."""
        self._scopes: dict[OptionScope, dict[str, Option]] = {
            OptionScope.GLOBAL: {},
            OptionScope.LOCAL: {},
        }

    def define(
        self,
        name: str,
        option_type: OptionType,
        default: OptionValue,
        *,
        values: tuple[str, ...] = (),
        local: bool = False,
    ) -> Option:
        """Register an option and return its global definition.

        Args:
            name: Option name.
            option_type: Value type.
            default: Initial value for every scope it is defined in.
            values: Allowed values for ENUM/SET options.
            local: Also create an independent local definition.

        Raises:
            OptionError: If *name* is already defined.

        """
        if name in self._scopes[OptionScope.GLOBAL]:
            msg = f"Option already defined: {name}"
            raise OptionError(msg)
        scopes = [OptionScope.GLOBAL, OptionScope.LOCAL] if local else [OptionScope.GLOBAL]
        for scope in scopes:
            self._scopes[scope][name] = Option(
                name=name, type=option_type, value=default, scope=scope, values=values
            )
        return self._scopes[OptionScope.GLOBAL][name]

    def lookup(self, name: str, scope: OptionScope) -> Option | None:
        """Return the definition of *name* in *scope*, or None."""
        return self._scopes[scope].get(name)

    def options(self, scope: OptionScope = OptionScope.GLOBAL) -> list[Option]:
        """Return every definition in *scope*, sorted by name."""
        return sorted(self._scopes[scope].values(), key=lambda opt: opt.name)

    # -- mutation primitives ------------------------------------------------

    def set(self, option: Option, text: str) -> None:
        """Replace the value of *option* with *text*.

        Raises:
            OptionError: If *text* is not a valid value for the type.

        """
        match option.type:
            case OptionType.BOOL:
                option.value = self._parse_bool(option, text)
            case OptionType.INT:
                option.value = self._parse_int(option, text)
            case OptionType.STRING:
                option.value = text
            case OptionType.STRING_LIST:
                option.value = ",".join(_split_items(text))
            case OptionType.ENUM:
                if text not in option.values:
                    msg = f"Invalid value for {option.name}: {text}"
                    raise OptionError(msg)
                option.value = text
            case OptionType.SET:
                items = self._checked_items(option, text)
                option.value = ",".join(v for v in option.values if v in items)

    def add(self, option: Option, text: str) -> None:
        """Extend *option* by *text* (sum, concatenation or union).

        Raises:
            OptionError: If the type does not support adding.

        """
        match option.type:
            case OptionType.INT:
                option.value = int(option.value) + self._parse_int(option, text)
            case OptionType.STRING:
                option.value = f"{option.value}{text}"
            case OptionType.STRING_LIST:
                items = _split_items(str(option.value))
                items += [item for item in _split_items(text) if item not in items]
                option.value = ",".join(items)
            case OptionType.SET:
                items = set(_split_items(str(option.value))) | self._checked_items(option, text)
                option.value = ",".join(v for v in option.values if v in items)
            case OptionType.BOOL | OptionType.ENUM:
                self._unsupported(option, "+=")

    def remove(self, option: Option, text: str) -> None:
        """Shrink *option* by *text* (difference or item removal).

        Raises:
            OptionError: If the type does not support removal.

        """
        match option.type:
            case OptionType.INT:
                option.value = int(option.value) - self._parse_int(option, text)
            case OptionType.STRING_LIST:
                drop = set(_split_items(text))
                option.value = ",".join(
                    item for item in _split_items(str(option.value)) if item not in drop
                )
            case OptionType.SET:
                drop = self._checked_items(option, text)
                option.value = ",".join(
                    item for item in _split_items(str(option.value)) if item not in drop
                )
            case OptionType.BOOL | OptionType.STRING | OptionType.ENUM:
                self._unsupported(option, "-=")

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _parse_bool(option: Option, text: str) -> bool:
        word = text.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        msg = f"Invalid value for {option.name}: {text}"
        raise OptionError(msg)

    @staticmethod
    def _parse_int(option: Option, text: str) -> int:
        try:
            return int(text.strip())
        except ValueError as e:
            msg = f"Invalid number for {option.name}: {text}"
            raise OptionError(msg) from e

    @staticmethod
    def _checked_items(option: Option, text: str) -> set[str]:
        items = set(_split_items(text))
        unknown = sorted(items - set(option.values))
        if unknown:
            msg = f"Invalid value for {option.name}: {','.join(unknown)}"
            raise OptionError(msg)
        return items

    @staticmethod
    def _unsupported(option: Option, operator: str) -> None:
        msg = f"Operation {operator} is not supported by {option.name}"
        raise OptionError(msg)


def default_options() -> OptionStore:
    """Build the option table used by the shell."""
    store = OptionStore()
    store.define("hlsearch", OptionType.BOOL, True)
    store.define("shell", OptionType.STRING, "/bin/sh")
    store.define("tabstop", OptionType.INT, 8, local=True)
    store.define(
        "sortorder",
        OptionType.ENUM,
        "ascending",
        values=("ascending", "descending"),
        local=True,
    )
    store.define("cpoptions", OptionType.SET, "f,s", values=("f", "s", "t"))
    store.define("tags", OptionType.STRING_LIST, "tags")
    store.define("history", OptionType.INT, 15)
    store.define("title", OptionType.STRING, "", local=True)
    return store
