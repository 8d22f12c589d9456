"""Tests for the option store.

Options are typed settings with a global definition and an optional
independent local one.  The store's set/add/remove primitives give
each type its own meaning for assignment, addition and removal.
"""

import pytest

from py_let.errors import OptionError
from py_let.options import (
    Option,
    OptionKind,
    OptionScope,
    OptionStore,
    OptionType,
    default_options,
)


def _store() -> OptionStore:
    """Create a store with one option of every type."""
    store = OptionStore()
    store.define("flag", OptionType.BOOL, False)
    store.define("count", OptionType.INT, 10, local=True)
    store.define("text", OptionType.STRING, "ab")
    store.define("items", OptionType.STRING_LIST, "a,b")
    store.define("mode", OptionType.ENUM, "on", values=("on", "off"))
    store.define("flags", OptionType.SET, "x", values=("x", "y", "z"))
    return store


def _get(store: OptionStore, name: str) -> Option:
    """Return the global definition of *name*, which must exist."""
    option = store.lookup(name, OptionScope.GLOBAL)
    assert option is not None
    return option


class TestOptionKind:
    """Verify the coarse classification."""

    def test_kinds(self) -> None:
        """BOOL and STRING keep their kind; the rest are OTHER."""
        assert OptionType.BOOL.kind is OptionKind.BOOL
        assert OptionType.STRING.kind is OptionKind.STRING
        for option_type in (
            OptionType.INT,
            OptionType.STRING_LIST,
            OptionType.ENUM,
            OptionType.SET,
        ):
            assert option_type.kind is OptionKind.OTHER


class TestDefine:
    """Verify registration and scopes."""

    def test_global_only(self) -> None:
        """Without local=True only the global scope is defined."""
        store = _store()
        assert store.lookup("text", OptionScope.LOCAL) is None
        assert store.lookup("text", OptionScope.GLOBAL) is not None

    def test_local_copy_is_independent(self) -> None:
        """The local definition should not share state with the global one."""
        store = _store()
        local = store.lookup("count", OptionScope.LOCAL)
        assert local is not None
        store.set(local, "3")
        assert _get(store, "count").value == 10  # noqa: PLR2004

    def test_duplicate_is_rejected(self) -> None:
        """Defining a name twice should fail."""
        store = _store()
        with pytest.raises(OptionError):
            store.define("flag", OptionType.BOOL, True)

    def test_options_sorted(self) -> None:
        """options() should list definitions by name."""
        names = [opt.name for opt in _store().options()]
        assert names == sorted(names)


class TestSet:
    """Verify the set primitive."""

    def test_bool_words(self) -> None:
        """Booleans accept the usual yes/no spellings."""
        store = _store()
        flag = _get(store, "flag")
        store.set(flag, "yes")
        assert flag.value is True
        store.set(flag, "off")
        assert flag.value is False

    def test_bool_rejects_garbage(self) -> None:
        """Anything else should fail."""
        store = _store()
        with pytest.raises(OptionError):
            store.set(_get(store, "flag"), "maybe")

    def test_int(self) -> None:
        """Integers should parse."""
        store = _store()
        count = _get(store, "count")
        store.set(count, " 4 ")
        assert count.value == 4  # noqa: PLR2004

    def test_int_rejects_text(self) -> None:
        """Non-numbers should fail."""
        store = _store()
        with pytest.raises(OptionError, match="Invalid number"):
            store.set(_get(store, "count"), "four")

    def test_string_list_is_normalised(self) -> None:
        """Empty and duplicate items should be dropped."""
        store = _store()
        items = _get(store, "items")
        store.set(items, "c,,c,d")
        assert items.value == "c,d"

    def test_enum(self) -> None:
        """Only listed values should be accepted."""
        store = _store()
        mode = _get(store, "mode")
        store.set(mode, "off")
        assert mode.value == "off"
        with pytest.raises(OptionError):
            store.set(mode, "auto")

    def test_set_keeps_value_order(self) -> None:
        """Set items should be stored in the order of the allowed values."""
        store = _store()
        flags = _get(store, "flags")
        store.set(flags, "z,x")
        assert flags.value == "x,z"

    def test_set_rejects_unknown_items(self) -> None:
        """Items outside the allowed values should fail."""
        store = _store()
        with pytest.raises(OptionError, match="q"):
            store.set(_get(store, "flags"), "x,q")


class TestAdd:
    """Verify the add primitive."""

    def test_int_adds(self) -> None:
        """Integers should add."""
        store = _store()
        count = _get(store, "count")
        store.add(count, "5")
        assert count.value == 15  # noqa: PLR2004

    def test_string_appends(self) -> None:
        """Strings should concatenate."""
        store = _store()
        text = _get(store, "text")
        store.add(text, "cd")
        assert text.value == "abcd"

    def test_string_list_appends_new_items(self) -> None:
        """Only missing items should be appended."""
        store = _store()
        items = _get(store, "items")
        store.add(items, "b,c")
        assert items.value == "a,b,c"

    def test_set_union(self) -> None:
        """Sets should gain items."""
        store = _store()
        flags = _get(store, "flags")
        store.add(flags, "z")
        assert flags.value == "x,z"

    @pytest.mark.parametrize("name", ["flag", "mode"])
    def test_unsupported(self, name: str) -> None:
        """Booleans and enums cannot be added to."""
        store = _store()
        with pytest.raises(OptionError, match=r"\+="):
            store.add(_get(store, name), "1")


class TestRemove:
    """Verify the remove primitive."""

    def test_int_subtracts(self) -> None:
        """Integers should subtract."""
        store = _store()
        count = _get(store, "count")
        store.remove(count, "4")
        assert count.value == 6  # noqa: PLR2004

    def test_string_list_drops_items(self) -> None:
        """Listed items should be removed."""
        store = _store()
        items = _get(store, "items")
        store.remove(items, "a")
        assert items.value == "b"

    def test_set_drops_items(self) -> None:
        """Set items should be removed."""
        store = _store()
        flags = _get(store, "flags")
        store.remove(flags, "x")
        assert flags.value == ""

    @pytest.mark.parametrize("name", ["flag", "text", "mode"])
    def test_unsupported(self, name: str) -> None:
        """Booleans, strings and enums cannot be subtracted from."""
        store = _store()
        with pytest.raises(OptionError, match="-="):
            store.remove(_get(store, name), "a")


class TestDefaultOptions:
    """Verify the shell's option table."""

    def test_local_options(self) -> None:
        """tabstop, sortorder and title carry local copies."""
        store = default_options()
        for name in ("tabstop", "sortorder", "title"):
            assert store.lookup(name, OptionScope.LOCAL) is not None
        assert store.lookup("shell", OptionScope.LOCAL) is None

    def test_format(self) -> None:
        """Booleans format as 1/0, others as their value."""
        store = default_options()
        assert _get(store, "hlsearch").format() == "1"
        assert _get(store, "tabstop").format() == "8"
