"""
OnceCell tests
"""

import pytest

from dspolicy.core.once import OnceCell


def test_value_is_computed_once():
    cell = OnceCell()
    calls = []

    def factory():
        calls.append(1)
        return ["answer"]

    first = cell.get_or_init(factory)
    second = cell.get_or_init(factory)

    assert first is second
    assert len(calls) == 1


def test_none_is_not_stored():
    cell = OnceCell()

    assert cell.get_or_init(lambda: None) is None
    assert cell.get() is None
    assert cell.get_or_init(lambda: 5) == 5


def test_exception_resets_cell():
    cell = OnceCell()

    def boom():
        raise ValueError("no ttl")

    with pytest.raises(ValueError):
        cell.get_or_init(boom)
    assert cell.get() is None
    assert cell.get_or_init(lambda: "ok") == "ok"


def test_clear():
    cell = OnceCell()
    cell.get_or_init(lambda: 1)
    cell.clear()
    assert cell.get() is None
