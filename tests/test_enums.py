import pytest

from dbwire.enums import Enum8, Enum16


def test_enum8_internal():
    assert Enum8.of(3).internal() == 3
    assert Enum8.of(-128).internal() == -128


def test_enum16_internal():
    assert Enum16.of(30000).internal() == 30000


def test_defaults_are_zero():
    assert Enum8() == Enum8.of(0)
    assert Enum16() == Enum16.of(0)


def test_display():
    assert str(Enum8.of(-2)) == "Enum8(-2)"
    assert repr(Enum8.of(5)) == "Enum8(5)"
    assert str(Enum16.of(7)) == "Enum(7)"


def test_equality():
    assert Enum8.of(4) == Enum8.of(4)
    assert not Enum8.of(4) == Enum8.of(5)
    assert Enum16.of(4) == Enum16.of(4)


@pytest.mark.parametrize("value", [128, -129])
def test_enum8_range(value):
    with pytest.raises(ValueError):
        Enum8.of(value)


@pytest.mark.parametrize("value", [32768, -32769])
def test_enum16_range(value):
    with pytest.raises(ValueError):
        Enum16.of(value)