"""Values of Enum8 and Enum16 columns."""

from __future__ import annotations

from dataclasses import dataclass


def _check_range(value: int, bits: int) -> int:
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if not low <= value <= high:
        raise ValueError(f"{value} is outside the {bits}-bit range {low}..{high}")
    return value


@dataclass(frozen=True)
class Enum8:
    """An 8-bit enum value."""

    value: int = 0

    def __post_init__(self) -> None:
        _check_range(self.value, 8)

    @classmethod
    def of(cls, source: int) -> "Enum8":
        return cls(source)

    def internal(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"Enum8({self.value})"

    __repr__ = __str__


@dataclass(frozen=True)
class Enum16:
    """A 16-bit enum value."""

    value: int = 0

    def __post_init__(self) -> None:
        _check_range(self.value, 16)

    @classmethod
    def of(cls, source: int) -> "Enum16":
        return cls(source)

    def internal(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"Enum({self.value})"

    __repr__ = __str__