"""Fixed-point decimal numbers with up to 18 fractional digits."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Optional, Union

MAX_PRECISION = 18
FACTORS10 = tuple(10**power for power in range(MAX_PRECISION + 1))

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class NoBits(Enum):
    """Width of the integer that stores a decimal's digits."""

    N32 = 32
    N64 = 64

    @classmethod
    def from_precision(cls, precision: int) -> Optional["NoBits"]:
        """Return the storage width for ``precision`` digits, or None if too wide."""
        if precision <= 9:
            return cls.N32
        if precision <= MAX_PRECISION:
            return cls.N64
        return None


def _check_scale(scale: int) -> None:
    if scale < 0:
        raise ValueError("scale can't be negative")
    if scale > MAX_PRECISION:
        raise ValueError("scale can't be greater than 18")


def _truncating_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def _scale_source(source: Union[int, float], factor: int) -> int:
    if isinstance(source, float):
        product = source * factor
        if math.isnan(product):
            return 0
        if math.isinf(product):
            return _I64_MAX if product > 0 else _I64_MIN
        return max(_I64_MIN, min(_I64_MAX, int(product)))
    return int(source) * factor


@dataclass(frozen=True, eq=False, init=False, repr=False)
class Decimal:
    """A decimal number stored as an integer and a count of fractional digits.

    ``Decimal()`` is zero with precision 9 and scale 4; ``Decimal(underlying,
    scale)`` has precision 18.
    """

    underlying: int
    precision: int
    scale: int
    nobits: NoBits

    def __init__(
        self,
        underlying: int = 0,
        scale: Optional[int] = None,
        *,
        precision: Optional[int] = None,
        nobits: Optional[NoBits] = None,
    ) -> None:
        if scale is None:
            scale, default_precision, default_nobits = 4, 9, NoBits.N32
        else:
            default_precision, default_nobits = MAX_PRECISION, NoBits.N64
        _check_scale(scale)
        object.__setattr__(self, "underlying", int(underlying))
        object.__setattr__(self, "scale", scale)
        object.__setattr__(
            self, "precision", default_precision if precision is None else precision
        )
        object.__setattr__(self, "nobits", default_nobits if nobits is None else nobits)

    @classmethod
    def of(cls, source: Union[int, float], scale: int) -> "Decimal":
        """Build a decimal holding ``source`` with ``scale`` fractional digits."""
        _check_scale(scale)
        underlying = _scale_source(source, FACTORS10[scale])
        limit = FACTORS10[MAX_PRECISION]
        if underlying > limit:
            raise ValueError(f"{underlying} > {limit}")
        return cls(underlying, scale)

    def internal(self) -> int:
        """The integer the decimal is stored as."""
        return self.underlying

    def set_scale(self, scale: int) -> "Decimal":
        """Return the decimal rescaled to ``scale``, truncating dropped digits."""
        _check_scale(scale)
        if scale == self.scale:
            return self
        if scale < self.scale:
            underlying = _truncating_div(self.underlying, FACTORS10[self.scale - scale])
        else:
            underlying = self.underlying * FACTORS10[scale - self.scale]
        return Decimal(underlying, scale, precision=self.precision, nobits=self.nobits)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Decimal):
            return NotImplemented
        if self.scale < other.scale:
            return other.underlying == self.underlying * FACTORS10[other.scale - self.scale]
        if self.scale > other.scale:
            return self.underlying == other.underlying * FACTORS10[self.scale - other.scale]
        return self.underlying == other.underlying

    def __hash__(self) -> int:
        return hash(Fraction(self.underlying, FACTORS10[self.scale]))

    def __float__(self) -> float:
        return self.underlying / FACTORS10[self.scale]

    def __str__(self) -> str:
        return decimal2str(self)

    __repr__ = __str__


def decimal2str(decimal: Decimal) -> str:
    """Render a decimal with exactly ``scale`` fractional digits."""
    text = str(decimal.underlying).rjust(decimal.scale, "0")
    pos = len(text) - decimal.scale
    text = f"{text[:pos]}.{text[pos:]}"
    if text.startswith("."):
        text = "0" + text
    return text