"""Borrowed views of column cells, as read back from a block."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Union

from dbwire.enums import Enum8, Enum16
from dbwire.sql_types import SqlType, TypeKind
from dbwire.value import Value, date_from_days, decode_ipv4, decode_ipv6, to_datetime

_INT_KINDS = frozenset(
    {
        TypeKind.UINT8,
        TypeKind.UINT16,
        TypeKind.UINT32,
        TypeKind.UINT64,
        TypeKind.INT8,
        TypeKind.INT16,
        TypeKind.INT32,
        TypeKind.INT64,
    }
)
_NUMERIC_KINDS = _INT_KINDS | {TypeKind.FLOAT32, TypeKind.FLOAT64}
# Kinds whose equality compares the payload only.
_PLAIN_EQ = _NUMERIC_KINDS | {TypeKind.STRING, TypeKind.DATE, TypeKind.DECIMAL}
_CONTAINERS = frozenset({TypeKind.NULLABLE, TypeKind.ARRAY, TypeKind.TUPLE})


class FromSqlError(TypeError):
    """A cell cannot be read as the requested type."""

    def __init__(self, src: str, dst: str) -> None:
        super().__init__(f"Can't convert {src} into {dst}.")
        self.src = src
        self.dst = dst


def _plain_time(moment: datetime) -> str:
    return (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )


@dataclass(frozen=True, eq=False)
class ValueRef:
    """One cell as read from a column.

    The fields mean what they mean on ``Value``; the elements of a Nullable,
    Array or Tuple are themselves ``ValueRef`` instances.
    """

    kind: TypeKind
    data: Any = None
    tz: str = "Zulu"
    precision: Optional[int] = None
    inner: Optional[SqlType] = None
    enum_values: tuple = ()

    def __post_init__(self) -> None:
        kind = self.kind
        if kind is TypeKind.NULLABLE:
            if self.data is None and self.inner is None:
                raise ValueError("a null value needs its type")
            if self.data is not None and not isinstance(self.data, ValueRef):
                raise ValueError("a present nullable value must be a ValueRef")
            return
        if kind in (TypeKind.ARRAY, TypeKind.TUPLE):
            if kind is TypeKind.ARRAY and self.inner is None:
                raise ValueError("an array needs its element type")
            items = (*self.data,)
            if not all(isinstance(item, ValueRef) for item in items):
                raise ValueError("elements must be ValueRef instances")
            object.__setattr__(self, "data", items)
            return
        checked = self.to_value()
        object.__setattr__(self, "data", checked.data)
        object.__setattr__(self, "enum_values", checked.enum_values)

    @classmethod
    def of(cls, source: Any) -> "ValueRef":
        """Build a cell from a Python object, as ``Value.of`` does."""
        if isinstance(source, ValueRef):
            return source
        return cls.from_value(Value.of(source))

    @classmethod
    def from_value(cls, value: Value) -> "ValueRef":
        """View an owned value as a cell."""
        kind = value.kind
        if kind is TypeKind.NULLABLE:
            if value.data is None:
                return cls(kind, None, inner=value.inner)
            return cls(kind, cls.from_value(value.data))
        if kind in (TypeKind.ARRAY, TypeKind.TUPLE):
            items = tuple(cls.from_value(item) for item in value.data)
            return cls(kind, items, inner=value.inner)
        return cls(
            kind,
            value.data,
            tz=value.tz,
            precision=value.precision,
            inner=value.inner,
            enum_values=value.enum_values,
        )

    def to_value(self) -> Value:
        """An owned copy of the cell."""
        kind = self.kind
        if kind is TypeKind.NULLABLE:
            if self.data is None:
                return Value(kind, None, inner=self.inner)
            return Value(kind, self.data.to_value())
        if kind in (TypeKind.ARRAY, TypeKind.TUPLE):
            items = tuple(item.to_value() for item in self.data)
            return Value(kind, items, inner=self.inner)
        return Value(
            kind,
            self.data,
            tz=self.tz,
            precision=self.precision,
            inner=self.inner,
            enum_values=self.enum_values,
        )

    def sql_type(self) -> SqlType:
        """The column type this cell belongs to."""
        return self.to_value().sql_type()

    def _mismatch(self, target: str) -> FromSqlError:
        return FromSqlError(str(self.sql_type()), target)

    def as_str(self) -> str:
        """The text of a String cell; invalid UTF-8 raises UnicodeDecodeError."""
        if self.kind is TypeKind.STRING:
            return self.data.decode("utf-8")
        raise self._mismatch("str")

    def as_string(self) -> str:
        """The text of a String cell."""
        return self.as_str()

    def as_bytes(self) -> bytes:
        """The bytes of a String cell."""
        if self.kind is TypeKind.STRING:
            return self.data
        raise self._mismatch("bytes")

    def as_date(self) -> date:
        """The calendar date of a Date cell."""
        if self.kind is TypeKind.DATE:
            return date_from_days(self.data)
        raise self._mismatch("date")

    def as_datetime(self) -> datetime:
        """The moment of a DateTime or DateTime64 cell, in its time zone."""
        if self.kind is TypeKind.DATETIME:
            return to_datetime(self.data, self.precision or 0, self.tz)
        raise self._mismatch("datetime")

    def as_number(self) -> Union[int, float]:
        """The number held by an integer or float cell."""
        if self.kind in _NUMERIC_KINDS:
            return self.data
        raise self._mismatch("number")

    def format(self, alternate: bool = False) -> str:
        """Render the cell; ``alternate`` selects RFC 2822 for DateTime."""
        kind, data = self.kind, self.data
        if kind is TypeKind.DATETIME:
            if self.precision is None and alternate:
                return str(self.to_value())
            return _plain_time(self.as_datetime())
        if kind is TypeKind.DATE:
            return self.as_date().strftime("%Y-%m-%d")
        if kind is TypeKind.NULLABLE:
            return "NULL" if data is None else data.format(False)
        if kind is TypeKind.ARRAY:
            return "[" + ", ".join(item.format(False) for item in data) + "]"
        if kind is TypeKind.TUPLE:
            return "(" + ", ".join(item.format(False) for item in data) + ")"
        if kind is TypeKind.IPV4:
            return str(decode_ipv4(data))
        if kind is TypeKind.IPV6:
            return str(decode_ipv6(data))
        if kind is TypeKind.UUID:
            return str(uuid.UUID(bytes=data[:8][::-1] + data[8:][::-1]))
        if kind in (TypeKind.ENUM8, TypeKind.ENUM16):
            return str(data)
        return str(self.to_value())

    def __str__(self) -> str:
        return self.format(False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueRef):
            return NotImplemented
        kind = self.kind
        if kind is not other.kind:
            return False
        if kind in _PLAIN_EQ:
            return self.data == other.data
        if kind is TypeKind.DATETIME:
            if self.precision is None and other.precision is None:
                return self.data == other.data
            if self.precision is not None and other.precision is not None:
                return self.as_datetime() == other.as_datetime()
            return False
        if kind is TypeKind.NULLABLE:
            if self.data is None and other.data is None:
                return self.inner == other.inner
            if self.data is None or other.data is None:
                return False
            return self.data == other.data
        if kind is TypeKind.ARRAY:
            return self.inner == other.inner and self.data == other.data
        if kind in (TypeKind.ENUM8, TypeKind.ENUM16):
            return self.data == other.data and self.enum_values == other.enum_values
        return False

    __hash__ = object.__hash__