"""Client-side values of column cells."""

from __future__ import annotations

import math
import struct
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import Decimal as _Exact
from ipaddress import IPv4Address, IPv6Address
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dbwire.decimal import Decimal, NoBits
from dbwire.enums import Enum8, Enum16
from dbwire.sql_types import DateTimeKind, DateTimeType, SqlType, TypeKind

UNIX_EPOCH_DAY = 719_163

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_UTC_NAMES = frozenset({"UTC", "Zulu", "Etc/UTC", "Etc/Zulu", "GMT", "Etc/GMT", "Universal"})
_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_INT_RANGES = {
    TypeKind.UINT8: (0, 2**8 - 1),
    TypeKind.UINT16: (0, 2**16 - 1),
    TypeKind.UINT32: (0, 2**32 - 1),
    TypeKind.UINT64: (0, 2**64 - 1),
    TypeKind.INT8: (-(2**7), 2**7 - 1),
    TypeKind.INT16: (-(2**15), 2**15 - 1),
    TypeKind.INT32: (-(2**31), 2**31 - 1),
    TypeKind.INT64: (-(2**63), 2**63 - 1),
}
_FLOAT_KINDS = frozenset({TypeKind.FLOAT32, TypeKind.FLOAT64})
_NUMERIC_KINDS = frozenset(_INT_RANGES) | _FLOAT_KINDS
_BYTE_LENGTHS = {TypeKind.IPV4: 4, TypeKind.IPV6: 16, TypeKind.UUID: 16}


def _zone(tz: Union[str, tzinfo]) -> tzinfo:
    if isinstance(tz, tzinfo):
        return tz
    if tz in _UTC_NAMES:
        return timezone.utc
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown time zone: {tz!r}") from exc


def _tz_name(zone: Optional[tzinfo]) -> str:
    if isinstance(zone, ZoneInfo):
        return zone.key
    if zone is timezone.utc:
        return "UTC"
    raise ValueError(f"time zone {zone!r} has no name")


def decode_ipv4(octets: bytes) -> IPv4Address:
    """Decode an IPv4 address stored with its octets reversed."""
    raw = bytes(octets)
    if len(raw) != 4:
        raise ValueError(f"an IPv4 address takes 4 bytes, got {len(raw)}")
    return IPv4Address(raw[::-1])


def decode_ipv6(octets: bytes) -> IPv6Address:
    """Decode an IPv6 address from its 16 network-order bytes."""
    raw = bytes(octets)
    if len(raw) != 16:
        raise ValueError(f"an IPv6 address takes 16 bytes, got {len(raw)}")
    return IPv6Address(raw)


def to_datetime(value: int, precision: int, tz: Union[str, tzinfo]) -> datetime:
    """Turn ``value`` ticks of 10**-precision seconds since the epoch into a time in ``tz``."""
    factor = 10**precision
    seconds, rem = divmod(int(value), factor)
    micros = rem * 1_000_000 // factor
    return (_EPOCH + timedelta(seconds=seconds, microseconds=micros)).astimezone(_zone(tz))


def days_from_date(date: "date") -> int:
    """Days since 1970-01-01, wrapped to 16 bits as a Date column stores them."""
    return (date.toordinal() - UNIX_EPOCH_DAY) & 0xFFFF


def date_from_days(days: int) -> date:
    """The calendar date ``days`` days after 1970-01-01."""
    return date.fromordinal(int(days) + UNIX_EPOCH_DAY)


def _round_f32(x: float) -> float:
    return struct.unpack("<f", struct.pack("<f", x))[0]


def _format_float(x: float, single: bool) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    text = repr(x)
    if single:
        for digits in range(1, 10):
            candidate = f"{x:.{digits}g}"
            if _round_f32(float(candidate)) == x:
                text = candidate
                break
    return format(_Exact(text).normalize(), "f")


def _rfc2822(moment: datetime) -> str:
    offset = int(moment.utcoffset().total_seconds())
    sign = "+" if offset >= 0 else "-"
    hours, minutes = divmod(abs(offset) // 60, 60)
    return (
        f"{_DAY_NAMES[moment.weekday()]}, {moment.day:02d} "
        f"{_MONTH_NAMES[moment.month - 1]} {moment.year:04d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d} "
        f"{sign}{hours:02d}{minutes:02d}"
    )


@dataclass(frozen=True, eq=False)
class Value:
    """One cell value.

    ``data`` holds the payload: a number, ``bytes`` for strings and addresses,
    day count for Date, ticks for DateTime, a ``Decimal``, an ``Enum8``/``Enum16``,
    a tuple of values for Array and Tuple, and for Nullable either a value or
    None. ``precision`` set on a DateTime makes it a DateTime64; ``inner`` is the
    element type of an Array or the type of a null Nullable.
    """

    kind: TypeKind
    data: Any = None
    tz: str = "Zulu"
    precision: Optional[int] = None
    inner: Optional[SqlType] = None
    enum_values: tuple = ()

    def __post_init__(self) -> None:
        kind, data = self.kind, self.data
        if kind in _INT_RANGES:
            low, high = _INT_RANGES[kind]
            if isinstance(data, bool) or not isinstance(data, int) or not low <= data <= high:
                raise ValueError(f"{data!r} does not fit {kind.value}")
        elif kind is TypeKind.FLOAT32:
            object.__setattr__(self, "data", _round_f32(float(data)))
        elif kind is TypeKind.FLOAT64:
            object.__setattr__(self, "data", float(data))
        elif kind is TypeKind.STRING:
            object.__setattr__(self, "data", bytes(data))
        elif kind is TypeKind.DATE:
            if not isinstance(data, int) or not 0 <= data <= 0xFFFF:
                raise ValueError(f"{data!r} is not a Date day count")
        elif kind is TypeKind.DATETIME:
            if self.precision is None:
                if not isinstance(data, int) or not 0 <= data <= 0xFFFFFFFF:
                    raise ValueError(f"{data!r} is not a DateTime timestamp")
            elif not isinstance(data, int) or not -(2**63) <= data < 2**63:
                raise ValueError(f"{data!r} is not a DateTime64 tick count")
        elif kind in _BYTE_LENGTHS:
            raw = bytes(data)
            if len(raw) != _BYTE_LENGTHS[kind]:
                raise ValueError(f"{kind.value} takes {_BYTE_LENGTHS[kind]} bytes")
            object.__setattr__(self, "data", raw)
        elif kind is TypeKind.NULLABLE:
            if data is None and self.inner is None:
                raise ValueError("a null value needs its type")
            if data is not None and not isinstance(data, Value):
                raise ValueError("a present nullable value must be a Value")
        elif kind is TypeKind.ARRAY:
            if self.inner is None:
                raise ValueError("an array needs its element type")
            object.__setattr__(self, "data", _values(data))
        elif kind is TypeKind.TUPLE:
            object.__setattr__(self, "data", _values(data))
        elif kind is TypeKind.DECIMAL:
            if not isinstance(data, Decimal):
                raise ValueError("a Decimal value needs a Decimal")
        elif kind is TypeKind.ENUM8 or kind is TypeKind.ENUM16:
            wanted = Enum8 if kind is TypeKind.ENUM8 else Enum16
            if not isinstance(data, wanted):
                raise ValueError(f"{kind.value} value needs an {wanted.__name__}")
            pairs = ((str(name), int(value)) for name, value in self.enum_values)
            object.__setattr__(self, "enum_values", (*pairs,))
        else:
            raise ValueError(f"no value kind {kind.value}")

    @classmethod
    def default(cls, sql_type: SqlType) -> "Value":
        """The zero value of a column of ``sql_type``."""
        kind = sql_type.kind
        if kind in _INT_RANGES:
            return cls(kind, 0)
        if kind in _FLOAT_KINDS:
            return cls(kind, 0.0)
        if kind is TypeKind.STRING:
            return cls(kind, b"")
        if kind is TypeKind.FIXED_STRING:
            return cls(TypeKind.STRING, bytes(sql_type.size))
        if kind is TypeKind.DATE:
            return cls(kind, 0)
        if kind is TypeKind.DATETIME:
            dt = sql_type.datetime_type
            if dt is not None and dt.kind is DateTimeKind.DATETIME64:
                return cls(kind, 0, tz="Zulu", precision=1)
            return cls(kind, 0, tz="Zulu")
        if kind is TypeKind.NULLABLE:
            return cls(kind, None, inner=sql_type.inner)
        if kind is TypeKind.ARRAY:
            return cls(kind, (), inner=sql_type.inner)
        if kind is TypeKind.DECIMAL:
            number = Decimal(0, sql_type.scale, precision=sql_type.precision, nobits=NoBits.N64)
            return cls(kind, number)
        if kind in _BYTE_LENGTHS:
            return cls(kind, bytes(_BYTE_LENGTHS[kind]))
        if kind is TypeKind.ENUM8:
            return cls(kind, Enum8(0), enum_values=sql_type.enum_values)
        if kind is TypeKind.ENUM16:
            return cls(kind, Enum16(0), enum_values=sql_type.enum_values)
        return cls(TypeKind.TUPLE, tuple(cls.default(t) for t in sql_type.types))

    @classmethod
    def of(cls, source: Any) -> "Value":
        """Build a value from a Python object.

        Integers become Int64, or UInt64 when too large for Int64.
        """
        if isinstance(source, Value):
            return source
        if isinstance(source, bool):
            raise TypeError("booleans have no column value")
        if isinstance(source, int):
            if -(2**63) <= source < 2**63:
                return cls(TypeKind.INT64, source)
            return cls(TypeKind.UINT64, source)
        if isinstance(source, float):
            return cls(TypeKind.FLOAT64, source)
        if isinstance(source, str):
            return cls(TypeKind.STRING, source.encode("utf-8"))
        if isinstance(source, (bytes, bytearray, memoryview)):
            return cls(TypeKind.STRING, bytes(source))
        if isinstance(source, datetime):
            if source.tzinfo is None:
                raise ValueError("a DateTime value needs an aware datetime")
            stamp = math.floor(source.timestamp()) & 0xFFFFFFFF
            return cls(TypeKind.DATETIME, stamp, tz=_tz_name(source.tzinfo))
        if isinstance(source, date):
            return cls(TypeKind.DATE, days_from_date(source))
        if isinstance(source, Decimal):
            return cls(TypeKind.DECIMAL, source)
        if isinstance(source, Enum8):
            return cls(TypeKind.ENUM8, source)
        if isinstance(source, Enum16):
            return cls(TypeKind.ENUM16, source)
        raise TypeError(f"no column value for {type(source).__name__}")

    @classmethod
    def of_optional(cls, source: Any, sql_type: SqlType) -> "Value":
        """A Nullable value: null of ``sql_type`` when ``source`` is None."""
        if source is None:
            return cls(TypeKind.NULLABLE, None, inner=sql_type)
        return cls(TypeKind.NULLABLE, cls.of(source))

    def sql_type(self) -> SqlType:
        """The column type this value belongs to."""
        kind = self.kind
        if kind in _NUMERIC_KINDS or kind in _BYTE_LENGTHS or kind in (
            TypeKind.STRING,
            TypeKind.DATE,
        ):
            return SqlType.simple(kind)
        if kind is TypeKind.DATETIME:
            if self.precision is None:
                return SqlType.datetime(DateTimeType())
            return SqlType.datetime(
                DateTimeType(DateTimeKind.DATETIME64, self.precision, self.tz)
            )
        if kind is TypeKind.NULLABLE:
            if self.data is None:
                return SqlType.nullable(self.inner)
            return SqlType.nullable(self.data.sql_type())
        if kind is TypeKind.ARRAY:
            return SqlType.array(self.inner)
        if kind is TypeKind.DECIMAL:
            return SqlType.decimal(self.data.precision, self.data.scale)
        if kind is TypeKind.ENUM8:
            return SqlType.enum8(self.enum_values)
        if kind is TypeKind.ENUM16:
            return SqlType.enum16(self.enum_values)
        return SqlType.tuple(v.sql_type() for v in self.data)

    def _mismatch(self, target: str) -> TypeError:
        return TypeError(f"Can't convert Value::{self.sql_type()} into {target}.")

    def as_string(self) -> str:
        """The text of a String value."""
        if self.kind is TypeKind.STRING:
            try:
                return self.data.decode("utf-8")
            except UnicodeDecodeError:
                pass
        raise self._mismatch("String")

    def as_bytes(self) -> bytes:
        """The bytes of a String value."""
        if self.kind is TypeKind.STRING:
            return self.data
        raise self._mismatch("bytes")

    def as_date(self) -> date:
        """The calendar date of a Date value."""
        if self.kind is TypeKind.DATE:
            return date_from_days(self.data)
        raise self._mismatch("date")

    def as_datetime(self) -> datetime:
        """The moment of a DateTime or DateTime64 value, in its time zone."""
        if self.kind is TypeKind.DATETIME:
            return to_datetime(self.data, self.precision or 0, self.tz)
        raise self._mismatch("datetime")

    def as_number(self) -> Union[int, float]:
        """The number held by an integer or float value."""
        if self.kind in _NUMERIC_KINDS:
            return self.data
        raise self._mismatch("number")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        kind = self.kind
        if kind is not other.kind:
            return False
        if kind in _NUMERIC_KINDS or kind in (TypeKind.STRING, TypeKind.DATE, TypeKind.DECIMAL):
            return self.data == other.data
        if kind is TypeKind.DATETIME:
            # Only DateTime32 values compare; both denote instants.
            if self.precision is None and other.precision is None:
                return self.data == other.data
            return False
        if kind is TypeKind.NULLABLE:
            if self.data is None and other.data is None:
                return self.inner == other.inner
            if self.data is None or other.data is None:
                return False
            return self.data == other.data
        if kind is TypeKind.ARRAY:
            return self.inner == other.inner and self.data == other.data
        if kind is TypeKind.ENUM16:
            return self.enum_values == other.enum_values and self.data == other.data
        if kind is TypeKind.TUPLE:
            return self.data == other.data
        return False

    def __str__(self) -> str:
        kind, data = self.kind, self.data
        if kind in _INT_RANGES:
            return str(data)
        if kind in _FLOAT_KINDS:
            return _format_float(data, kind is TypeKind.FLOAT32)
        if kind is TypeKind.STRING:
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError:
                return "[" + ", ".join(str(b) for b in data) + "]"
        if kind is TypeKind.DATE:
            return date_from_days(data).strftime("%Y-%m-%d")
        if kind is TypeKind.DATETIME:
            return _rfc2822(self.as_datetime())
        if kind is TypeKind.NULLABLE:
            return "NULL" if data is None else str(data)
        if kind is TypeKind.ARRAY:
            return "[" + ", ".join(str(v) for v in data) + "]"
        if kind is TypeKind.DECIMAL:
            return str(data)
        if kind is TypeKind.IPV4:
            return str(decode_ipv4(data))
        if kind is TypeKind.IPV6:
            return str(decode_ipv6(data))
        if kind is TypeKind.UUID:
            return str(uuid.UUID(bytes=data[:8][::-1] + data[8:][::-1]))
        if kind is TypeKind.ENUM8:
            return f"Enum8, {data}"
        if kind is TypeKind.ENUM16:
            return f"Enum16, {data}"
        return "(" + ", ".join(str(v) for v in data) + ")"


def _values(items: Any) -> tuple:
    values = (*items,)
    if not all(isinstance(v, Value) for v in values):
        raise ValueError("elements must be Value instances")
    return values