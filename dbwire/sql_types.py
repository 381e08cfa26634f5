"""Column type descriptions and server metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from dbwire.marshal import Kind, buffer


class TypeKind(Enum):
    """The families of column types."""

    UINT8 = "UInt8"
    UINT16 = "UInt16"
    UINT32 = "UInt32"
    UINT64 = "UInt64"
    INT8 = "Int8"
    INT16 = "Int16"
    INT32 = "Int32"
    INT64 = "Int64"
    STRING = "String"
    FIXED_STRING = "FixedString"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"
    DATE = "Date"
    DATETIME = "DateTime"
    IPV4 = "IPv4"
    IPV6 = "IPv6"
    UUID = "UUID"
    NULLABLE = "Nullable"
    ARRAY = "Array"
    DECIMAL = "Decimal"
    ENUM8 = "Enum8"
    ENUM16 = "Enum16"
    TUPLE = "Tuple"


_SIMPLE_KINDS = frozenset(
    {
        TypeKind.UINT8,
        TypeKind.UINT16,
        TypeKind.UINT32,
        TypeKind.UINT64,
        TypeKind.INT8,
        TypeKind.INT16,
        TypeKind.INT32,
        TypeKind.INT64,
        TypeKind.STRING,
        TypeKind.FLOAT32,
        TypeKind.FLOAT64,
        TypeKind.DATE,
        TypeKind.IPV4,
        TypeKind.IPV6,
        TypeKind.UUID,
    }
)


class DateTimeKind(Enum):
    """Variants of date-time columns."""

    DATETIME32 = "DateTime32"
    DATETIME64 = "DateTime64"
    CHRONO = "Chrono"


@dataclass(frozen=True)
class DateTimeType:
    """A date-time flavour; DateTime64 carries a precision and a time zone name."""

    kind: DateTimeKind = DateTimeKind.DATETIME32
    precision: Optional[int] = None
    tz: Optional[str] = None

    def __post_init__(self) -> None:
        has_params = self.precision is not None or self.tz is not None
        if self.kind is DateTimeKind.DATETIME64:
            if self.precision is None or self.tz is None:
                raise ValueError("DateTime64 needs a precision and a time zone")
        elif has_params:
            raise ValueError(f"{self.kind.value} takes no precision or time zone")


@dataclass(frozen=True)
class SqlType:
    """A column type; build it with the class methods."""

    kind: TypeKind
    size: Optional[int] = None
    datetime_type: Optional[DateTimeType] = None
    inner: Optional["SqlType"] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    enum_values: tuple = ()
    types: tuple = ()

    @classmethod
    def simple(cls, kind: TypeKind) -> "SqlType":
        """A type that takes no parameters, such as UInt8 or String."""
        if kind not in _SIMPLE_KINDS:
            raise ValueError(f"{kind.value} needs parameters")
        return cls(kind)

    @classmethod
    def fixed_string(cls, size: int) -> "SqlType":
        if size < 0:
            raise ValueError("FixedString size can't be negative")
        return cls(TypeKind.FIXED_STRING, size=size)

    @classmethod
    def datetime(cls, datetime_type: Optional[DateTimeType] = None) -> "SqlType":
        return cls(TypeKind.DATETIME, datetime_type=datetime_type or DateTimeType())

    @classmethod
    def nullable(cls, inner: "SqlType") -> "SqlType":
        return cls(TypeKind.NULLABLE, inner=inner)

    @classmethod
    def array(cls, inner: "SqlType") -> "SqlType":
        return cls(TypeKind.ARRAY, inner=inner)

    @classmethod
    def decimal(cls, precision: int, scale: int) -> "SqlType":
        return cls(TypeKind.DECIMAL, precision=precision, scale=scale)

    @classmethod
    def enum8(cls, values: Iterable[tuple[str, int]]) -> "SqlType":
        return cls(TypeKind.ENUM8, enum_values=_enum_values(values, 8))

    @classmethod
    def enum16(cls, values: Iterable[tuple[str, int]]) -> "SqlType":
        return cls(TypeKind.ENUM16, enum_values=_enum_values(values, 16))

    @classmethod
    def tuple(cls, types: Iterable["SqlType"]) -> "SqlType":
        return cls(TypeKind.TUPLE, types=(*types,))

    def to_string(self) -> str:
        """The type's name as the server spells it."""
        kind = self.kind
        if kind in _SIMPLE_KINDS:
            return kind.value
        if kind is TypeKind.FIXED_STRING:
            return f"FixedString({self.size})"
        if kind is TypeKind.DATETIME:
            dt = self.datetime_type
            if dt is not None and dt.kind is DateTimeKind.DATETIME64:
                return f"DateTime64({dt.precision}, '{dt.tz}')"
            return "DateTime"
        if kind in (TypeKind.NULLABLE, TypeKind.ARRAY):
            return f"{kind.value}({self.inner.to_string()})"
        if kind is TypeKind.DECIMAL:
            return f"Decimal({self.precision}, {self.scale})"
        if kind in (TypeKind.ENUM8, TypeKind.ENUM16):
            items = ",".join(f"'{name}' = {value}" for name, value in self.enum_values)
            return f"{kind.value}({items})"
        return "Tuple({})".format(",".join(t.to_string() for t in self.types))

    def level(self) -> int:
        """Nesting depth of the type."""
        if self.kind in (TypeKind.NULLABLE, TypeKind.ARRAY):
            return 1 + self.inner.level()
        if self.kind is TypeKind.TUPLE:
            return max((t.level() for t in self.types), default=0) + 1
        return 0

    def is_datetime(self) -> bool:
        return self.kind is TypeKind.DATETIME

    def __str__(self) -> str:
        return self.to_string()


def _enum_values(values: Iterable[tuple[str, int]], bits: int) -> tuple:
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    pairs = []
    for name, value in values:
        if not low <= value <= high:
            raise ValueError(f"enum value {value} is outside the {bits}-bit range")
        pairs.append((str(name), int(value)))
    return (*pairs,)


@dataclass(frozen=True)
class ProfileInfo:
    """Query profiling counters reported by the server."""

    rows: int = 0
    bytes: int = 0
    blocks: int = 0
    applied_limit: bool = False
    rows_before_limit: int = 0
    calculated_rows_before_limit: bool = False


@dataclass(frozen=True)
class ServerInfo:
    """Name, version and time zone of a server."""

    name: str = ""
    revision: int = 0
    minor_version: int = 0
    major_version: int = 0
    timezone: str = "Zulu"

    def __str__(self) -> str:
        return (
            f"{self.name} {self.major_version}.{self.minor_version}."
            f"{self.revision} ({self.timezone})"
        )


_STAT_TYPES: dict[Kind, Optional[SqlType]] = {
    Kind.U8: SqlType.simple(TypeKind.UINT8),
    Kind.U16: SqlType.simple(TypeKind.UINT16),
    Kind.U32: SqlType.simple(TypeKind.UINT32),
    Kind.U64: SqlType.simple(TypeKind.UINT64),
    Kind.I8: SqlType.simple(TypeKind.INT8),
    Kind.I16: SqlType.simple(TypeKind.INT16),
    Kind.I32: SqlType.simple(TypeKind.INT32),
    Kind.I64: SqlType.simple(TypeKind.INT64),
    Kind.F32: SqlType.simple(TypeKind.FLOAT32),
    Kind.F64: SqlType.simple(TypeKind.FLOAT64),
    Kind.BOOL: None,
}


def _stat_kind(name: Union[str, Kind]) -> Kind:
    if isinstance(name, Kind):
        kind = name
    else:
        kind = next((k for k in Kind if k.value[0] == name), None)
    if kind is None or kind not in _STAT_TYPES:
        raise ValueError(f"no fixed-size column buffer for {name!r}")
    return kind


def stat_buffer(name: Union[str, Kind]) -> bytearray:
    """A zeroed buffer for one fixed-size column value, e.g. ``"u16"``."""
    return buffer(_stat_kind(name))


def stat_sql_type(name: Union[str, Kind]) -> SqlType:
    """The column type that a fixed-size value such as ``"i32"`` is stored as."""
    kind = _stat_kind(name)
    sql_type = _STAT_TYPES[kind]
    if sql_type is None:
        raise ValueError(f"{kind.value[0]} has no column type")
    return sql_type