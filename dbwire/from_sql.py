"""Reading column cells as plain Python values."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Callable, Optional, Union

from dbwire.sql_types import SqlType, TypeKind
from dbwire.value import Value, date_from_days, decode_ipv4, decode_ipv6
from dbwire.value_ref import FromSqlError, ValueRef


class Target(Enum):
    """The Python types a cell can be read as."""

    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"
    DECIMAL = "Decimal"
    ENUM8 = "Enum8"
    ENUM16 = "Enum16"
    STR = "str"
    BYTES = "bytes"
    IPV4 = "Ipv4"
    IPV6 = "Ipv6"
    UUID = "Uuid"
    DATE = "date"
    DATETIME = "datetime"


_NUMERIC = {
    Target.U8: TypeKind.UINT8,
    Target.U16: TypeKind.UINT16,
    Target.U32: TypeKind.UINT32,
    Target.U64: TypeKind.UINT64,
    Target.I8: TypeKind.INT8,
    Target.I16: TypeKind.INT16,
    Target.I32: TypeKind.INT32,
    Target.I64: TypeKind.INT64,
    Target.F32: TypeKind.FLOAT32,
    Target.F64: TypeKind.FLOAT64,
}


def _uuid(cell: ValueRef) -> uuid.UUID:
    data = cell.data
    return uuid.UUID(bytes=data[:8][::-1] + data[8:][::-1])


# Targets that need a cell of one kind, with the conversion of its payload.
_CONVERSIONS: dict[Target, tuple[TypeKind, Callable[[ValueRef], Any]]] = {
    Target.DECIMAL: (TypeKind.DECIMAL, lambda cell: cell.data),
    Target.ENUM8: (TypeKind.ENUM8, lambda cell: cell.data),
    Target.ENUM16: (TypeKind.ENUM16, lambda cell: cell.data),
    Target.IPV4: (TypeKind.IPV4, lambda cell: decode_ipv4(cell.data)),
    Target.IPV6: (TypeKind.IPV6, lambda cell: decode_ipv6(cell.data)),
    Target.UUID: (TypeKind.UUID, _uuid),
    Target.DATE: (TypeKind.DATE, lambda cell: date_from_days(cell.data)),
    Target.DATETIME: (TypeKind.DATETIME, lambda cell: cell.as_datetime()),
}

_STRING = SqlType.simple(TypeKind.STRING)
_DATE = SqlType.simple(TypeKind.DATE)
_UINT8 = SqlType.simple(TypeKind.UINT8)


def _as_ref(value: Union[ValueRef, Value]) -> ValueRef:
    if isinstance(value, ValueRef):
        return value
    if isinstance(value, Value):
        return ValueRef.from_value(value)
    raise TypeError(f"expected a ValueRef or Value, got {type(value).__name__}")


def _mismatch(cell: ValueRef, dst: str) -> FromSqlError:
    return FromSqlError(str(cell.sql_type()), dst)


def from_sql(value: Union[ValueRef, Value], target: Target) -> Any:
    """Read a cell as ``target``; raise FromSqlError when its type does not match."""
    cell = _as_ref(value)
    if target in _NUMERIC:
        if cell.kind is _NUMERIC[target]:
            return cell.data
        raise _mismatch(cell, target.value)
    if target is Target.STR:
        return cell.as_str()
    if target is Target.BYTES:
        return cell.as_bytes()
    kind, convert = _CONVERSIONS[target]
    if cell.kind is kind:
        return convert(cell)
    raise _mismatch(cell, target.value)


def _list_accepts(target: Target, inner: SqlType) -> Optional[bool]:
    """Whether an array of ``inner`` reads as a list of ``target``; None if unsupported."""
    if target in (Target.STR, Target.BYTES):
        return inner == _STRING
    if target is Target.DATE:
        return inner == _DATE
    if target is Target.DATETIME:
        return inner.kind is TypeKind.DATETIME
    if target in _NUMERIC:
        return inner == SqlType.simple(_NUMERIC[target])
    return None


def from_sql_list(value: Union[ValueRef, Value], target: Target) -> Any:
    """Read an Array cell as a list of ``target``.

    ``Target.U8`` yields ``bytes``, taken from an Array(UInt8) or a String cell.
    """
    cell = _as_ref(value)
    if target is Target.U8:
        if cell.kind is TypeKind.ARRAY and cell.inner == _UINT8:
            return bytes(from_sql(item, Target.U8) for item in cell.data)
        return cell.as_bytes()
    probe = _list_accepts(target, _STRING)
    if probe is None:
        raise TypeError(f"no list conversion to {target.value}")
    if cell.kind is TypeKind.ARRAY and _list_accepts(target, cell.inner):
        return [from_sql(item, target) for item in cell.data]
    raise _mismatch(cell, f"list[{target.value}]")


def from_sql_optional(value: Union[ValueRef, Value], target: Target) -> Any:
    """Read a Nullable cell as ``target``, or None when it is null."""
    cell = _as_ref(value)
    if cell.kind is TypeKind.NULLABLE:
        if cell.data is None:
            return None
        return from_sql(cell.data, target)
    raise _mismatch(cell, f"Optional[{target.value}]")