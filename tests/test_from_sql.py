import uuid
from datetime import date, datetime, timedelta, timezone
from ipaddress import IPv4Address, IPv6Address

import pytest
from hypothesis import given, strategies as st

from dbwire.decimal import Decimal
from dbwire.enums import Enum8, Enum16
from dbwire.from_sql import Target, from_sql, from_sql_list, from_sql_optional
from dbwire.sql_types import DateTimeKind, DateTimeType, SqlType, TypeKind
from dbwire.value import Value
from dbwire.value_ref import FromSqlError, ValueRef


def array(inner_kind, items):
    return ValueRef(TypeKind.ARRAY, tuple(items), inner=SqlType.simple(inner_kind))


INT_CASES = [
    (Target.U8, TypeKind.UINT8, 0, 255),
    (Target.U16, TypeKind.UINT16, 0, 2**16 - 1),
    (Target.U32, TypeKind.UINT32, 0, 2**32 - 1),
    (Target.U64, TypeKind.UINT64, 0, 2**64 - 1),
    (Target.I8, TypeKind.INT8, -(2**7), 2**7 - 1),
    (Target.I16, TypeKind.INT16, -(2**15), 2**15 - 1),
    (Target.I32, TypeKind.INT32, -(2**31), 2**31 - 1),
    (Target.I64, TypeKind.INT64, -(2**63), 2**63 - 1),
]


@pytest.mark.parametrize("target,kind,low,high", INT_CASES)
def test_integer_bounds_round_trip(target, kind, low, high):
    assert from_sql(ValueRef(kind, low), target) == low
    assert from_sql(ValueRef(kind, high), target) == high


@given(st.integers(min_value=-(2**31), max_value=2**31 - 1))
def test_int32_round_trip(n):
    assert from_sql(ValueRef(TypeKind.INT32, n), Target.I32) == n


def test_number_kind_mismatch():
    with pytest.raises(FromSqlError) as info:
        from_sql(ValueRef(TypeKind.UINT16, 1), Target.U8)
    assert info.value.src == "UInt16"
    assert info.value.dst == "u8"


def test_floats():
    assert from_sql(ValueRef(TypeKind.FLOAT64, 2.5), Target.F64) == 2.5
    assert from_sql(ValueRef(TypeKind.FLOAT32, 0.5), Target.F32) == 0.5
    with pytest.raises(FromSqlError):
        from_sql(ValueRef(TypeKind.FLOAT32, 0.5), Target.F64)


def test_accepts_owned_value():
    assert from_sql(Value.of(7), Target.I64) == 7


def test_rejects_plain_objects():
    with pytest.raises(TypeError):
        from_sql(7, Target.I64)


def test_decimal():
    number = Decimal(12345, 2)
    assert from_sql(ValueRef(TypeKind.DECIMAL, number), Target.DECIMAL) == number
    with pytest.raises(FromSqlError) as info:
        from_sql(ValueRef.of(1), Target.DECIMAL)
    assert info.value.dst == "Decimal"


def test_enums():
    cell8 = ValueRef(TypeKind.ENUM8, Enum8(3), enum_values=(("a", 3),))
    cell16 = ValueRef(TypeKind.ENUM16, Enum16(-4), enum_values=(("b", -4),))
    assert from_sql(cell8, Target.ENUM8) == Enum8(3)
    assert from_sql(cell16, Target.ENUM16) == Enum16(-4)
    with pytest.raises(FromSqlError):
        from_sql(cell8, Target.ENUM16)


def test_strings_and_bytes():
    assert from_sql(ValueRef.of("héllo"), Target.STR) == "héllo"
    assert from_sql(ValueRef.of(b"\x00\xff"), Target.BYTES) == b"\x00\xff"
    with pytest.raises(UnicodeDecodeError):
        from_sql(ValueRef.of(b"\xff"), Target.STR)
    with pytest.raises(FromSqlError):
        from_sql(ValueRef.of(1), Target.STR)
    with pytest.raises(FromSqlError):
        from_sql(ValueRef.of(1), Target.BYTES)


def test_ip_addresses():
    v4 = ValueRef(TypeKind.IPV4, bytes([1, 0, 0, 127]))
    assert from_sql(v4, Target.IPV4) == IPv4Address("127.0.0.1")
    v6 = ValueRef(TypeKind.IPV6, IPv6Address("::1").packed)
    assert from_sql(v6, Target.IPV6) == IPv6Address("::1")
    with pytest.raises(FromSqlError):
        from_sql(v4, Target.IPV6)


def test_uuid_halves_are_reversed():
    expected = uuid.UUID("12345678-9abc-def0-1234-56789abcdef0")
    raw = expected.bytes[:8][::-1] + expected.bytes[8:][::-1]
    assert from_sql(ValueRef(TypeKind.UUID, raw), Target.UUID) == expected


def test_date():
    assert from_sql(ValueRef(TypeKind.DATE, 0), Target.DATE) == date(1970, 1, 1)
    day = date(2020, 5, 17)
    assert from_sql(ValueRef.of(day), Target.DATE) == day
    with pytest.raises(FromSqlError):
        from_sql(ValueRef.of(1), Target.DATE)


def test_datetime_and_datetime64():
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert from_sql(ValueRef(TypeKind.DATETIME, 0, tz="UTC"), Target.DATETIME) == epoch
    cell64 = ValueRef(TypeKind.DATETIME, 1500, tz="UTC", precision=3)
    assert from_sql(cell64, Target.DATETIME) == epoch + timedelta(milliseconds=1500)
    with pytest.raises(FromSqlError):
        from_sql(ValueRef(TypeKind.DATE, 0), Target.DATETIME)


def test_list_of_strings():
    cell = array(TypeKind.STRING, [ValueRef.of("a"), ValueRef.of("b")])
    assert from_sql_list(cell, Target.STR) == ["a", "b"]
    assert from_sql_list(cell, Target.BYTES) == [b"a", b"b"]


def test_list_element_type_must_match():
    cell = array(TypeKind.INT32, [ValueRef(TypeKind.INT32, 1)])
    with pytest.raises(FromSqlError):
        from_sql_list(cell, Target.STR)
    with pytest.raises(FromSqlError):
        from_sql_list(cell, Target.I64)
    with pytest.raises(FromSqlError):
        from_sql_list(ValueRef.of("x"), Target.STR)


def test_list_of_numbers():
    cell = array(TypeKind.INT32, [ValueRef(TypeKind.INT32, 1), ValueRef(TypeKind.INT32, -2)])
    assert from_sql_list(cell, Target.I32) == [1, -2]
    empty = array(TypeKind.FLOAT64, [])
    assert from_sql_list(empty, Target.F64) == []


def test_list_of_u8_reads_bytes():
    cell = array(TypeKind.UINT8, [ValueRef(TypeKind.UINT8, 1), ValueRef(TypeKind.UINT8, 2)])
    assert from_sql_list(cell, Target.U8) == bytes([1, 2])
    assert from_sql_list(ValueRef.of(b"ab"), Target.U8) == b"ab"
    with pytest.raises(FromSqlError):
        from_sql_list(ValueRef.of(3), Target.U8)


def test_list_of_dates_and_datetimes():
    days = [date(2001, 2, 3), date(1999, 12, 31)]
    cell = array(TypeKind.DATE, [ValueRef.of(d) for d in days])
    assert from_sql_list(cell, Target.DATE) == days

    moment = datetime(2001, 2, 3, 4, 5, 6, tzinfo=timezone.utc)
    dt_cell = ValueRef(
        TypeKind.ARRAY,
        (ValueRef.of(moment),),
        inner=SqlType.datetime(DateTimeType(DateTimeKind.DATETIME32)),
    )
    assert from_sql_list(dt_cell, Target.DATETIME) == [moment]


def test_list_unsupported_target():
    cell = array(TypeKind.STRING, [])
    with pytest.raises(TypeError):
        from_sql_list(cell, Target.UUID)


def test_optional():
    null = ValueRef(TypeKind.NULLABLE, None, inner=SqlType.simple(TypeKind.UINT8))
    present = ValueRef(TypeKind.NULLABLE, ValueRef(TypeKind.UINT8, 9))
    assert from_sql_optional(null, Target.U8) is None
    assert from_sql_optional(present, Target.U8) == 9
    with pytest.raises(FromSqlError):
        from_sql_optional(present, Target.STR)
    with pytest.raises(FromSqlError):
        from_sql_optional(ValueRef(TypeKind.UINT8, 9), Target.U8)


def test_optional_from_owned_value():
    value = Value.of_optional("abc", SqlType.simple(TypeKind.STRING))
    assert from_sql_optional(value, Target.STR) == "abc"
    missing = Value.of_optional(None, SqlType.simple(TypeKind.STRING))
    assert from_sql_optional(missing, Target.STR) is None