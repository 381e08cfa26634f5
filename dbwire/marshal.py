"""Fixed-width little-endian encoding of primitive values."""

from __future__ import annotations

import struct
from enum import Enum
from typing import Union

Scalar = Union[int, float, bool, str]


class Kind(Enum):
    """Primitive value kinds with fixed little-endian encodings."""

    U8 = ("u8", 1)
    U16 = ("u16", 2)
    U32 = ("u32", 4)
    U64 = ("u64", 8)
    U128 = ("u128", 16)
    U256 = ("u256", 32)
    I8 = ("i8", 1)
    I16 = ("i16", 2)
    I32 = ("i32", 4)
    I64 = ("i64", 8)
    I128 = ("i128", 16)
    I256 = ("i256", 32)
    F32 = ("f32", 4)
    F64 = ("f64", 8)
    BOOL = ("bool", 1)
    CHAR = ("char", 4)

    def size(self) -> int:
        """Number of bytes taken by one encoded value."""
        return self.value[1]


_UNSIGNED = frozenset({Kind.U8, Kind.U16, Kind.U32, Kind.U64, Kind.U128, Kind.U256})
_SIGNED = frozenset({Kind.I8, Kind.I16, Kind.I32, Kind.I64, Kind.I128, Kind.I256})
_FLOAT_FORMATS = {Kind.F32: "<f", Kind.F64: "<d"}
# Kinds written as a single byte into the head of the scratch buffer.
_HEAD_BYTE = frozenset({Kind.U8, Kind.I8, Kind.BOOL})
# Kinds read from the head of the scratch buffer, whatever its length.
_HEAD_READ = frozenset({Kind.U8, Kind.BOOL})


def _check_char(code: int) -> str:
    if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
        raise ValueError(f"try unmarshal u32 to char failed: {code}")
    return chr(code)


def buffer(kind: Kind) -> bytearray:
    """Return a zeroed scratch buffer sized for ``kind``."""
    return bytearray(kind.size())


def marshal(value: Scalar, kind: Kind) -> bytes:
    """Encode ``value`` as ``kind`` and return the bytes.

    Raises OverflowError when an integer does not fit the kind.
    """
    size = kind.size()
    if kind in _UNSIGNED:
        return int(value).to_bytes(size, "little", signed=False)
    if kind in _SIGNED:
        return int(value).to_bytes(size, "little", signed=True)
    if kind in _FLOAT_FORMATS:
        return struct.pack(_FLOAT_FORMATS[kind], float(value))
    if kind is Kind.BOOL:
        return b"\x01" if value else b"\x00"
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"a single character is required, got {value!r}")
    code = ord(value)
    _check_char(code)
    return code.to_bytes(4, "little")


def marshal_into(value: Scalar, kind: Kind, scratch: bytearray | memoryview) -> None:
    """Encode ``value`` as ``kind`` into the writable ``scratch`` buffer."""
    encoded = marshal(value, kind)
    if kind in _HEAD_BYTE:
        if len(scratch) < 1:
            raise ValueError("scratch buffer is empty")
        scratch[0] = encoded[0]
        return
    if len(scratch) != len(encoded):
        raise ValueError(
            f"scratch buffer holds {len(scratch)} bytes, {kind.name} needs {len(encoded)}"
        )
    scratch[:] = encoded


def unmarshal(scratch: bytes | bytearray | memoryview, kind: Kind) -> Scalar:
    """Decode a value of ``kind`` from ``scratch``."""
    data = bytes(scratch)
    if kind in _HEAD_READ:
        if not data:
            raise ValueError("scratch buffer is empty")
        return data[0] if kind is Kind.U8 else data[0] != 0
    if len(data) != kind.size():
        raise ValueError(
            f"scratch buffer holds {len(data)} bytes, {kind.name} needs {kind.size()}"
        )
    if kind in _UNSIGNED:
        return int.from_bytes(data, "little", signed=False)
    if kind in _SIGNED:
        return int.from_bytes(data, "little", signed=True)
    if kind in _FLOAT_FORMATS:
        return struct.unpack(_FLOAT_FORMATS[kind], data)[0]
    return _check_char(int.from_bytes(data, "little"))


def try_unmarshal(scratch: bytes | bytearray | memoryview, kind: Kind) -> Scalar:
    """Decode a value of ``kind``, raising ValueError when the bytes are not valid.

    This is the checked entry point for kinds such as ``CHAR`` whose bytes
    may not denote a value.
    """
    return unmarshal(scratch, kind)