"""Parsing of MySQL client handshake responses and command packets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Optional, Union


class CapabilityFlags(IntFlag):
    """Client/server capability bits of the MySQL protocol."""

    CLIENT_LONG_PASSWORD = 1 << 0
    CLIENT_FOUND_ROWS = 1 << 1
    CLIENT_LONG_FLAG = 1 << 2
    CLIENT_CONNECT_WITH_DB = 1 << 3
    CLIENT_NO_SCHEMA = 1 << 4
    CLIENT_COMPRESS = 1 << 5
    CLIENT_ODBC = 1 << 6
    CLIENT_LOCAL_FILES = 1 << 7
    CLIENT_IGNORE_SPACE = 1 << 8
    CLIENT_PROTOCOL_41 = 1 << 9
    CLIENT_INTERACTIVE = 1 << 10
    CLIENT_SSL = 1 << 11
    CLIENT_IGNORE_SIGPIPE = 1 << 12
    CLIENT_TRANSACTIONS = 1 << 13
    CLIENT_RESERVED = 1 << 14
    CLIENT_SECURE_CONNECTION = 1 << 15
    CLIENT_MULTI_STATEMENTS = 1 << 16
    CLIENT_MULTI_RESULTS = 1 << 17
    CLIENT_PS_MULTI_RESULTS = 1 << 18
    CLIENT_PLUGIN_AUTH = 1 << 19
    CLIENT_CONNECT_ATTRS = 1 << 20
    CLIENT_PLUGIN_AUTH_LENENC_CLIENT_DATA = 1 << 21
    CLIENT_CAN_HANDLE_EXPIRED_PASSWORDS = 1 << 22
    CLIENT_SESSION_TRACK = 1 << 23
    CLIENT_DEPRECATE_EOF = 1 << 24
    CLIENT_OPTIONAL_RESULTSET_METADATA = 1 << 25
    CLIENT_ZSTD_COMPRESSION_ALGORITHM = 1 << 26
    CLIENT_QUERY_ATTRIBUTES = 1 << 27
    MULTI_FACTOR_AUTHENTICATION = 1 << 28
    CLIENT_PROGRESS_OBSOLETE = 1 << 29
    CLIENT_SSL_VERIFY_SERVER_CERT = 1 << 30
    CLIENT_REMEMBER_OPTIONS = 1 << 31

    @classmethod
    def _truncate(cls, bits: int) -> "CapabilityFlags":
        mask = 0
        for flag in cls:
            mask |= flag.value
        return cls(bits & mask)


class CommandByte(IntEnum):
    """First byte of a client command packet."""

    COM_SLEEP = 0x00
    COM_QUIT = 0x01
    COM_INIT_DB = 0x02
    COM_QUERY = 0x03
    COM_FIELD_LIST = 0x04
    COM_CREATE_DB = 0x05
    COM_DROP_DB = 0x06
    COM_REFRESH = 0x07
    COM_DEPRECATED_1 = 0x08
    COM_STATISTICS = 0x09
    COM_PROCESS_INFO = 0x0A
    COM_CONNECT = 0x0B
    COM_PROCESS_KILL = 0x0C
    COM_DEBUG = 0x0D
    COM_PING = 0x0E
    COM_TIME = 0x0F
    COM_DELAYED_INSERT = 0x10
    COM_CHANGE_USER = 0x11
    COM_BINLOG_DUMP = 0x12
    COM_TABLE_DUMP = 0x13
    COM_CONNECT_OUT = 0x14
    COM_REGISTER_SLAVE = 0x15
    COM_STMT_PREPARE = 0x16
    COM_STMT_EXECUTE = 0x17
    COM_STMT_SEND_LONG_DATA = 0x18
    COM_STMT_CLOSE = 0x19
    COM_STMT_RESET = 0x1A
    COM_SET_OPTION = 0x1B
    COM_STMT_FETCH = 0x1C
    COM_DAEMON = 0x1D
    COM_BINLOG_DUMP_GTID = 0x1E
    COM_RESET_CONNECTION = 0x1F


class ParseError(ValueError):
    """Raised when a packet does not match the expected layout."""


class _Reader:
    """Sequential reader over a byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def rest(self) -> bytes:
        return self._data[self._pos :]

    def empty(self) -> bool:
        return self._pos >= len(self._data)

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise ParseError(f"needed {count} bytes, {len(self._data) - self._pos} left")
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def uint(self, size: int) -> int:
        return int.from_bytes(self.take(size), "little")

    def take_until(self, pattern: bytes) -> bytes:
        index = self._data.find(pattern, self._pos)
        if index < 0:
            raise ParseError(f"terminator {pattern!r} not found")
        chunk = self._data[self._pos : index]
        self._pos = index
        return chunk

    def tag(self, pattern: bytes) -> bytes:
        if not self._data.startswith(pattern, self._pos):
            raise ParseError(f"expected {pattern!r}")
        self._pos += len(pattern)
        return pattern

    def nul_terminated(self) -> bytes:
        value = self.take_until(b"\0")
        self.tag(b"\0")
        return value


@dataclass(frozen=True)
class ClientHandshake:
    """Fields of a client handshake response."""

    maxps: int
    capabilities: CapabilityFlags
    collation: int
    db: Optional[bytes]
    username: Optional[bytes]
    auth_response: bytes
    auth_plugin: bytes


def client_handshake(data: bytes, after_tls: bool) -> ClientHandshake:
    """Parse a HandshakeResponse41 or HandshakeResponse320 payload."""
    reader = _Reader(data)
    cap = reader.uint(2)
    capabilities = CapabilityFlags._truncate(cap)

    if CapabilityFlags.CLIENT_PROTOCOL_41 not in capabilities:
        return _handshake_320(reader, capabilities)

    cap2 = reader.uint(2)
    capabilities = CapabilityFlags._truncate(cap2 << 16 | cap)
    maxps = reader.uint(4)
    collation = reader.take(1)[0]
    reader.take(23)

    if not after_tls and CapabilityFlags.CLIENT_SSL in capabilities:
        return ClientHandshake(
            maxps=maxps,
            capabilities=capabilities,
            collation=collation,
            db=None,
            username=None,
            auth_response=b"",
            auth_plugin=b"",
        )

    username = reader.nul_terminated()

    if CapabilityFlags.CLIENT_PLUGIN_AUTH_LENENC_CLIENT_DATA in capabilities:
        size, _ = read_length_encoded_number(reader.rest)
        _skip_length_prefix(reader)
        auth_response = reader.take(size)
    elif CapabilityFlags.CLIENT_SECURE_CONNECTION in capabilities:
        auth_response = reader.take(reader.uint(1))
    else:
        auth_response = reader.take_until(b"\0")

    db = None
    if CapabilityFlags.CLIENT_CONNECT_WITH_DB in capabilities and not reader.empty():
        db = reader.nul_terminated()

    auth_plugin = b""
    if CapabilityFlags.CLIENT_PLUGIN_AUTH in capabilities and not reader.empty():
        auth_plugin = reader.nul_terminated()

    return ClientHandshake(
        maxps=maxps,
        capabilities=capabilities,
        collation=collation,
        db=db,
        username=username,
        auth_response=auth_response,
        auth_plugin=auth_plugin,
    )


def _skip_length_prefix(reader: _Reader) -> None:
    first = reader.take(1)[0]
    reader.take({0xFC: 2, 0xFD: 3, 0xFE: 8}.get(first, 0))


def _handshake_320(reader: _Reader, capabilities: CapabilityFlags) -> ClientHandshake:
    maxps1 = reader.uint(2)
    maxps2 = reader.uint(1)
    maxps = maxps2 << 16 | maxps1
    username = reader.nul_terminated()

    if CapabilityFlags.CLIENT_CONNECT_WITH_DB in capabilities:
        auth_response = reader.tag(b"\0")
        reader.tag(b"\0")
        db: Optional[bytes] = reader.tag(b"\0")
        reader.tag(b"\0")
    else:
        auth_response = reader.rest
        db = None

    return ClientHandshake(
        maxps=maxps,
        capabilities=capabilities,
        collation=0,
        db=db,
        username=username,
        auth_response=auth_response,
        auth_plugin=b"",
    )


def read_length_encoded_number(data: bytes) -> tuple[int, bytes]:
    """Read a length-encoded integer; return the number and the remaining bytes."""
    reader = _Reader(data)
    first = reader.take(1)[0]
    if first == 0xFB:
        return 0, reader.rest
    size = {0xFC: 2, 0xFD: 3, 0xFE: 8}.get(first)
    if size is None:
        return first, reader.rest
    return reader.uint(size), reader.rest


@dataclass(frozen=True)
class Query:
    query: bytes


@dataclass(frozen=True)
class ListFields:
    table: bytes


@dataclass(frozen=True)
class Close:
    stmt: int


@dataclass(frozen=True)
class Prepare:
    query: bytes


@dataclass(frozen=True)
class Init:
    schema: bytes


@dataclass(frozen=True)
class Execute:
    stmt: int
    params: bytes


@dataclass(frozen=True)
class SendLongData:
    stmt: int
    param: int
    data: bytes


@dataclass(frozen=True)
class Ping:
    pass


@dataclass(frozen=True)
class Quit:
    pass


Command = Union[Query, ListFields, Close, Prepare, Init, Execute, SendLongData, Ping, Quit]


def execute(data: bytes) -> Execute:
    """Parse the body of a COM_STMT_EXECUTE packet."""
    reader = _Reader(data)
    stmt = reader.uint(4)
    reader.take(1)  # flags
    reader.uint(4)  # iteration count
    return Execute(stmt=stmt, params=reader.rest)


def send_long_data(data: bytes) -> SendLongData:
    """Parse the body of a COM_STMT_SEND_LONG_DATA packet."""
    reader = _Reader(data)
    stmt = reader.uint(4)
    param = reader.uint(2)
    return SendLongData(stmt=stmt, param=param, data=reader.rest)


def parse(data: bytes) -> Command:
    """Parse a client command packet payload."""
    data = bytes(data)
    if not data:
        raise ParseError("empty command packet")
    head, body = data[0], data[1:]
    if head == CommandByte.COM_QUERY:
        return Query(body)
    if head == CommandByte.COM_FIELD_LIST:
        return ListFields(body)
    if head == CommandByte.COM_INIT_DB:
        return Init(body)
    if head == CommandByte.COM_STMT_PREPARE:
        return Prepare(body)
    if head == CommandByte.COM_STMT_EXECUTE:
        return execute(body)
    if head == CommandByte.COM_STMT_SEND_LONG_DATA:
        return send_long_data(body)
    if head == CommandByte.COM_STMT_CLOSE:
        return Close(_Reader(body).uint(4))
    if head == CommandByte.COM_QUIT:
        return Quit()
    if head == CommandByte.COM_PING:
        return Ping()
    raise ParseError(f"unsupported command byte 0x{head:02x}")