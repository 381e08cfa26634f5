import pytest

from dbwire.mysql_commands import (
    CapabilityFlags,
    ClientHandshake,
    Close,
    Execute,
    Init,
    ListFields,
    ParseError,
    Ping,
    Prepare,
    Query,
    Quit,
    SendLongData,
    client_handshake,
    execute,
    parse,
    read_length_encoded_number,
    send_long_data,
)

UTF8_GENERAL_CI = 33

HANDSHAKE_PACKET = bytes(
    [
        0x5B, 0x00, 0x00, 0x01, 0x8D, 0xA6, 0xFF, 0x09, 0x00, 0x00, 0x00, 0x01, 0x21, 0x00, 0x00,
        0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x64, 0x65, 0x66, 0x61, 0x75, 0x6C, 0x74, 0x00, 0x14,
        0xF7, 0xD1, 0x6C, 0xE9, 0x0D, 0x2F, 0x34, 0xB0, 0x2F, 0xD8, 0x1D, 0x18, 0xC7, 0xA4, 0xE8,
        0x98, 0x97, 0x67, 0xEB, 0xAD, 0x64, 0x65, 0x66, 0x61, 0x75, 0x6C, 0x74, 0x00, 0x6D, 0x79,
        0x73, 0x71, 0x6C, 0x5F, 0x6E, 0x61, 0x74, 0x69, 0x76, 0x65, 0x5F, 0x70, 0x61, 0x73, 0x73,
        0x77, 0x6F, 0x72, 0x64, 0x00,
    ]
)

REQUEST_BODY = bytes(
    [
        0x73, 0x65, 0x6C, 0x65, 0x63, 0x74, 0x20, 0x40, 0x40, 0x76,
        0x65, 0x72, 0x73, 0x69, 0x6F, 0x6E, 0x5F, 0x63, 0x6F, 0x6D, 0x6D, 0x65, 0x6E, 0x74, 0x20,
        0x6C, 0x69, 0x6D, 0x69, 0x74, 0x20, 0x31,
    ]
)


def _payload(packet: bytes) -> bytes:
    length = int.from_bytes(packet[:3], "little")
    payload = packet[4:]
    assert len(payload) == length
    return payload


def test_it_parses_handshake():
    handshake = client_handshake(_payload(HANDSHAKE_PACKET), False)
    assert CapabilityFlags.CLIENT_LONG_PASSWORD in handshake.capabilities
    assert CapabilityFlags.CLIENT_MULTI_RESULTS in handshake.capabilities
    assert CapabilityFlags.CLIENT_CONNECT_WITH_DB in handshake.capabilities
    assert CapabilityFlags.CLIENT_DEPRECATE_EOF in handshake.capabilities
    assert handshake.collation == UTF8_GENERAL_CI
    assert handshake.username == b"default"
    assert handshake.maxps == 16777216
    assert len(handshake.auth_response) == 20
    assert handshake.db == b"default"
    assert handshake.auth_plugin == b"mysql_native_password"


def test_it_parses_request():
    packet = bytes([0x21, 0x00, 0x00, 0x00, 0x03]) + REQUEST_BODY
    assert parse(_payload(packet)) == Query(b"select @@version_comment limit 1")


def test_it_handles_list_fields():
    packet = bytes([0x21, 0x00, 0x00, 0x00, 0x04]) + REQUEST_BODY
    assert parse(_payload(packet)) == ListFields(b"select @@version_comment limit 1")


def _header41(caps: int, collation: int = UTF8_GENERAL_CI) -> bytes:
    return caps.to_bytes(4, "little") + (1024).to_bytes(4, "little") + bytes([collation]) + bytes(23)


def test_ssl_request_before_tls_stops_early():
    caps = CapabilityFlags.CLIENT_PROTOCOL_41 | CapabilityFlags.CLIENT_SSL
    handshake = client_handshake(_header41(caps), False)
    assert handshake == ClientHandshake(
        maxps=1024,
        capabilities=caps,
        collation=UTF8_GENERAL_CI,
        db=None,
        username=None,
        auth_response=b"",
        auth_plugin=b"",
    )


def test_after_tls_reads_username_and_secure_auth():
    caps = (
        CapabilityFlags.CLIENT_PROTOCOL_41
        | CapabilityFlags.CLIENT_SSL
        | CapabilityFlags.CLIENT_SECURE_CONNECTION
    )
    body = _header41(caps) + b"bob\0" + bytes([3]) + b"abc"
    handshake = client_handshake(body, True)
    assert handshake.username == b"bob"
    assert handshake.auth_response == b"abc"
    assert handshake.db is None
    assert handshake.auth_plugin == b""


def test_handshake_320_without_db():
    body = (1).to_bytes(2, "little") + bytes([0x00, 0x01, 0x02]) + b"bob\0" + b"tail"
    handshake = client_handshake(body, False)
    assert handshake.maxps == 0x020100
    assert handshake.username == b"bob"
    assert handshake.auth_response == b"tail"
    assert handshake.collation == 0
    assert handshake.db is None


def test_truncated_handshake_raises():
    with pytest.raises(ParseError):
        client_handshake(b"\x00\x02\x00", False)


@pytest.mark.parametrize(
    "data, number, rest",
    [
        (b"\x05xy", 5, b"xy"),
        (b"\xfb", 0, b""),
        (b"\xfc\x34\x12z", 0x1234, b"z"),
        (b"\xfd\x01\x02\x03", 0x030201, b""),
        (b"\xfe" + (2**40).to_bytes(8, "little"), 2**40, b""),
        (b"\xff", 255, b""),
    ],
)
def test_read_length_encoded_number(data, number, rest):
    assert read_length_encoded_number(data) == (number, rest)


def test_read_length_encoded_number_truncated():
    with pytest.raises(ParseError):
        read_length_encoded_number(b"\xfc\x01")


def test_execute_and_long_data():
    body = (7).to_bytes(4, "little") + b"\x00" + (1).to_bytes(4, "little") + b"params"
    assert execute(body) == Execute(stmt=7, params=b"params")
    assert parse(b"\x17" + body) == Execute(stmt=7, params=b"params")
    long_body = (9).to_bytes(4, "little") + (2).to_bytes(2, "little") + b"blob"
    assert send_long_data(long_body) == SendLongData(stmt=9, param=2, data=b"blob")
    assert parse(b"\x18" + long_body) == SendLongData(stmt=9, param=2, data=b"blob")


def test_simple_commands():
    assert parse(b"\x16select 1") == Prepare(b"select 1")
    assert parse(b"\x02db") == Init(b"db")
    assert parse(b"\x19" + (3).to_bytes(4, "little")) == Close(3)
    assert parse(b"\x0e") == Ping()
    assert parse(b"\x01") == Quit()


@pytest.mark.parametrize("data", [b"", b"\x00", b"\x19\x01", b"\x17\x01\x00"])
def test_parse_errors(data):
    with pytest.raises(ParseError):
        parse(data)