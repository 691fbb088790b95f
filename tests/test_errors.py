import pytest

from srtproto.errors import (
    BadDataEncryption,
    BadSRTExtensionMessage,
    BadUDTVersion,
    ByteReader,
    NotEnoughData,
    PacketParseError,
    StreamEncapsulationNotSrt,
    StreamTypeNotUTF8,
)


def test_reads_big_endian_fields():
    reader = ByteReader(b"\x12\x34\x56\x78\x9a\xbc\xde\xf0\x01")
    assert reader.get_u16() == 0x1234
    assert reader.get_u32() == 0x56789ABC
    assert reader.get_u8() == 0xDE
    assert reader.remaining() == 2


def test_signed_read():
    reader = ByteReader(b"\xff\xff\xff\xff")
    assert reader.get_i32() == -1
    assert reader.remaining() == 0


def test_not_enough_data():
    reader = ByteReader(b"\x00\x01\x02")
    with pytest.raises(NotEnoughData):
        reader.get_u32()
    assert reader.remaining() == 3


def test_take_advances_parent():
    reader = ByteReader(b"abcdefgh")
    sub = reader.take(3)
    assert sub.rest() == b"abc"
    assert reader.remaining() == 5
    assert reader.get_bytes(2) == b"de"
    assert reader.rest() == b"fgh"
    assert reader.remaining() == 0


def test_take_too_much():
    with pytest.raises(NotEnoughData):
        ByteReader(b"ab").take(3)


def test_value_errors_carry_value():
    err = BadUDTVersion(7)
    assert err.value == 7
    assert str(err) == "BadUDTVersion(7)"
    assert isinstance(err, PacketParseError)
    assert BadDataEncryption(24).value == 24


@pytest.mark.parametrize(
    "cls", [NotEnoughData, BadSRTExtensionMessage, StreamEncapsulationNotSrt]
)
def test_unit_errors_are_parse_errors(cls):
    with pytest.raises(PacketParseError) as info:
        raise cls()
    assert type(info.value) is cls
    assert str(info.value) == cls.__name__


def test_short_read_is_a_parse_error():
    with pytest.raises(PacketParseError):
        ByteReader(b"\x00").get_u16()


def test_utf8_error_keeps_cause():
    try:
        b"\xff".decode("utf-8")
    except UnicodeDecodeError as cause:
        err = StreamTypeNotUTF8(cause)
    assert err.cause.start == 0
    assert str(err).startswith("StreamTypeNotUTF8(")