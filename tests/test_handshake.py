import ipaddress
from datetime import timedelta

import pytest

from srtproto.errors import (
    BadConnectionType,
    BadSocketType,
    BadUDTVersion,
    ByteReader,
    NotEnoughData,
)
from srtproto.handshake import (
    SRT_MAGIC_CODE,
    ExtFlags,
    HandshakeControlInfo,
    HSV5Info,
    ShakeType,
    SocketType,
)
from srtproto.modular import SeqNumber
from srtproto.srt import (
    Auth,
    CipherType,
    KeyFlags,
    PacketType,
    SrtControlPacket,
    SrtControlType,
    SrtHandshake,
    SrtKeyMessage,
    SrtShakeFlags,
    SrtVersion,
)

RAW_SRT = bytes.fromhex(
    "8000000000000000000F9EC400000000000000050000000144BEA60D000005DC00002000"
    "FFFFFFFF3D6936B6E3E405DD0100007F00000000000000000000000000010003000103"
    "010000002F00780000"
)

RAW_CRYPTO = bytes.fromhex(
    "800000000000000000175E8A0000000000000005000000036FEFB8D8000005DC00002000"
    "FFFFFFFF35E790ED5D16CCEA0100007F00000000000000000000000000010003000103"
    "010000002F01F401F40003000E122029010000000002000200000004049D75B0AC924C"
    "6E4C9EC40FEB4FE973DB1D215D426C18A2871EBF77E2646D9BAB15DBD7689AEF60EC"
)

RAW_CRYPTO_PT2 = bytes.fromhex(
    "8000000000000000000000000C110D94000000050000000374B7526E000005DC00002000"
    "FFFFFFFF18C1CED1F3819B720100007F00000000000000000000000000020003000103"
    "010000003F03E803E80004000E12202901000000000200020000000404D3B3D84BE118"
    "8A4EBDA4DA16EA65D522D82DE544E1BE06B6ED8128BF15AA4E18EC50EAA95546B101"
)

MAIN_FLAGS = (
    SrtShakeFlags.TSBPDSND
    | SrtShakeFlags.TSBPDRCV
    | SrtShakeFlags.HAICRYPT
    | SrtShakeFlags.TLPKTDROP
    | SrtShakeFlags.REXMITFLG
)


def _body(packet: bytes) -> bytes:
    return packet[16:]


def _make(info, shake_type=ShakeType.CONCLUSION, **overrides):
    fields = dict(
        init_seq_num=SeqNumber(0),
        max_packet_size=1816,
        max_flow_size=0,
        shake_type=shake_type,
        socket_id=0,
        syn_cookie=0,
        peer_addr="127.0.0.1",
        info=info,
    )
    fields.update(overrides)
    return HandshakeControlInfo(**fields)


def _round_trip(hs: HandshakeControlInfo) -> tuple[HandshakeControlInfo, int]:
    reader = ByteReader(hs.serialize())
    parsed = HandshakeControlInfo.parse(reader)
    return parsed, reader.remaining()


def test_handshake_ser_des():
    hs = HandshakeControlInfo(
        init_seq_num=SeqNumber.new_truncate(1_827_131),
        max_packet_size=1500,
        max_flow_size=25600,
        shake_type=ShakeType.CONCLUSION,
        socket_id=1231,
        syn_cookie=0,
        peer_addr="127.0.0.1",
        info=HSV5Info(
            crypto_size=0,
            ext_hs=SrtControlPacket(
                SrtControlType.HANDSHAKE_RESPONSE,
                SrtHandshake(
                    version=SrtVersion.CURRENT,
                    flags=SrtShakeFlags.NAKREPORT | SrtShakeFlags.TSBPDSND,
                    send_latency=timedelta(milliseconds=3000),
                    recv_latency=timedelta(milliseconds=12345),
                ),
            ),
        ),
    )
    parsed, remaining = _round_trip(hs)
    assert remaining == 0
    assert parsed == hs


def test_raw_handshake_srt():
    parsed = HandshakeControlInfo.parse(ByteReader(_body(RAW_SRT)))
    expected = HandshakeControlInfo(
        init_seq_num=SeqNumber(1_153_345_037),
        max_packet_size=1500,
        max_flow_size=8192,
        shake_type=ShakeType.CONCLUSION,
        socket_id=1_030_305_462,
        syn_cookie=-471_595_555,
        peer_addr=ipaddress.ip_address("127.0.0.1"),
        info=HSV5Info(
            crypto_size=0,
            ext_hs=SrtControlPacket(
                SrtControlType.HANDSHAKE_REQUEST,
                SrtHandshake(
                    version=SrtVersion(1, 3, 1),
                    flags=MAIN_FLAGS,
                    send_latency=timedelta(milliseconds=120),
                    recv_latency=timedelta(0),
                ),
            ),
        ),
    )
    assert parsed == expected
    assert parsed.serialize() == _body(RAW_SRT)


def test_raw_handshake_crypto():
    parsed = HandshakeControlInfo.parse(ByteReader(_body(RAW_CRYPTO)))
    expected = HandshakeControlInfo(
        init_seq_num=SeqNumber(1_877_981_400),
        max_packet_size=1_500,
        max_flow_size=8_192,
        shake_type=ShakeType.CONCLUSION,
        socket_id=904_368_365,
        syn_cookie=1_561_775_338,
        peer_addr="127.0.0.1",
        info=HSV5Info(
            crypto_size=0,
            ext_hs=SrtControlPacket(
                SrtControlType.HANDSHAKE_REQUEST,
                SrtHandshake(
                    version=SrtVersion(1, 3, 1),
                    flags=MAIN_FLAGS,
                    send_latency=timedelta(milliseconds=500),
                    recv_latency=timedelta(milliseconds=500),
                ),
            ),
            ext_km=SrtControlPacket(
                SrtControlType.KEY_MANAGER_REQUEST,
                SrtKeyMessage(
                    pt=PacketType.KEYING_MATERIAL,
                    key_flags=KeyFlags.EVEN,
                    keki=0,
                    cipher=CipherType.CTR,
                    auth=Auth.NONE,
                    salt=bytes.fromhex("9D75B0AC924C6E4C9EC40FEB4FE973DB"),
                    wrapped_keys=bytes.fromhex(
                        "1D215D426C18A2871EBF77E2646D9BAB15DBD7689AEF60EC"
                    ),
                ),
            ),
        ),
    )
    assert parsed == expected
    assert parsed.serialize() == _body(RAW_CRYPTO)


def test_raw_handshake_crypto_pt2():
    parsed = HandshakeControlInfo.parse(ByteReader(_body(RAW_CRYPTO_PT2)))
    assert parsed.version() == 5
    assert parsed.shake_type is ShakeType.CONCLUSION
    assert parsed.info.ext_hs.kind is SrtControlType.HANDSHAKE_RESPONSE
    assert parsed.info.ext_hs.body.send_latency == timedelta(milliseconds=1000)
    assert int(parsed.info.ext_hs.body.flags) == 0x3F
    assert parsed.info.ext_km.kind is SrtControlType.KEY_MANAGER_RESPONSE
    assert len(parsed.info.ext_km.body.wrapped_keys) == 24
    assert parsed.serialize() == _body(RAW_CRYPTO_PT2)


def test_enc_size():
    hs = _make(HSV5Info(crypto_size=16))
    parsed, remaining = _round_trip(hs)
    assert remaining == 0
    assert parsed == hs
    assert parsed.info.crypto_size == 16


def test_sid():
    hs = _make(HSV5Info(sid="Hello hello"))
    parsed, remaining = _round_trip(hs)
    assert parsed == hs
    assert remaining == 0


def test_sid_sets_config_flag():
    data = _make(HSV5Info(sid="abc")).serialize()
    assert int.from_bytes(data[4:8], "big") == int(ExtFlags.CONFIG)


def test_crypto_size_encoded_in_upper_word():
    data = _make(HSV5Info(crypto_size=32)).serialize()
    assert int.from_bytes(data[4:8], "big") == 4 << 16


def test_induction_uses_magic_code():
    hs = _make(HSV5Info(), shake_type=ShakeType.INDUCTION)
    data = hs.serialize()
    assert int.from_bytes(data[4:8], "big") == SRT_MAGIC_CODE
    parsed, remaining = _round_trip(hs)
    assert parsed == hs
    assert remaining == 0


def test_induction_with_extensions_is_rejected():
    hs = _make(HSV5Info(sid="stream"), shake_type=ShakeType.INDUCTION)
    with pytest.raises(ValueError):
        hs.serialize()


def test_v4_round_trip():
    hs = _make(SocketType.DATAGRAM, syn_cookie=-5, socket_id=77)
    parsed, remaining = _round_trip(hs)
    assert parsed == hs
    assert parsed.version() == 4
    assert remaining == 0


def test_ipv4_address_bytes_are_reversed():
    data = _make(SocketType.STREAM, peer_addr="10.1.2.3").serialize()
    assert data[32:48] == bytes([3, 2, 1, 10]) + bytes(12)


def test_bad_udt_version():
    data = bytearray(_make(SocketType.STREAM).serialize())
    data[0:4] = (3).to_bytes(4, "big")
    with pytest.raises(BadUDTVersion) as info:
        HandshakeControlInfo.parse(ByteReader(bytes(data)))
    assert info.value.value == 3


def test_bad_shake_type():
    data = bytearray(_make(SocketType.STREAM).serialize())
    data[20:24] = (7).to_bytes(4, "big", signed=True)
    with pytest.raises(BadConnectionType) as info:
        HandshakeControlInfo.parse(ByteReader(bytes(data)))
    assert info.value.value == 7


def test_bad_socket_type():
    data = bytearray(_make(SocketType.STREAM).serialize())
    data[4:8] = (9).to_bytes(4, "big")
    with pytest.raises(BadSocketType) as info:
        HandshakeControlInfo.parse(ByteReader(bytes(data)))
    assert info.value.value == 9


def test_not_enough_data():
    data = _make(SocketType.STREAM).serialize()[:40]
    with pytest.raises(NotEnoughData):
        HandshakeControlInfo.parse(ByteReader(data))


def test_truncated_extension_block():
    data = _body(RAW_SRT)[:-4]
    with pytest.raises(NotEnoughData):
        HandshakeControlInfo.parse(ByteReader(data))


def test_unknown_crypto_size_disables_crypto():
    data = bytearray(_make(HSV5Info()).serialize())
    data[4:6] = (1).to_bytes(2, "big")
    parsed = HandshakeControlInfo.parse(ByteReader(bytes(data)))
    assert parsed.info.crypto_size == 0


def test_str_mentions_shake_type_and_sid():
    text = str(_make(HSV5Info(sid="cam"), socket_id=12))
    assert text.startswith("HS CONCLUSION from=12")
    assert "sid='cam'" in text