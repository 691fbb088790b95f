"""Handshake control information for UDT version 4 and SRT version 5 handshakes."""

from __future__ import annotations

import enum
import ipaddress
import logging
from dataclasses import dataclass
from typing import Optional, Union

from .errors import (
    BadConnectionType,
    BadSocketType,
    BadSRTConfigExtensionType,
    BadSRTHsExtensionType,
    BadSRTKmExtensionType,
    BadUDTVersion,
    ByteReader,
    NotEnoughData,
)
from .modular import SeqNumber
from .srt import SrtControlPacket, SrtControlType

logger = logging.getLogger(__name__)

SRT_MAGIC_CODE = 0x4A17

_HANDSHAKE_FIXED_SIZE = 8 * 4 + 16
_VALID_CRYPTO_SIZES = (0, 16, 24, 32)


class ShakeType(enum.IntEnum):
    """Where in the handshake exchange a packet lies."""

    INDUCTION = 1
    WAVEAHAND = 0
    CONCLUSION = -1
    AGREEMENT = -2


class SocketType(enum.IntEnum):
    """The UDT socket type carried by version 4 handshakes."""

    STREAM = 1
    DATAGRAM = 2


class ExtFlags(enum.IntFlag):
    """Which SRT extensions follow a version 5 handshake."""

    HS = 0b001
    KM = 0b010
    CONFIG = 0b100


_ALL_EXT_FLAGS = 0b111

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class HSV5Info:
    """The version 5 specific part of a handshake."""

    crypto_size: int = 0
    ext_hs: Optional[SrtControlPacket] = None
    ext_km: Optional[SrtControlPacket] = None
    sid: Optional[str] = None

    def has_extensions(self) -> bool:
        return self.ext_hs is not None or self.ext_km is not None or self.sid is not None

    def __str__(self) -> str:
        text = f"SRT: crypto={self.crypto_size}"
        if self.ext_hs is not None:
            text += f" hs={self.ext_hs}"
        if self.ext_km is not None:
            text += f" km={self.ext_km}"
        if self.sid is not None:
            text += f" sid={self.sid!r}"
        return text


def _enum_value(enum_type, value: int, error):
    try:
        return enum_type(value)
    except ValueError:
        raise error(value) from None


def _parse_peer_addr(raw: bytes) -> IpAddress:
    if raw[4:] == bytes(12):
        return ipaddress.IPv4Address(bytes(reversed(raw[:4])))
    return ipaddress.IPv6Address(raw)


def _serialize_peer_addr(addr: IpAddress) -> bytes:
    packed = bytes(reversed(addr.packed))
    if isinstance(addr, ipaddress.IPv4Address):
        return packed + bytes(12)
    return packed


def _read_block_header(reader: ByteReader) -> tuple[int, int]:
    if reader.remaining() < 4:
        raise NotEnoughData()
    return reader.get_u16(), reader.get_u16()


def _take_block(reader: ByteReader, size_words: int) -> ByteReader:
    size = size_words * 4
    if reader.remaining() < size:
        raise NotEnoughData()
    return reader.take(size)


def _parse_v5(
    reader: ByteReader, crypto_size: int, type_ext: int, shake_type: ShakeType
) -> HSV5Info:
    if crypto_size not in _VALID_CRYPTO_SIZES:
        logger.warning(
            "Unrecognized crypto key length: %d, disabling encryption. "
            "Should be 0, 16, 24, or 32 bytes. Disabling crypto.",
            crypto_size,
        )
        crypto_size = 0

    if shake_type is ShakeType.INDUCTION:
        if type_ext != SRT_MAGIC_CODE:
            logger.warning(
                "HSv5 induction response did not have SRT_MAGIC_CODE, which is suspicious"
            )
        return HSV5Info()

    if type_ext & ~_ALL_EXT_FLAGS:
        logger.warning("Unnecessary bits in extensions flags: %s", format(type_ext, "b"))
    extensions = ExtFlags(type_ext & _ALL_EXT_FLAGS)

    ext_hs = None
    if extensions & ExtFlags.HS:
        pack_type, size_words = _read_block_header(reader)
        block = _take_block(reader, size_words)
        if pack_type not in (
            SrtControlType.HANDSHAKE_REQUEST,
            SrtControlType.HANDSHAKE_RESPONSE,
        ):
            raise BadSRTHsExtensionType(pack_type)
        ext_hs = SrtControlPacket.parse(pack_type, block)

    ext_km = None
    if extensions & ExtFlags.KM:
        pack_type, _ = _read_block_header(reader)
        if pack_type not in (
            SrtControlType.KEY_MANAGER_REQUEST,
            SrtControlType.KEY_MANAGER_RESPONSE,
        ):
            raise BadSRTKmExtensionType(pack_type)
        ext_km = SrtControlPacket.parse(pack_type, reader)

    sid = None
    if extensions & ExtFlags.CONFIG:
        while reader.remaining() > 4:
            pack_type, size_words = _read_block_header(reader)
            block = _take_block(reader, size_words)
            packet = SrtControlPacket.parse(pack_type, block)
            if packet.kind is not SrtControlType.STREAM_ID:
                raise BadSRTConfigExtensionType(pack_type)
            sid = packet.body

    return HSV5Info(crypto_size=crypto_size, ext_hs=ext_hs, ext_km=ext_km, sid=sid)


@dataclass(frozen=True)
class HandshakeControlInfo:
    """The control information field of a handshake packet."""

    init_seq_num: SeqNumber
    max_packet_size: int
    max_flow_size: int
    shake_type: ShakeType
    socket_id: int
    syn_cookie: int
    peer_addr: IpAddress
    info: Union[SocketType, HSV5Info]

    def __post_init__(self) -> None:
        object.__setattr__(self, "peer_addr", ipaddress.ip_address(self.peer_addr))
        object.__setattr__(self, "shake_type", ShakeType(self.shake_type))

    def version(self) -> int:
        """The UDT handshake version: 4 for plain UDT, 5 for SRT."""
        return 5 if isinstance(self.info, HSV5Info) else 4

    def _type_flags(self) -> int:
        if not isinstance(self.info, HSV5Info):
            return int(SocketType(self.info))
        hs = self.info
        induction = self.shake_type is ShakeType.INDUCTION
        if induction and hs.has_extensions():
            raise ValueError("Handshake is both induction and has SRT extensions, not valid")

        flags = ExtFlags(0)
        if hs.ext_hs is not None:
            flags |= ExtFlags.HS
        if hs.ext_km is not None:
            flags |= ExtFlags.KM
        if hs.sid is not None:
            flags |= ExtFlags.CONFIG
        low = SRT_MAGIC_CODE if induction else int(flags)
        return ((hs.crypto_size & 0xFF) >> 3 << 16) | low

    @classmethod
    def parse(cls, reader: ByteReader) -> HandshakeControlInfo:
        """Read the handshake body that follows a control packet header."""
        if reader.remaining() < _HANDSHAKE_FIXED_SIZE:
            raise NotEnoughData()

        udt_version = reader.get_i32()
        if udt_version not in (4, 5):
            raise BadUDTVersion(udt_version)

        crypto_size = (reader.get_u16() << 3) & 0xFFFF
        type_ext = reader.get_u16()
        init_seq_num = SeqNumber.new_truncate(reader.get_u32())
        max_packet_size = reader.get_u32()
        max_flow_size = reader.get_u32()
        shake_type = _enum_value(ShakeType, reader.get_i32(), BadConnectionType)
        socket_id = reader.get_u32()
        syn_cookie = reader.get_i32()
        peer_addr = _parse_peer_addr(reader.get_bytes(16))

        if udt_version == 4:
            info: Union[SocketType, HSV5Info] = _enum_value(
                SocketType, type_ext, BadSocketType
            )
        else:
            info = _parse_v5(reader, crypto_size, type_ext, shake_type)

        return cls(
            init_seq_num=init_seq_num,
            max_packet_size=max_packet_size,
            max_flow_size=max_flow_size,
            shake_type=shake_type,
            socket_id=socket_id,
            syn_cookie=syn_cookie,
            peer_addr=peer_addr,
            info=info,
        )

    def serialize(self) -> bytes:
        """Encode the handshake body, including any SRT extensions."""
        parts = [
            self.version().to_bytes(4, "big"),
            self._type_flags().to_bytes(4, "big"),
            self.init_seq_num.value.to_bytes(4, "big"),
            self.max_packet_size.to_bytes(4, "big"),
            self.max_flow_size.to_bytes(4, "big"),
            int(self.shake_type).to_bytes(4, "big", signed=True),
            self.socket_id.to_bytes(4, "big"),
            self.syn_cookie.to_bytes(4, "big", signed=True),
            _serialize_peer_addr(self.peer_addr),
        ]

        if isinstance(self.info, HSV5Info):
            hs = self.info
            sid_packet = (
                None
                if hs.sid is None
                else SrtControlPacket(SrtControlType.STREAM_ID, hs.sid)
            )
            for ext in (hs.ext_hs, hs.ext_km, sid_packet):
                if ext is None:
                    continue
                parts.append(ext.type_id.to_bytes(2, "big"))
                parts.append(ext.size_words().to_bytes(2, "big"))
                parts.append(ext.serialize())

        return b"".join(parts)

    def __str__(self) -> str:
        info = self.info if isinstance(self.info, HSV5Info) else f"UDT: {self.info.name}"
        return f"HS {self.shake_type.name} from={self.socket_id} {info}"