"""SRT extension control packets: handshake extensions, key messages and stream ids."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import ClassVar, Union

from .errors import (
    BadAuth,
    BadCipherKind,
    BadCryptoLength,
    BadKeyPacketType,
    BadKeySign,
    BadSRTConfigExtensionType,
    BadSRTExtensionMessage,
    BadStreamEncapsulation,
    ByteReader,
    NotEnoughData,
    StreamEncapsulationNotSrt,
    StreamTypeNotUTF8,
)

logger = logging.getLogger(__name__)

_MILLISECOND = timedelta(milliseconds=1)


@dataclass(frozen=True, order=True)
class SrtVersion:
    """An SRT version, packed on the wire as ``major.minor.patch`` bytes."""

    major: int
    minor: int
    patch: int

    CURRENT: ClassVar[SrtVersion]

    @classmethod
    def from_int(cls, value: int) -> SrtVersion:
        """Unpack a version from its 32-bit wire form."""
        return cls((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    def to_int(self) -> int:
        """Pack the version into its 32-bit wire form."""
        return (self.major & 0xFF) << 16 | (self.minor & 0xFF) << 8 | (self.patch & 0xFF)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


SrtVersion.CURRENT = SrtVersion(1, 3, 1)


class SrtShakeFlags(enum.IntFlag):
    """Capability flags exchanged in the SRT handshake extension."""

    TSBPDSND = 0x1
    TSBPDRCV = 0x2
    HAICRYPT = 0x4
    TLPKTDROP = 0x8
    NAKREPORT = 0x10
    REXMITFLG = 0x20
    STREAM = 0x40
    FILTERCAP = 0x80
    SUPPORTED = TSBPDSND | TSBPDRCV | HAICRYPT | REXMITFLG


_ALL_SHAKE_FLAGS = 0xFF


class KeyFlags(enum.IntFlag):
    """Which keys (even, odd or both) a key message carries."""

    EVEN = 0b01
    ODD = 0b10


class PacketType(enum.IntEnum):
    MEDIA_STREAM = 1
    KEYING_MATERIAL = 2


class CipherType(enum.IntEnum):
    NONE = 0
    ECB = 1
    CTR = 2
    CBC = 3


class Auth(enum.IntEnum):
    NONE = 0


class StreamEncapsulation(enum.IntEnum):
    UDP = 1
    SRT = 2


class SrtControlType(enum.IntEnum):
    """Type ids of the SRT control packets."""

    REJECT = 0
    HANDSHAKE_REQUEST = 1
    HANDSHAKE_RESPONSE = 2
    KEY_MANAGER_REQUEST = 3
    KEY_MANAGER_RESPONSE = 4
    STREAM_ID = 5
    SMOOTHER = 6


def _enum_value(enum_type, value: int, error):
    try:
        return enum_type(value)
    except ValueError:
        raise error(value) from None


@dataclass(frozen=True)
class SrtHandshake:
    """The SRT handshake extension body."""

    version: SrtVersion
    flags: SrtShakeFlags
    send_latency: timedelta
    recv_latency: timedelta

    @classmethod
    def parse(cls, reader: ByteReader) -> SrtHandshake:
        if reader.remaining() < 12:
            raise NotEnoughData()
        version = SrtVersion.from_int(reader.get_u32())
        raw_flags = reader.get_u32()
        if raw_flags & ~_ALL_SHAKE_FLAGS:
            logger.warning("Unrecognized SRT flags: 0b%s", format(raw_flags, "b"))
        flags = SrtShakeFlags(raw_flags & _ALL_SHAKE_FLAGS)
        peer_latency = reader.get_u16()
        latency = reader.get_u16()
        return cls(
            version=version,
            flags=flags,
            send_latency=timedelta(milliseconds=peer_latency),
            recv_latency=timedelta(milliseconds=latency),
        )

    def serialize(self) -> bytes:
        send_ms = (self.send_latency // _MILLISECOND) & 0xFFFF
        recv_ms = (self.recv_latency // _MILLISECOND) & 0xFFFF
        return (
            self.version.to_int().to_bytes(4, "big")
            + int(self.flags).to_bytes(4, "big")
            + send_ms.to_bytes(2, "big")
            + recv_ms.to_bytes(2, "big")
        )


@dataclass(frozen=True)
class SrtKeyMessage:
    """A keying-material message carrying salt and wrapped keys."""

    pt: PacketType
    key_flags: KeyFlags
    keki: int
    cipher: CipherType
    auth: Auth
    salt: bytes
    wrapped_keys: bytes

    SIGN: ClassVar[int] = (
        (ord("H") - ord("@")) << 10 | (ord("A") - ord("@")) << 5 | (ord("I") - ord("@"))
    )

    @classmethod
    def parse(cls, reader: ByteReader) -> SrtKeyMessage:
        if reader.remaining() < 16:
            raise NotEnoughData()

        vers_pt = reader.get_u8()
        if vers_pt & 0b1000_0000:
            raise BadSRTExtensionMessage()
        if vers_pt >> 4 != 1:
            raise BadSRTExtensionMessage()
        pt = _enum_value(PacketType, vers_pt & 0x0F, BadKeyPacketType)

        sign = reader.get_u16()
        if sign != cls.SIGN:
            raise BadKeySign(sign)

        key_flags = KeyFlags(reader.get_u8() & 0b11)
        keki = reader.get_u32()

        cipher = _enum_value(CipherType, reader.get_u8(), BadCipherKind)
        auth = _enum_value(Auth, reader.get_u8(), BadAuth)
        se = _enum_value(StreamEncapsulation, reader.get_u8(), BadStreamEncapsulation)
        if se is not StreamEncapsulation.SRT:
            raise StreamEncapsulationNotSrt()
        reader.get_u8()  # resv1

        reader.get_u16()  # resv2
        salt_len = reader.get_u8() * 4
        key_len = reader.get_u8() * 4
        if key_len not in (16, 24, 32):
            raise BadCryptoLength(key_len)

        wrapped_len = key_len * bin(key_flags).count("1") + 8
        if reader.remaining() < salt_len + wrapped_len:
            raise NotEnoughData()

        salt = reader.get_bytes(salt_len)
        wrapped_keys = reader.get_bytes(wrapped_len)
        return cls(
            pt=pt,
            key_flags=key_flags,
            keki=keki,
            cipher=cipher,
            auth=auth,
            salt=salt,
            wrapped_keys=wrapped_keys,
        )

    def serialize(self) -> bytes:
        key_count = bin(self.key_flags).count("1")
        if key_count == 0:
            raise ValueError("key message must carry at least one key")
        key_len = (len(self.wrapped_keys) - 8) // key_count
        header = bytes(
            [
                1 << 4 | int(self.pt),
                *self.SIGN.to_bytes(2, "big"),
                int(self.key_flags),
                *self.keki.to_bytes(4, "big"),
                int(self.cipher),
                int(self.auth),
                int(StreamEncapsulation.SRT),
                0,
                0,
                0,
                (len(self.salt) // 4) & 0xFF,
                (key_len // 4) & 0xFF,
            ]
        )
        return header + bytes(self.salt) + bytes(self.wrapped_keys)


_Body = Union[SrtHandshake, SrtKeyMessage, str, None]

_BODY_TYPES = {
    SrtControlType.REJECT: type(None),
    SrtControlType.HANDSHAKE_REQUEST: SrtHandshake,
    SrtControlType.HANDSHAKE_RESPONSE: SrtHandshake,
    SrtControlType.KEY_MANAGER_REQUEST: SrtKeyMessage,
    SrtControlType.KEY_MANAGER_RESPONSE: SrtKeyMessage,
    SrtControlType.STREAM_ID: str,
    SrtControlType.SMOOTHER: type(None),
}

_LABELS = {
    SrtControlType.HANDSHAKE_REQUEST: "hsreq",
    SrtControlType.HANDSHAKE_RESPONSE: "hsresp",
    SrtControlType.KEY_MANAGER_REQUEST: "kmreq",
    SrtControlType.KEY_MANAGER_RESPONSE: "kmresp",
    SrtControlType.STREAM_ID: "streamid",
}


@dataclass(frozen=True)
class SrtControlPacket:
    """An SRT control packet: its kind and the body that kind carries."""

    kind: SrtControlType
    body: _Body = field(default=None)

    def __post_init__(self) -> None:
        kind = SrtControlType(self.kind)
        object.__setattr__(self, "kind", kind)
        if not isinstance(self.body, _BODY_TYPES[kind]):
            raise TypeError(f"{kind.name} cannot carry {type(self.body).__name__}")

    @property
    def type_id(self) -> int:
        return int(self.kind)

    @classmethod
    def parse(cls, packet_type: int, reader: ByteReader) -> SrtControlPacket:
        if packet_type == SrtControlType.REJECT:
            return cls(SrtControlType.REJECT)
        if packet_type in (SrtControlType.HANDSHAKE_REQUEST, SrtControlType.HANDSHAKE_RESPONSE):
            return cls(SrtControlType(packet_type), SrtHandshake.parse(reader))
        if packet_type in (
            SrtControlType.KEY_MANAGER_REQUEST,
            SrtControlType.KEY_MANAGER_RESPONSE,
        ):
            return cls(SrtControlType(packet_type), SrtKeyMessage.parse(reader))
        if packet_type == SrtControlType.STREAM_ID:
            raw = reader.rest().rstrip(b"\x00")
            try:
                return cls(SrtControlType.STREAM_ID, raw.decode("utf-8"))
            except UnicodeDecodeError as exc:
                raise StreamTypeNotUTF8(exc) from exc
        raise BadSRTConfigExtensionType(packet_type)

    def serialize(self) -> bytes:
        if isinstance(self.body, (SrtHandshake, SrtKeyMessage)):
            return self.body.serialize()
        if isinstance(self.body, str):
            encoded = self.body.encode("utf-8")
            return encoded + bytes(-len(encoded) % 4)
        raise ValueError(f"{self.kind.name} packets have no serializable body")

    def size_words(self) -> int:
        """Size of the serialized body in 32-bit words."""
        if isinstance(self.body, SrtHandshake):
            return 3
        if isinstance(self.body, SrtKeyMessage):
            return 4 + len(self.body.salt) // 4 + len(self.body.wrapped_keys) // 4
        if isinstance(self.body, str):
            return (len(self.body.encode("utf-8")) + 3) // 4
        raise ValueError(f"{self.kind.name} packets have no serializable body")

    def __str__(self) -> str:
        if self.kind is SrtControlType.REJECT:
            return "reject"
        if self.kind is SrtControlType.SMOOTHER:
            return "smoother"
        if self.kind is SrtControlType.STREAM_ID:
            return f"streamid={self.body}"
        return f"{_LABELS[self.kind]}={self.body!r}"