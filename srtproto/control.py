"""Control packets: the header shared by all of them and the bodies of each kind."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from .errors import BadControlType, ByteReader, NotEnoughData
from .handshake import HandshakeControlInfo
from .modular import MsgNumber, SeqNumber
from .srt import SrtControlPacket

_CONTROL_BIT = 1 << 15
_U32 = 0xFFFFFFFF

_HANDSHAKE_ID = 0x0
_SRT_ID = 0x7FFF

_ACK_DEFAULT_RTT = 10_000
_ACK_DEFAULT_RTT_VARIANCE = 50_000
_ACK_DEFAULT_BUFFER = 8175
_ACK_DEFAULT_RECV_RATE = 10_000
_ACK_DEFAULT_LINK_CAP = 1_000


def _u32(value: int) -> bytes:
    return (value & _U32).to_bytes(4, "big")


def _i32(value: int) -> bytes:
    return int(value).to_bytes(4, "big", signed=True)


@dataclass(frozen=True)
class KeepAlive:
    """Keeps an idle connection alive."""

    type_id: ClassVar[int] = 0x1

    def __str__(self) -> str:
        return "KeepAlive"


@dataclass(frozen=True)
class Shutdown:
    """Announces that the peer is closing the connection."""

    type_id: ClassVar[int] = 0x5

    def __str__(self) -> str:
        return "Shutdown"


@dataclass(frozen=True)
class Ack2:
    """Acknowledges an ACK; carries that ACK's sequence number."""

    ack_seq_num: int

    type_id: ClassVar[int] = 0x6

    def __str__(self) -> str:
        return f"Ack2({self.ack_seq_num})"


@dataclass(frozen=True)
class Nak:
    """Reports lost packets as a compressed loss list."""

    loss_list: tuple[int, ...] = ()

    type_id: ClassVar[int] = 0x3

    def __post_init__(self) -> None:
        object.__setattr__(self, "loss_list", tuple(self.loss_list))

    def __str__(self) -> str:
        return f"Nak({list(self.loss_list)})"


@dataclass(frozen=True)
class DropRequest:
    """Asks the receiver to drop a message spanning ``first`` to ``last``."""

    msg_to_drop: MsgNumber
    first: SeqNumber
    last: SeqNumber

    type_id: ClassVar[int] = 0x7

    def __str__(self) -> str:
        return f"DropReq(msg={self.msg_to_drop} {self.first}-{self.last})"


@dataclass(frozen=True)
class AckControlInfo:
    """The body of an ACK packet; times are in microseconds."""

    ack_seq_num: int
    ack_number: SeqNumber
    rtt: Optional[int] = None
    rtt_variance: Optional[int] = None
    buffer_available: Optional[int] = None
    packet_recv_rate: Optional[int] = None
    est_link_cap: Optional[int] = None

    type_id: ClassVar[int] = 0x2

    def __str__(self) -> str:
        text = f"Ack(asn={self.ack_seq_num} an={self.ack_number}"
        for label, value in (
            ("rtt", self.rtt),
            ("rttvar", self.rtt_variance),
            ("buf_av", self.buffer_available),
            ("pack_rr", self.packet_recv_rate),
            ("link_cap", self.est_link_cap),
        ):
            if value is not None:
                text += f" {label}={value}"
        return text + ")"


ControlType = Union[
    HandshakeControlInfo,
    KeepAlive,
    AckControlInfo,
    Nak,
    Shutdown,
    Ack2,
    DropRequest,
    SrtControlPacket,
]


def _type_id(control: ControlType) -> int:
    if isinstance(control, HandshakeControlInfo):
        return _HANDSHAKE_ID
    if isinstance(control, SrtControlPacket):
        return _SRT_ID
    return control.type_id


def _additional_info(control: ControlType) -> int:
    if isinstance(control, DropRequest):
        return control.msg_to_drop.value
    if isinstance(control, (Ack2, AckControlInfo)):
        return control.ack_seq_num
    return 0


def _reserved(control: ControlType) -> int:
    if isinstance(control, SrtControlPacket):
        return control.type_id
    return 0


def _optional(reader: ByteReader, signed: bool) -> Optional[int]:
    if reader.remaining() < 4:
        return None
    return reader.get_i32() if signed else reader.get_u32()


def _skip_unused_word(reader: ByteReader) -> None:
    if reader.remaining() >= 4:
        reader.get_u32()


def _parse_body(
    packet_type: int, reserved: int, extra_info: int, reader: ByteReader
) -> ControlType:
    if packet_type == _HANDSHAKE_ID:
        return HandshakeControlInfo.parse(reader)
    if packet_type == KeepAlive.type_id:
        _skip_unused_word(reader)
        return KeepAlive()
    if packet_type == AckControlInfo.type_id:
        if reader.remaining() < 4:
            raise NotEnoughData()
        ack_number = SeqNumber.new_truncate(reader.get_u32())
        return AckControlInfo(
            ack_seq_num=extra_info,
            ack_number=ack_number,
            rtt=_optional(reader, signed=True),
            rtt_variance=_optional(reader, signed=True),
            buffer_available=_optional(reader, signed=True),
            packet_recv_rate=_optional(reader, signed=False),
            est_link_cap=_optional(reader, signed=True),
        )
    if packet_type == Nak.type_id:
        words = []
        while reader.remaining() >= 4:
            words.append(reader.get_u32())
        return Nak(tuple(words))
    if packet_type == Shutdown.type_id:
        _skip_unused_word(reader)
        return Shutdown()
    if packet_type == Ack2.type_id:
        _skip_unused_word(reader)
        return Ack2(extra_info)
    if packet_type == DropRequest.type_id:
        if reader.remaining() < 8:
            raise NotEnoughData()
        return DropRequest(
            msg_to_drop=MsgNumber.new_truncate(extra_info & _U32),
            first=SeqNumber.new_truncate(reader.get_u32()),
            last=SeqNumber.new_truncate(reader.get_u32()),
        )
    if packet_type == _SRT_ID:
        return SrtControlPacket.parse(reserved, reader)
    raise BadControlType(packet_type)


def _serialize_body(control: ControlType) -> bytes:
    if isinstance(control, (HandshakeControlInfo, SrtControlPacket)):
        return control.serialize()
    if isinstance(control, AckControlInfo):
        return b"".join(
            (
                _u32(control.ack_number.value),
                _i32(_ACK_DEFAULT_RTT if control.rtt is None else control.rtt),
                _i32(
                    _ACK_DEFAULT_RTT_VARIANCE
                    if control.rtt_variance is None
                    else control.rtt_variance
                ),
                _i32(
                    _ACK_DEFAULT_BUFFER
                    if control.buffer_available is None
                    else control.buffer_available
                ),
                _u32(
                    _ACK_DEFAULT_RECV_RATE
                    if control.packet_recv_rate is None
                    else control.packet_recv_rate
                ),
                _i32(
                    _ACK_DEFAULT_LINK_CAP
                    if control.est_link_cap is None
                    else control.est_link_cap
                ),
            )
        )
    if isinstance(control, Nak):
        return b"".join(_u32(word) for word in control.loss_list)
    if isinstance(control, DropRequest):
        return _u32(control.first.value) + _u32(control.last.value)
    if isinstance(control, (Ack2, Shutdown, KeepAlive)):
        # The reference peer appends an unused word to these packets.
        return _u32(0)
    raise TypeError(f"not a control packet body: {type(control).__name__}")


@dataclass(frozen=True)
class ControlPacket:
    """A control packet: timestamp (microseconds), destination socket and body."""

    timestamp: int
    dest_sockid: int
    control_type: ControlType

    @classmethod
    def parse(cls, data) -> ControlPacket:
        """Parse a control packet from bytes or from a ByteReader."""
        reader = data if isinstance(data, ByteReader) else ByteReader(data)
        packet_type = reader.get_u16() & ~_CONTROL_BIT
        reserved = reader.get_u16()
        add_info = reader.get_i32()
        timestamp = reader.get_u32()
        dest_sockid = reader.get_u32()
        control_type = _parse_body(packet_type, reserved, add_info, reader)
        return cls(timestamp=timestamp, dest_sockid=dest_sockid, control_type=control_type)

    def serialize(self) -> bytes:
        """Encode the packet, header first."""
        header = b"".join(
            (
                (_type_id(self.control_type) | _CONTROL_BIT).to_bytes(2, "big"),
                _reserved(self.control_type).to_bytes(2, "big"),
                _i32(_additional_info(self.control_type)),
                _u32(self.timestamp),
                _u32(self.dest_sockid),
            )
        )
        return header + _serialize_body(self.control_type)

    def handshake(self) -> Optional[HandshakeControlInfo]:
        """The handshake body, or None if this is another kind of packet."""
        if isinstance(self.control_type, HandshakeControlInfo):
            return self.control_type
        return None

    def __str__(self) -> str:
        return (
            f"{{{self.control_type} ts={self.timestamp / 1e6:.4f}s "
            f"dst={self.dest_sockid}}}"
        )