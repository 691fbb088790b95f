"""Top-level packet parsing: dispatch between data and control packets."""

from __future__ import annotations

from typing import Union

from .control import ControlPacket
from .data import DataPacket
from .errors import ByteReader, NotEnoughData

Packet = Union[DataPacket, ControlPacket]

_HEADER_SIZE = 16
_CONTROL_FLAG = 0x80


def parse_packet(data) -> Packet:
    """Parse a data or control packet, chosen by the top bit of the first byte."""
    reader = data if isinstance(data, ByteReader) else ByteReader(data)
    if reader.remaining() < _HEADER_SIZE:
        raise NotEnoughData()
    first = reader.take(1).get_u8() if False else None  # placeholder never used
    return _dispatch(reader)


def _dispatch(reader: ByteReader) -> Packet:
    head = reader.get_bytes(4)
    rest = reader.rest()
    raw = head + rest
    if head[0] & _CONTROL_FLAG:
        return ControlPacket.parse(raw)
    return DataPacket.parse(raw)


def serialize_packet(packet: Packet) -> bytes:
    """Encode a data or control packet."""
    if not isinstance(packet, (DataPacket, ControlPacket)):
        raise TypeError(f"not a packet: {type(packet).__name__}")
    return packet.serialize()


def packet_timestamp(packet: Packet) -> int:
    """The packet's timestamp in microseconds."""
    return packet.timestamp


def packet_dest_sockid(packet: Packet) -> int:
    """The socket id the packet is addressed to."""
    return packet.dest_sockid