"""Data packets: the header carrying sequence, message and delivery flags, and the payload."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .errors import BadDataEncryption, ByteReader
from .modular import MsgNumber, SeqNumber

_ENCRYPTION_MASK = 0b0001_1000
_LOCATION_MASK = 0b1100_0000
_IN_ORDER_BIT = 0b0010_0000
_RETRANSMITTED_BIT = 0b0000_0100


class PacketLocation(enum.IntFlag):
    """Where a packet lies in its message; FIRST | LAST means it is the only one."""

    MIDDLE = 0b0000_0000
    FIRST = 0b1000_0000
    LAST = 0b0100_0000
    ONLY = FIRST | LAST


class DataEncryption(enum.IntEnum):
    """Which key, if any, encrypts the payload."""

    NONE = 0b0000_0000
    EVEN = 0b0000_1000
    ODD = 0b0001_0000

    @classmethod
    def from_byte(cls, value: int) -> DataEncryption:
        """Read the encryption bits of the first byte of the second header word."""
        bits = value & _ENCRYPTION_MASK
        try:
            return cls(bits)
        except ValueError:
            raise BadDataEncryption(bits) from None


@dataclass(frozen=True)
class DataPacket:
    """A packet carrying payload data; the timestamp is in microseconds."""

    seq_number: SeqNumber
    message_loc: PacketLocation
    in_order_delivery: bool
    encryption: DataEncryption
    retransmitted: bool
    message_number: MsgNumber
    timestamp: int
    dest_sockid: int
    payload: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "message_loc", PacketLocation(int(self.message_loc) & _LOCATION_MASK))
        object.__setattr__(self, "encryption", DataEncryption(self.encryption))
        object.__setattr__(self, "in_order_delivery", bool(self.in_order_delivery))
        object.__setattr__(self, "retransmitted", bool(self.retransmitted))
        object.__setattr__(self, "payload", bytes(self.payload))

    @classmethod
    def parse(cls, data) -> DataPacket:
        """Parse a data packet from bytes or from a ByteReader."""
        reader = data if isinstance(data, ByteReader) else ByteReader(data)
        seq_number = SeqNumber.new_truncate(reader.get_u32())

        second_word = reader.get_u32()
        first_byte = second_word >> 24
        message_loc = PacketLocation(first_byte & _LOCATION_MASK)
        encryption = DataEncryption.from_byte(first_byte)
        retransmitted = bool(first_byte & _RETRANSMITTED_BIT)
        in_order_delivery = bool(first_byte & _IN_ORDER_BIT)
        message_number = MsgNumber.new_truncate(second_word)

        timestamp = reader.get_u32()
        dest_sockid = reader.get_u32()
        return cls(
            seq_number=seq_number,
            message_loc=message_loc,
            in_order_delivery=in_order_delivery,
            encryption=encryption,
            retransmitted=retransmitted,
            message_number=message_number,
            timestamp=timestamp,
            dest_sockid=dest_sockid,
            payload=reader.rest(),
        )

    def serialize(self) -> bytes:
        """Encode the header followed by the payload."""
        flags = (
            int(self.message_loc)
            | (_IN_ORDER_BIT if self.in_order_delivery else 0)
            | int(self.encryption)
            | (_RETRANSMITTED_BIT if self.retransmitted else 0)
        )
        second_word = self.message_number.value | (flags << 24)
        return b"".join(
            (
                self.seq_number.value.to_bytes(4, "big"),
                second_word.to_bytes(4, "big"),
                (self.timestamp & 0xFFFFFFFF).to_bytes(4, "big"),
                (self.dest_sockid & 0xFFFFFFFF).to_bytes(4, "big"),
                self.payload,
            )
        )

    def __str__(self) -> str:
        return (
            f"{{DATA sn={self.seq_number} loc={int(self.message_loc):#04x} "
            f"enc={self.encryption.name} re={self.retransmitted} "
            f"msgno={self.message_number} ts={self.timestamp / 1e6:.4f} "
            f"dst={self.dest_sockid} payload=[len={len(self.payload)}, "
            f"start={self.payload[:8]!r}]}}"
        )