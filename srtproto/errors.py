"""Packet parse errors and a big-endian byte reader that raises them."""

from __future__ import annotations


class PacketParseError(Exception):
    """Base class for every failure to parse a packet."""


class NotEnoughData(PacketParseError):
    """The buffer ended before the packet did."""

    def __init__(self) -> None:
        super().__init__("NotEnoughData")


class BadSRTExtensionMessage(PacketParseError):
    """An SRT extension message was malformed."""

    def __init__(self) -> None:
        super().__init__("BadSRTExtensionMessage")


class StreamEncapsulationNotSrt(PacketParseError):
    """A key message declared an encapsulation other than SRT."""

    def __init__(self) -> None:
        super().__init__("StreamEncapsulationNotSrt")


class _ValueError(PacketParseError):
    """A parse error that carries the offending value."""

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(f"{type(self).__name__}({value})")


class BadUDTVersion(_ValueError):
    """The handshake UDT version was not 4 or 5."""


class BadConnectionType(_ValueError):
    """The handshake type was not a known value."""


class BadSocketType(_ValueError):
    """The UDT socket type was not stream or datagram."""


class BadControlType(_ValueError):
    """The control packet type is not known."""


class BadSRTHsExtensionType(_ValueError):
    """The handshake extension block has a wrong type."""


class BadSRTKmExtensionType(_ValueError):
    """The key-manager extension block has a wrong type."""


class BadSRTConfigExtensionType(_ValueError):
    """The SRT control or config extension type is not known."""


class BadCryptoLength(_ValueError):
    """The key length is not 16, 24 or 32 bytes."""


class BadCipherKind(_ValueError):
    """The cipher identifier is not known."""


class BadKeyPacketType(_ValueError):
    """The key message packet type is not known."""


class BadKeySign(_ValueError):
    """The key message signature does not match."""


class BadAuth(_ValueError):
    """The authentication kind is not known."""


class BadStreamEncapsulation(_ValueError):
    """The stream encapsulation is not known."""


class BadDataEncryption(_ValueError):
    """The data packet encryption bits are invalid."""


class StreamTypeNotUTF8(PacketParseError):
    """A stream id was not valid UTF-8."""

    def __init__(self, cause: UnicodeDecodeError) -> None:
        self.cause = cause
        super().__init__(f"StreamTypeNotUTF8({cause})")


class ByteReader:
    """Reads big-endian fields from a byte buffer, front to back."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data) -> None:
        self._data = memoryview(bytes(data))
        self._pos = 0

    def remaining(self) -> int:
        """Number of bytes not read yet."""
        return len(self._data) - self._pos

    def get_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` bytes, raising NotEnoughData if short."""
        if count < 0 or count > self.remaining():
            raise NotEnoughData()
        chunk = bytes(self._data[self._pos:self._pos + count])
        self._pos += count
        return chunk

    def get_u8(self) -> int:
        return self.get_bytes(1)[0]

    def get_u16(self) -> int:
        return int.from_bytes(self.get_bytes(2), "big")

    def get_u32(self) -> int:
        return int.from_bytes(self.get_bytes(4), "big")

    def get_i32(self) -> int:
        return int.from_bytes(self.get_bytes(4), "big", signed=True)

    def take(self, count: int) -> ByteReader:
        """Split off the next ``count`` bytes as a reader of their own."""
        return ByteReader(self.get_bytes(count))

    def rest(self) -> bytes:
        """Read everything that is left."""
        return self.get_bytes(self.remaining())