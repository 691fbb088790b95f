# srtproto

Packet formats and protocol helpers for SRT (Secure Reliable Transport), the
UDT-derived protocol for low-latency media streaming. The package parses and
builds the bytes that travel on the wire; it works on `bytes` in memory and
opens no sockets.

## Modules

- `srtproto.modular`: `SeqNumber` (31-bit) and `MsgNumber` (26-bit), numbers
  that add, subtract and compare modulo their range. `new` raises
  `OutOfRangeError` for a value that is too large, `new_truncate` drops the
  high bits, and `random` draws a random one.
- `srtproto.loss_compression`: `compress_loss_list` turns a sorted sequence of
  `SeqNumber`s into the words a NAK packet carries (runs become a start word
  with the top bit set and an end word); `decompress_loss_list` reverses it.
  Both are generators and raise `ValueError` on unsorted input or an
  unterminated run.
- `srtproto.errors`: `PacketParseError` and its subclasses (`NotEnoughData`,
  `BadControlType`, `BadUDTVersion`, `BadKeySign`, ...), and `ByteReader`, a
  big-endian reader over a byte buffer that raises `NotEnoughData` when it
  runs short.
- `srtproto.keywrap`: `aes_wrap(key, data, iv=None)` and
  `aes_unwrap(key, data)`, AES key wrapping per RFC 3394. `aes_unwrap`
  returns the unwrapped bytes together with the recovered IV, which equals
  `DEFAULT_IV` when the default was used for wrapping.
- `srtproto.srt`: the SRT extension messages: `SrtHandshake`, `SrtKeyMessage`,
  and `SrtControlPacket`, which pairs an `SrtControlType` with its body
  (reject, handshake request/response, key-manager request/response, stream
  id, smoother). Also the flag and enum types `SrtVersion`, `SrtShakeFlags`,
  `KeyFlags`, `PacketType`, `CipherType`, `Auth` and `StreamEncapsulation`.
- `srtproto.handshake`: `HandshakeControlInfo` for UDT version 4 handshakes
  (carrying a `SocketType`) and SRT version 5 handshakes (carrying an
  `HSV5Info` with optional handshake, key-manager and stream-id extensions),
  with `ShakeType` and `ExtFlags`.
- `srtproto.control`: `ControlPacket` with its bodies: a
  `HandshakeControlInfo`, `KeepAlive`, `AckControlInfo`, `Nak`, `Shutdown`,
  `Ack2`, `DropRequest` or an `SrtControlPacket`.
- `srtproto.data`: `DataPacket` with `PacketLocation` and `DataEncryption`.
- `srtproto.packet`: `parse_packet` picks data or control by the top bit of the
  first byte; `serialize_packet`, `packet_timestamp` and `packet_dest_sockid`
  work on either kind.
- `srtproto.connection`: `ConnectionSettings`, whose `get_timestamp(at)` gives
  the microseconds since `socket_start_time` (both monotonic nanosecond
  readings, as from `time.monotonic_ns()`) as a wrapping signed 32-bit value.
- `srtproto.pending`: `ConnInitSettings` (random starting sequence number and
  socket id by default; `copy_randomize` draws fresh ones) and the
  `ConnectError` family of connection-setup errors.

Timestamps on packets are plain integers in microseconds; socket ids are plain
integers.

## Install

```
pip install srtproto
```

## Examples

Parsing a packet:

```python
from srtproto.packet import parse_packet, serialize_packet
from srtproto.errors import PacketParseError

raw = bytes.fromhex("FFFF000000000000000189702BFFEFF2000103010000001E00000078")
try:
    packet = parse_packet(raw)
except PacketParseError as err:
    print("bad packet:", err)
else:
    print(packet)  # {reject ts=0.1007s dst=738193394}
```

Sequence numbers wrap around:

```python
from srtproto.modular import SeqNumber

assert SeqNumber(SeqNumber.MAX - 1) + 4 == SeqNumber(3)
assert SeqNumber(2) - SeqNumber(SeqNumber.MAX - 1) == 3
assert SeqNumber(SeqNumber.MAX - 1) < SeqNumber(0)
```

Loss lists compress consecutive runs:

```python
from srtproto.loss_compression import compress_loss_list, decompress_loss_list
from srtproto.modular import SeqNumber

lost = [SeqNumber(n) for n in (13, 14, 15, 16)]
words = list(compress_loss_list(lost))
assert words == [13 | 1 << 31, 16]
assert list(decompress_loss_list(words)) == lost
```

## What it does not do

The package covers packet formats and connection settings only. It has no
sender or receiver, no retransmission or timing logic, no connect, listen or
rendezvous handshake procedures, and no encryption or decryption of payloads;
`ConnectionSettings.crypto_manager` and `ConnInitSettings.crypto` are held
but not used by anything in the package. It offers no command-line tool.

## Tests

```
pip install -e ".[test]"
pytest
```