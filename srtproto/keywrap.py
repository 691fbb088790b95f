"""AES key wrapping (RFC 3394)."""

from __future__ import annotations

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

DEFAULT_IV = bytes([0xA6] * 8)


def _xor_counter(a: bytes, t: int) -> bytes:
    return (int.from_bytes(a, "big") ^ t).to_bytes(8, "big")


def _blocks(data: bytes) -> list[bytes]:
    return [data[start:start + 8] for start in range(0, len(data), 8)]


def _ecb(key: bytes) -> Cipher:
    return Cipher(algorithms.AES(bytes(key)), modes.ECB())


def aes_wrap(key: bytes, data: bytes, iv: bytes | None = None) -> bytes:
    """Wrap ``data`` with the AES key-encryption key ``key``.

    The result is eight bytes longer than ``data``.
    """
    data = bytes(data)
    if len(data) % 8 or len(data) < 8:
        raise ValueError("data to wrap must be a non-empty multiple of 8 bytes")
    a = DEFAULT_IV if iv is None else bytes(iv)
    if len(a) != 8:
        raise ValueError("iv must be 8 bytes")

    encryptor = _ecb(key).encryptor()
    blocks = _blocks(data)
    t = 1
    for _ in range(6):
        for index, block in enumerate(blocks):
            b = encryptor.update(a + block)
            a = _xor_counter(b[:8], t)
            blocks[index] = b[8:]
            t += 1
    return a + b"".join(blocks)


def aes_unwrap(key: bytes, data: bytes) -> tuple[bytes, bytes]:
    """Unwrap ``data`` with ``key``; return the key material and the recovered IV."""
    data = bytes(data)
    if len(data) % 8 or len(data) <= 16:
        raise ValueError("wrapped data must be a multiple of 8 bytes and longer than 16")

    decryptor = _ecb(key).decryptor()
    a = data[:8]
    blocks = _blocks(data[8:])
    t = 6 * len(blocks)
    for _ in range(6):
        for index in reversed(range(len(blocks))):
            b = decryptor.update(_xor_counter(a, t) + blocks[index])
            a = b[:8]
            blocks[index] = b[8:]
            t -= 1
    return b"".join(blocks), a