"""Errors raised while a connection is being set up, and initial connection settings."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional

from .modular import SeqNumber


def _format_addr(addr) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        host, port = addr[0], addr[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(addr)


class ConnectError(Exception):
    """Base class for failures during connection setup."""


class ControlExpected(ConnectError):
    def __init__(self, packet) -> None:
        self.packet = packet
        super().__init__(f"Expected Control packet, found {packet}")


class HandshakeExpected(ConnectError):
    def __init__(self, got) -> None:
        self.got = got
        super().__init__(f"Expected Handshake packet, found: {got}")


class InductionExpected(ConnectError):
    def __init__(self, got) -> None:
        self.got = got
        super().__init__(f"Expected Induction (1) packet, found: {got}")


class UnexpectedHost(ConnectError):
    def __init__(self, host, got) -> None:
        self.host = host
        self.got = got
        super().__init__(
            "Expected packets from different host, "
            f"expected: {_format_addr(host)} found: {_format_addr(got)}"
        )


class ConclusionExpected(ConnectError):
    def __init__(self, got) -> None:
        self.got = got
        super().__init__(f"Expected Conclusion (-1) packet, found: {got}")


class UnsupportedProtocolVersion(ConnectError):
    def __init__(self, got: int) -> None:
        self.got = got
        super().__init__(f"Unsupported protocol version, expected: v5 found v{got}")


class InvalidHandshakeCookie(ConnectError):
    def __init__(self, expected: int, got: int) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"Received invalid cookie, expected {expected}, got {got}")


class RendezvousExpected(ConnectError):
    def __init__(self, got) -> None:
        self.got = got
        super().__init__(f"Expected rendezvous packet, got {got}")


class CookiesMatched(ConnectError):
    def __init__(self, cookie: int) -> None:
        self.cookie = cookie
        super().__init__(
            "Cookies matched, waiting for a new cookie to resolve contest. "
            f"Cookie: {cookie}"
        )


class ExpectedHSReq(ConnectError):
    def __init__(self) -> None:
        super().__init__("Responder got handshake flags, but expected request, not response")


class ExpectedHSResp(ConnectError):
    def __init__(self) -> None:
        super().__init__("Initiator got handshake flags, but expected response, not request")


class ExpectedExtFlags(ConnectError):
    def __init__(self) -> None:
        super().__init__("Responder expected handshake flags, but got none")


class ExpectedNoExtFlags(ConnectError):
    def __init__(self) -> None:
        super().__init__("Initiator did not expect handshake flags, but got some")


class BadSecret(ConnectError):
    def __init__(self) -> None:
        super().__init__("Wrong password")


def _random_sockid() -> int:
    return secrets.randbits(32)


@dataclass
class ConnInitSettings:
    """Settings a side starts a connection with; ids are random by default."""

    starting_send_seqnum: SeqNumber = field(default_factory=SeqNumber.random)
    local_sockid: int = field(default_factory=_random_sockid)
    crypto: Optional[Any] = None
    send_latency: timedelta = timedelta(milliseconds=50)
    recv_latency: timedelta = timedelta(microseconds=50)

    def copy_randomize(self) -> ConnInitSettings:
        """A copy with a fresh random sequence number and socket id."""
        return ConnInitSettings(
            crypto=self.crypto,
            send_latency=self.send_latency,
            recv_latency=self.recv_latency,
        )