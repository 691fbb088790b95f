"""Negotiated settings of an established connection."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from .modular import SeqNumber


def _wrap_i32(value: int) -> int:
    return ((value + (1 << 31)) % (1 << 32)) - (1 << 31)


@dataclass
class ConnectionSettings:
    """Settings of a connection.

    ``socket_start_time`` and the instants passed to ``get_timestamp`` are
    monotonic clock readings in nanoseconds, as from ``time.monotonic_ns()``.
    """

    remote: tuple[str, int]
    remote_sockid: int
    local_sockid: int
    socket_start_time: int
    init_send_seq_num: SeqNumber
    init_recv_seq_num: SeqNumber
    max_packet_size: int
    max_flow_size: int
    send_tsbpd_latency: timedelta
    recv_tsbpd_latency: timedelta
    crypto_manager: Optional[Any] = None

    def get_timestamp(self, at: int) -> int:
        """Microseconds since the socket started, as a wrapping signed 32-bit value."""
        elapsed_ns = at - self.socket_start_time
        if elapsed_ns < 0:
            raise ValueError("instant lies before the socket start time")
        return _wrap_i32(elapsed_ns // 1000)

    def get_timestamp_now(self) -> int:
        """The timestamp of the present moment."""
        return self.get_timestamp(time.monotonic_ns())