"""Packet formats and protocol helpers for SRT (Secure Reliable Transport)."""

__version__ = "0.1.0"

__all__ = [
    "connection",
    "control",
    "data",
    "errors",
    "handshake",
    "keywrap",
    "loss_compression",
    "modular",
    "packet",
    "pending",
    "srt",
]