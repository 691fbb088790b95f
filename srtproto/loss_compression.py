"""Compression of sorted loss lists into the range format used by NAK packets."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .modular import SeqNumber

_LOOP_BIT = 1 << 31


def compress_loss_list(loss_list: Iterable[SeqNumber]) -> Iterator[int]:
    """Yield the wire words for a sorted list of lost sequence numbers.

    Runs of consecutive numbers become a start word with the top bit set
    followed by the end word. Raises ValueError if the input is not sorted.
    """
    numbers = iter(loss_list)
    current = next(numbers, None)
    if current is None:
        return

    last_in_loop = None
    for following in numbers:
        if not current < following:
            raise ValueError(f"error: {current.value}!<{following.value}")

        if last_in_loop is not None:
            if last_in_loop + 2 == following:
                last_in_loop = last_in_loop + 1
            else:
                last_in_loop = None
                yield current.value
        elif current + 1 == following:
            last_in_loop = current
            yield current.value | _LOOP_BIT
        else:
            yield current.value

        current = following

    yield current.value


def decompress_loss_list(loss_list: Iterable[int]) -> Iterator[SeqNumber]:
    """Yield every sequence number described by compressed loss words.

    Raises ValueError if a range start has no end word.
    """
    words = iter(loss_list)
    for word in words:
        if not word & _LOOP_BIT:
            yield SeqNumber.new_truncate(word)
            continue

        start = word & ~_LOOP_BIT
        end = next(words, None)
        if end is None:
            raise ValueError("unterminated loop while decompressing loss list")
        if end <= start:
            raise ValueError(f"loss range {start}-{end} does not increase")

        for number in range(start, end + 1):
            yield SeqNumber.new_truncate(number)