"""Fixed-width modular counters with wrap-aware ordering."""

from __future__ import annotations

import secrets


class OutOfRangeError(ValueError):
    """Raised when a value does not fit a modular number type."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Number out of range for `{type_name}`")


class ModularNumber:
    """An unsigned number that wraps at ``2 ** BITS``.

    Ordering treats a difference larger than half the range as a wrap,
    so ``MAX - 1 < 0`` for these numbers.
    """

    __slots__ = ("_value",)

    BITS: int = 32
    MAX: int = 1 << 32
    MAX_DIFF: int = 1 << 31

    def __init_subclass__(cls, bits: int | None = None, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if bits is not None:
            cls.BITS = bits
            cls.MAX = 1 << bits
            cls.MAX_DIFF = 1 << (bits - 1)

    def __init__(self, value: int) -> None:
        value = int(value)
        if value < 0:
            raise OutOfRangeError(type(self).__name__)
        self._value = value

    @classmethod
    def new_truncate(cls, value: int):
        """Build a number, discarding the bits above ``BITS``."""
        return cls(int(value) % cls.MAX)

    @classmethod
    def new(cls, value: int):
        """Build a number, raising OutOfRangeError if it is too large."""
        value = int(value)
        if value < 0 or value > cls.MAX:
            raise OutOfRangeError(cls.__name__)
        return cls(value)

    @classmethod
    def random(cls):
        """A uniformly random number of this type."""
        return cls.new_truncate(secrets.randbits(32))

    @property
    def value(self) -> int:
        return self._value

    def __int__(self) -> int:
        return self._value

    def __add__(self, other: int):
        if isinstance(other, ModularNumber) or not isinstance(other, int):
            return NotImplemented
        return type(self)((self._value + other) % self.MAX)

    def __sub__(self, other):
        if isinstance(other, ModularNumber):
            if type(other) is not type(self):
                return NotImplemented
            return (self._value - other._value) % self.MAX
        if isinstance(other, int):
            return type(self)((self._value - other) % self.MAX)
        return NotImplemented

    def __mod__(self, other: int) -> int:
        if not isinstance(other, int) or isinstance(other, ModularNumber):
            return NotImplemented
        return self._value % other

    def _compare(self, other) -> int:
        diff = self - other
        if diff == 0:
            return 0
        return 1 if diff < self.MAX_DIFF else -1

    def _same_type(self, other) -> bool:
        return type(other) is type(self)

    def __eq__(self, other) -> bool:
        if not self._same_type(other):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))

    def __lt__(self, other) -> bool:
        if not self._same_type(other):
            return NotImplemented
        return self._compare(other) < 0

    def __le__(self, other) -> bool:
        if not self._same_type(other):
            return NotImplemented
        return self._compare(other) <= 0

    def __gt__(self, other) -> bool:
        if not self._same_type(other):
            return NotImplemented
        return self._compare(other) > 0

    def __ge__(self, other) -> bool:
        if not self._same_type(other):
            return NotImplemented
        return self._compare(other) >= 0

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value})"


class SeqNumber(ModularNumber, bits=31):
    """A 31-bit packet sequence number."""

    __slots__ = ()


class MsgNumber(ModularNumber, bits=26):
    """A 26-bit message number."""

    __slots__ = ()