"""Circular 256-byte stack used for the Uxn working and return stacks."""

from __future__ import annotations

STACK_SIZE = 256
_EMPTY_INDEX = 0xFF


def _byte(value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"byte out of range: {value!r}")
    return value


def _short(value: int) -> int:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"short out of range: {value!r}")
    return value


class Stack:
    """Circular stack with room for 256 bytes.

    ``index`` points at the last occupied slot and grows on push.  An empty
    (or completely full) stack has ``index == 0xFF``.  Shorts are stored
    big-endian: the high byte is pushed first.
    """

    __slots__ = ("data", "index")

    def __init__(self) -> None:
        self.data = bytearray(STACK_SIZE)
        self.index = _EMPTY_INDEX

    def __len__(self) -> int:
        return (self.index + 1) & 0xFF

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Stack):
            return NotImplemented
        return self.index == other.index and self.data == other.data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Stack({self.items().hex(' ')})"

    def set_len(self, n: int) -> None:
        """Set the number of items on the stack."""
        self.index = (_byte(n) - 1) & 0xFF

    def push_byte(self, value: int) -> None:
        """Push one byte."""
        value = _byte(value)
        self.index = (self.index + 1) & 0xFF
        self.data[self.index] = value

    def push_short(self, value: int) -> None:
        """Push a 16-bit value, high byte first."""
        value = _short(value)
        self.push_byte(value >> 8)
        self.push_byte(value & 0xFF)

    def pop_byte(self) -> int:
        """Pop one byte; popping an empty stack wraps around."""
        out = self.data[self.index]
        self.index = (self.index - 1) & 0xFF
        return out

    def pop_short(self) -> int:
        """Pop a 16-bit value pushed with :meth:`push_short`."""
        lo = self.pop_byte()
        hi = self.pop_byte()
        return (hi << 8) | lo

    def peek_byte_at(self, offset: int) -> int:
        """Read the byte ``offset`` slots below the top without popping."""
        return self.data[(self.index - _byte(offset)) & 0xFF]

    def peek_short_at(self, offset: int) -> int:
        """Read the short whose low byte is ``offset`` slots below the top."""
        lo = self.peek_byte_at(offset)
        hi = self.peek_byte_at((_byte(offset) + 1) & 0xFF)
        return (hi << 8) | lo

    def emplace_byte(self, value: int) -> None:
        """Replace the top byte."""
        self.data[self.index] = _byte(value)

    def emplace_short(self, value: int) -> None:
        """Replace the top two bytes with a 16-bit value."""
        value = _short(value)
        self.data[(self.index - 1) & 0xFF] = value >> 8
        self.data[self.index] = value & 0xFF

    def reserve(self, n: int) -> None:
        """Grow the stack by ``n`` slots without writing them."""
        self.index = (self.index + _byte(n)) & 0xFF

    def items(self) -> bytes:
        """Return the stack contents from bottom to top."""
        return bytes(self.data[: len(self)])