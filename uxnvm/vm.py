"""The Uxn virtual machine and its bytecode interpreter."""

from __future__ import annotations

import operator
from itertools import count
from typing import Callable, Optional

from .device import DEV_PAGE_SIZE, DEV_SIZE, RAM_SIZE, Backend, Device, new_ram
from .opcodes import KEEP_BIT, RETURN_BIT, SHORT_BIT
from .stack import Stack

ROM_START = 0x100
"""Address at which ROMs are loaded and the reset vector starts."""

_BRK = 0x00


def _check(value: int, limit: int, what: str) -> int:
    if not 0 <= value <= limit:
        raise ValueError(f"{what} out of range: {value!r}")
    return value


def _signed(byte: int) -> int:
    return byte - 0x100 if byte & 0x80 else byte


def _jump(pc: int, value: int, short: bool) -> int:
    """Absolute jump for shorts, signed relative jump for bytes."""
    if short:
        return value
    return (pc + _signed(value)) & 0xFFFF


class _StackView:
    """A stack seen through an opcode's keep and short modes.

    All pops must come before any pushes.  In keep mode pops only move a
    private offset, leaving the stack itself untouched.
    """

    __slots__ = ("stack", "keep", "short", "offset")

    def __init__(self, stack: Stack, opcode: int) -> None:
        self.stack = stack
        self.keep = bool(opcode & KEEP_BIT)
        self.short = bool(opcode & SHORT_BIT)
        self.offset = 0

    @property
    def mask(self) -> int:
        return 0xFFFF if self.short else 0xFF

    def pop_byte(self) -> int:
        if self.keep:
            value = self.stack.peek_byte_at(self.offset)
            self.offset = (self.offset + 1) & 0xFF
            return value
        return self.stack.pop_byte()

    def pop_short(self) -> int:
        if self.keep:
            value = self.stack.peek_short_at(self.offset)
            self.offset = (self.offset + 2) & 0xFF
            return value
        return self.stack.pop_short()

    def pop(self) -> int:
        return self.pop_short() if self.short else self.pop_byte()

    def push(self, value: int) -> None:
        if self.short:
            self.stack.push_short(value & 0xFFFF)
        else:
            self.stack.push_byte(value & 0xFF)

    def push_byte(self, value: int) -> None:
        self.stack.push_byte(value & 0xFF)

    def push_short(self, value: int) -> None:
        self.stack.push_short(value & 0xFFFF)

    def reserve(self, n: int) -> None:
        self.stack.reserve(n)

    def emplace(self, value: int) -> None:
        if self.short:
            self.stack.emplace_short(value)
        else:
            self.stack.emplace_byte(value)


class Uxn:
    """A Uxn CPU with 64 KiB of RAM, a device page and two stacks."""

    def __init__(
        self,
        ram: Optional[bytearray] = None,
        backend: Backend = Backend.INTERPRETER,
    ) -> None:
        if ram is None:
            ram = new_ram()
        if not isinstance(ram, bytearray):
            raise TypeError("ram must be a bytearray")
        if len(ram) != RAM_SIZE:
            raise ValueError(f"ram must be {RAM_SIZE} bytes, got {len(ram)}")
        self.ram = ram
        self.dev = bytearray(DEV_PAGE_SIZE)
        self.stack = Stack()
        self.ret = Stack()
        self.backend = Backend(backend)

    # ------------------------------------------------------------------
    # Memory access

    def ram_read_byte(self, addr: int) -> int:
        """Read a byte from RAM."""
        return self.ram[_check(addr, 0xFFFF, "address")]

    def ram_write_byte(self, addr: int, value: int) -> None:
        """Write a byte to RAM."""
        self.ram[_check(addr, 0xFFFF, "address")] = _check(value, 0xFF, "byte")

    def ram_read_word(self, addr: int) -> int:
        """Read a big-endian word; at the top of RAM the second byte wraps to 0."""
        addr = _check(addr, 0xFFFF, "address")
        return (self.ram[addr] << 8) | self.ram[(addr + 1) & 0xFFFF]

    def dev_read(self, addr: int) -> int:
        """Read a byte from device memory."""
        return self.dev[_check(addr, 0xFF, "device address")]

    def write_dev_mem(self, addr: int, value: int) -> None:
        """Write a byte to device memory."""
        self.dev[_check(addr, 0xFF, "device address")] = _check(value, 0xFF, "byte")

    def dev_at(self, pos: int) -> memoryview:
        """Return a writable 16-byte view of the device ports starting at ``pos``."""
        if not 0 <= pos or pos + DEV_SIZE > DEV_PAGE_SIZE:
            raise ValueError(f"device at {pos!r} does not fit in the device page")
        return memoryview(self.dev)[pos : pos + DEV_SIZE]

    def reset(self, rom: bytes) -> bytes:
        """Clear all memory and stacks and load ``rom`` at 0x100.

        Returns the part of the ROM that did not fit in RAM, which belongs in
        extension memory.
        """
        self.dev[:] = bytes(DEV_PAGE_SIZE)
        self.ram[:] = bytes(RAM_SIZE)
        self.stack = Stack()
        self.ret = Stack()
        rom = bytes(rom)
        n = min(RAM_SIZE - ROM_START, len(rom))
        self.ram[ROM_START : ROM_START + n] = rom[:n]
        return rom[n:]

    # ------------------------------------------------------------------
    # Execution

    def run(self, dev: Device, pc: int) -> int:
        """Run from ``pc`` until the vector ends; return the final program counter."""
        pc = _check(pc, 0xFFFF, "program counter")
        if self.backend is not Backend.INTERPRETER:
            raise ValueError(f"unsupported backend: {self.backend}")
        ram = self.ram
        while True:
            opcode = ram[pc]
            pc = (pc + 1) & 0xFFFF
            nxt = self._dispatch(opcode, dev, pc)
            if nxt is None:
                return pc
            pc = nxt

    def run_until(
        self,
        dev: Device,
        pc: int,
        stop: Callable[["Uxn", Device, int], bool],
    ) -> Optional[int]:
        """Run until the vector ends or ``stop(vm, dev, step_index)`` is true.

        Returns the program counter if the program terminated, or ``None`` if
        the stop condition was reached.  Always uses the interpreter.
        """
        pc = _check(pc, 0xFFFF, "program counter")
        for i in count():
            opcode = self.ram[pc]
            pc = (pc + 1) & 0xFFFF
            nxt = self._dispatch(opcode, dev, pc)
            if nxt is None:
                return pc
            pc = nxt
            if stop(self, dev, i):
                return None
        raise AssertionError("unreachable")

    def step(self, opcode: int, dev: Device, pc: int) -> Optional[int]:
        """Execute one opcode.

        ``pc`` is the address just past the opcode byte.  Returns the next
        program counter, or ``None`` if the vector ended.
        """
        _check(opcode, 0xFF, "opcode")
        _check(pc, 0xFFFF, "program counter")
        return self._dispatch(opcode, dev, pc)

    def _dispatch(self, opcode: int, dev: Device, pc: int) -> Optional[int]:
        if opcode == _BRK:
            # BRK ends the current vector.
            return None
        base = opcode & 0x1F
        if base == 0:
            return self._IMMEDIATE[opcode >> 5](self, opcode, dev, pc)
        return self._HANDLERS[base](self, opcode, dev, pc)

    # ------------------------------------------------------------------
    # Helpers

    def _view(self, opcode: int) -> _StackView:
        return _StackView(self.ret if opcode & RETURN_BIT else self.stack, opcode)

    def _other_view(self, opcode: int) -> _StackView:
        return _StackView(self.stack if opcode & RETURN_BIT else self.ret, opcode)

    def _fetch(self, pc: int) -> tuple[int, int]:
        return self.ram[pc], (pc + 1) & 0xFFFF

    def _fetch2(self, pc: int) -> tuple[int, int]:
        hi, pc = self._fetch(pc)
        lo, pc = self._fetch(pc)
        return (hi << 8) | lo, pc

    def _ram_read(self, addr: int, short: bool) -> int:
        if short:
            return (self.ram[addr] << 8) | self.ram[(addr + 1) & 0xFFFF]
        return self.ram[addr]

    def _ram_write(self, addr: int, value: int, short: bool) -> None:
        if short:
            self.ram[addr] = value >> 8
            self.ram[(addr + 1) & 0xFFFF] = value & 0xFF
        else:
            self.ram[addr] = value

    def _compare(self, opcode: int, fn: Callable[[int, int], bool]) -> None:
        s = self._view(opcode)
        b = s.pop()
        a = s.pop()
        s.push_byte(int(fn(a, b)))

    def _arith(self, opcode: int, fn: Callable[[int, int], int]) -> None:
        s = self._view(opcode)
        b = s.pop()
        a = s.pop()
        s.push(fn(a, b) & s.mask)

    # ------------------------------------------------------------------
    # Opcodes without modes, and literals

    def _jci(self, opcode, dev, pc):
        dt, pc = self._fetch2(pc)
        if self.stack.pop_byte() != 0:
            pc = (pc + dt) & 0xFFFF
        return pc

    def _jmi(self, opcode, dev, pc):
        dt, pc = self._fetch2(pc)
        return (pc + dt) & 0xFFFF

    def _jsi(self, opcode, dev, pc):
        dt, pc = self._fetch2(pc)
        self.ret.push_short(pc)
        return (pc + dt) & 0xFFFF

    def _lit(self, opcode, dev, pc):
        if opcode & SHORT_BIT:
            value, pc = self._fetch2(pc)
        else:
            value, pc = self._fetch(pc)
        self._view(opcode).push(value)
        return pc

    # ------------------------------------------------------------------
    # Stack operations

    def _inc(self, opcode, dev, pc):
        s = self._view(opcode)
        s.push((s.pop() + 1) & s.mask)
        return pc

    def _pop(self, opcode, dev, pc):
        self._view(opcode).pop()
        return pc

    def _nip(self, opcode, dev, pc):
        s = self._view(opcode)
        v = s.pop()
        s.pop()
        s.push(v)
        return pc

    def _swp(self, opcode, dev, pc):
        s = self._view(opcode)
        b = s.pop()
        a = s.pop()
        s.push(b)
        s.push(a)
        return pc

    def _rot(self, opcode, dev, pc):
        s = self._view(opcode)
        c = s.pop()
        b = s.pop()
        a = s.pop()
        s.push(b)
        s.push(c)
        s.push(a)
        return pc

    def _dup(self, opcode, dev, pc):
        s = self._view(opcode)
        v = s.pop()
        s.push(v)
        s.push(v)
        return pc

    def _ovr(self, opcode, dev, pc):
        s = self._view(opcode)
        b = s.pop()
        a = s.pop()
        s.push(a)
        s.push(b)
        s.push(a)
        return pc

    # ------------------------------------------------------------------
    # Comparison and arithmetic

    def _equ(self, opcode, dev, pc):
        self._compare(opcode, operator.eq)
        return pc

    def _neq(self, opcode, dev, pc):
        self._compare(opcode, operator.ne)
        return pc

    def _gth(self, opcode, dev, pc):
        self._compare(opcode, operator.gt)
        return pc

    def _lth(self, opcode, dev, pc):
        self._compare(opcode, operator.lt)
        return pc

    def _add(self, opcode, dev, pc):
        self._arith(opcode, operator.add)
        return pc

    def _sub(self, opcode, dev, pc):
        self._arith(opcode, operator.sub)
        return pc

    def _mul(self, opcode, dev, pc):
        self._arith(opcode, operator.mul)
        return pc

    def _div(self, opcode, dev, pc):
        self._arith(opcode, lambda a, b: a // b if b else 0)
        return pc

    def _and(self, opcode, dev, pc):
        self._arith(opcode, operator.and_)
        return pc

    def _ora(self, opcode, dev, pc):
        self._arith(opcode, operator.or_)
        return pc

    def _eor(self, opcode, dev, pc):
        self._arith(opcode, operator.xor)
        return pc

    def _sft(self, opcode, dev, pc):
        s = self._view(opcode)
        shift = s.pop_byte()
        v = s.pop()
        s.push(((v >> (shift & 0x0F)) << (shift >> 4)) & s.mask)
        return pc

    # ------------------------------------------------------------------
    # Jumps and stash

    def _jmp(self, opcode, dev, pc):
        s = self._view(opcode)
        return _jump(pc, s.pop(), s.short)

    def _jcn(self, opcode, dev, pc):
        s = self._view(opcode)
        dst = s.pop()
        cond = s.pop_byte()
        return _jump(pc, dst, s.short) if cond else pc

    def _jsr(self, opcode, dev, pc):
        self._other_view(opcode).push_short(pc)
        s = self._view(opcode)
        return _jump(pc, s.pop(), s.short)

    def _sth(self, opcode, dev, pc):
        v = self._view(opcode).pop()
        self._other_view(opcode).push(v)
        return pc

    # ------------------------------------------------------------------
    # Memory

    def _ldz(self, opcode, dev, pc):
        s = self._view(opcode)
        addr = s.pop_byte()
        s.push(self._ram_read(addr, s.short))
        return pc

    def _stz(self, opcode, dev, pc):
        s = self._view(opcode)
        addr = s.pop_byte()
        self._ram_write(addr, s.pop(), s.short)
        return pc

    def _ldr(self, opcode, dev, pc):
        s = self._view(opcode)
        addr = (pc + _signed(s.pop_byte())) & 0xFFFF
        s.push(self._ram_read(addr, s.short))
        return pc

    def _str(self, opcode, dev, pc):
        s = self._view(opcode)
        addr = (pc + _signed(s.pop_byte())) & 0xFFFF
        self._ram_write(addr, s.pop(), s.short)
        return pc

    def _lda(self, opcode, dev, pc):
        s = self._view(opcode)
        addr = s.pop_short()
        s.push(self._ram_read(addr, s.short))
        return pc

    def _sta(self, opcode, dev, pc):
        s = self._view(opcode)
        addr = s.pop_short()
        self._ram_write(addr, s.pop(), s.short)
        return pc

    # ------------------------------------------------------------------
    # Devices

    def _dei(self, opcode, dev, pc):
        s = self._view(opcode)
        i = s.pop_byte()
        # Stack space is reserved before the device is called, so that the
        # device sees the same stack depth as the reference implementation.
        if s.short:
            s.reserve(2)
            dev.dei(self, i)
            hi = self.dev[i]
            j = (i + 1) & 0xFF
            dev.dei(self, j)
            lo = self.dev[j]
            value = (hi << 8) | lo
        else:
            s.reserve(1)
            dev.dei(self, i)
            value = self.dev[i]
        self._view(opcode).emplace(value)
        return pc

    def _deo(self, opcode, dev, pc):
        s = self._view(opcode)
        i = s.pop_byte()
        value = s.pop()
        if s.short:
            j = (i + 1) & 0xFF
            self.dev[i] = value >> 8
            run = bool(dev.deo(self, i))
            self.dev[j] = value & 0xFF
            run &= bool(dev.deo(self, j))
        else:
            self.dev[i] = value
            run = bool(dev.deo(self, i))
        return pc if run else None

    # Index 0 (BRK) is handled directly in _dispatch.
    _IMMEDIATE = (None, _jci, _jmi, _jsi, _lit, _lit, _lit, _lit)
    _HANDLERS = (
        None, _inc, _pop, _nip, _swp, _rot, _dup, _ovr,
        _equ, _neq, _gth, _lth, _jmp, _jcn, _jsr, _sth,
        _ldz, _stz, _ldr, _str, _lda, _sta, _dei, _deo,
        _add, _sub, _mul, _div, _and, _ora, _eor, _sft,
    )