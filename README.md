# uxnvm

`uxnvm` is an interpreter for the Uxn virtual machine. It provides the CPU with
64 KiB of RAM, a 256-byte device page, and working and return stacks. Each
stack is a circular stack of 256 bytes. The interpreter implements all 256
opcodes, including their short (`2`), return (`r`) and keep (`k`) modes.

## Installation

```
pip install .
```

To install the test dependencies and run the tests:

```
pip install .[test]
pytest
```

## Usage

```python
from uxnvm.device import Backend, EmptyDevice, new_ram
from uxnvm.opcodes import Op
from uxnvm.vm import Uxn

vm = Uxn(new_ram(), Backend.INTERPRETER)

# LIT 1a LIT 2e ADD BRK
rom = bytes([Op.LIT, 0x1A, Op.LIT, 0x2E, Op.ADD, Op.BRK])
extra = vm.reset(rom)          # bytes that did not fit in RAM, if any
vm.run(EmptyDevice(), 0x100)   # run the reset vector

print(vm.stack.items().hex())  # 48
```

Both arguments to `Uxn` are optional. If you leave out `ram`, the VM gets a
fresh zeroed 64 KiB `bytearray`. If you supply `ram`, it must be a `bytearray`
of exactly 65536 bytes.

- `Uxn.reset(rom)` clears RAM, device memory and both stacks. It then loads the
  ROM at `0x100` and returns any trailing bytes that did not fit.
- `Uxn.run(dev, pc)` executes from `pc` until a `BRK`, or until a device's
  `deo` returns `False`. It returns the final program counter.
- `Uxn.run_until(dev, pc, stop)` calls `stop(vm, dev, step_index)` after each
  instruction. It returns `None` if `stop` halted execution, and otherwise
  returns the program counter at which the vector ended.
- `Uxn.step(opcode, dev, pc)` executes a single opcode. Here `pc` is the
  address just past the opcode byte. It returns the next program counter, or
  `None` if execution ended.
- Memory helpers:
  - `ram_read_byte` and `ram_write_byte` read and write one byte of RAM.
  - `ram_read_word` reads a big-endian word. At the top of RAM its second byte
    wraps to address 0.
  - `dev_read` and `write_dev_mem` read and write device memory.

Out-of-range addresses and values raise `ValueError`.

### Stacks

`vm.stack` is the working stack and `vm.ret` is the return stack. Both are
`uxnvm.stack.Stack` objects. `len()` gives the number of items on a stack, and
`items()` returns them from bottom to top as `bytes`. A stack also has:

- `push_byte`, `push_short`, `pop_byte` and `pop_short`. Shorts are stored with
  the high byte first.
- `peek_byte_at` and `peek_short_at`.
- `emplace_byte` and `emplace_short`.
- `reserve` and `set_len`.

The stacks are circular, so a pop from an empty stack wraps around and does not
raise an error.

### Devices

A device handles the `DEI` and `DEO` opcodes. To write one, subclass
`uxnvm.device.Device` and implement two methods:

- `dei(vm, target)` writes the requested byte into device memory, for example
  with `vm.write_dev_mem(target, value)`. The CPU then reads that byte back and
  pushes it onto the stack.
- `deo(vm, target)` is called after the output byte has been stored at
  `target`, where `vm.dev_read(target)` can read it. Return `True` to keep
  running or `False` to end the current vector.

`EmptyDevice` ignores every port access. `Uxn.dev_at(pos)` returns a writable
16-byte `memoryview` of the device ports that start at `pos`, for example
`0x10`.

### Opcodes

`uxnvm.opcodes` provides the opcode table:

- `Op` is an `IntEnum` of all 256 opcodes, each valued by its byte encoding.
- `opcode_name` gives the mnemonic for a byte.
- `decode_op` parses a mnemonic such as `"ADD2kr"` into its byte. It raises
  `ValueError` for an unknown mnemonic.
- `is_short`, `is_return` and `is_keep` test the mode bits.

## What this package does not do

This package contains only the CPU. It has no devices that do useful work, such
as a console, screen, audio, mouse, keyboard or file system, so it cannot show
graphics or make sound. It also provides no command-line runner and no
assembler. ROMs must be supplied as already-assembled bytes, and any device
behaviour must be written as a `Device` subclass.