"""Interpreter for the Uxn virtual machine: opcodes, stacks, the device interface and the CPU."""

__version__ = "0.1.0"

__all__ = ["opcodes", "stack", "device", "vm"]