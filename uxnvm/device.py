"""Device interface, evaluation backends and RAM construction."""

from __future__ import annotations

import abc
import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .vm import Uxn

RAM_SIZE = 0x10000
"""Bytes of VM memory."""

DEV_SIZE = 16
"""Size of a single device in port memory."""

DEV_PAGE_SIZE = 256
"""Size of the whole device page."""


def _check_port(target: int) -> int:
    if not 0 <= target < DEV_PAGE_SIZE:
        raise ValueError(f"device port out of range: {target!r}")
    return target


class Backend(enum.Enum):
    """How the VM evaluates code."""

    INTERPRETER = "interpreter"


class Device(abc.ABC):
    """Something that answers the VM's ``DEI`` and ``DEO`` operations."""

    @abc.abstractmethod
    def dei(self, vm: Uxn, target: int) -> None:
        """Handle a ``DEI`` on port ``target``.

        The handler writes its output byte into the VM's device memory at
        ``target``; the CPU then copies that byte to the stack.
        """

    @abc.abstractmethod
    def deo(self, vm: Uxn, target: int) -> bool:
        """Handle a ``DEO`` on port ``target``.

        The byte has already been written to device memory at ``target``.
        Return ``True`` to keep running, ``False`` to stop the current vector.
        """


class EmptyDevice(Device):
    """Device that ignores every port access."""

    def dei(self, vm: Uxn, target: int) -> None:
        """Check the port; device memory is left as it is."""
        _check_port(target)

    def deo(self, vm: Uxn, target: int) -> bool:
        """Check the port and keep running."""
        _check_port(target)
        return True


def new_ram() -> bytearray:
    """Build a zero-filled 64 KiB block of VM memory."""
    return bytearray(RAM_SIZE)