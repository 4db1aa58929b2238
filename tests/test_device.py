import pytest

from uxnvm.device import (
    RAM_SIZE,
    Device,
    EmptyDevice,
    new_ram,
)


class _FakeVm:
    def __init__(self):
        self.dev = bytearray(256)


def test_new_ram_is_64k_of_zeros():
    ram = new_ram()
    assert len(ram) == 65536
    assert len(ram) == RAM_SIZE
    assert not any(ram)


def test_new_ram_is_writable_and_independent():
    first = new_ram()
    second = new_ram()
    first[0x100] = 0xAB
    assert first[0x100] == 0xAB
    assert second[0x100] == 0


def test_empty_device_deo_keeps_running():
    dev = EmptyDevice()
    vm = _FakeVm()
    for target in (0x00, 0x0F, 0x18, 0xFF):
        assert dev.deo(vm, target) is True


def test_empty_device_dei_leaves_memory_alone():
    dev = EmptyDevice()
    vm = _FakeVm()
    vm.dev[0x12] = 0x34
    assert dev.dei(vm, 0x12) is None
    assert vm.dev[0x12] == 0x34
    assert not any(vm.dev[:0x12])


def test_empty_device_deo_leaves_memory_alone():
    dev = EmptyDevice()
    vm = _FakeVm()
    vm.dev[0x18] = 0x41
    assert dev.deo(vm, 0x18) is True
    assert vm.dev[0x18] == 0x41
    assert sum(vm.dev) == 0x41


def test_device_is_abstract():
    with pytest.raises(TypeError):
        Device()