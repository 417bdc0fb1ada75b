import io
import struct

import pytest

from nachoskern.addrspace import (
    HEADER_SIZE,
    NOFF_MAGIC,
    USER_STACK_SIZE,
    AddrSpace,
    AddrSpaceError,
    NoffHeader,
)
from nachoskern.machine import NEXT_PC_REG, PC_REG, STACK_REG, Machine


def make_noff(code=b"", data=b"", uninit=0, order="<", magic=NOFF_MAGIC):
    code_off = HEADER_SIZE
    data_off = code_off + len(code)
    header = struct.pack(
        order + "10i",
        magic,
        0, code_off, len(code),
        len(code), data_off, len(data),
        len(code) + len(data), 0, uninit,
    )
    return header + code + data


def test_header_little_endian():
    image = make_noff(code=b"\x01\x02\x03\x04", data=b"\xaa\xbb")
    header = NoffHeader.from_bytes(image)
    assert header.noff_magic == NOFF_MAGIC
    assert header.code.size == 4
    assert header.code.in_file_addr == HEADER_SIZE
    assert header.init_data.size == 2
    assert header.init_data.virtual_addr == 4


def test_header_big_endian_same_as_little():
    little = NoffHeader.from_bytes(make_noff(code=b"abcd", uninit=8))
    big = NoffHeader.from_bytes(make_noff(code=b"abcd", uninit=8, order=">"))
    assert big == little


def test_header_magic_bytes_little_endian():
    image = make_noff()
    assert image[:4] == b"\xad\xdf\xba\x00"
    header = NoffHeader.from_bytes(image)
    assert header.noff_magic == 0x00BADFAD


def test_header_bad_magic():
    with pytest.raises(AddrSpaceError):
        NoffHeader.from_bytes(make_noff(magic=0x1234))


def test_header_too_short():
    with pytest.raises(AddrSpaceError):
        NoffHeader.from_bytes(make_noff()[:10])


def test_loads_code_and_data():
    m = Machine()
    code = b"\x10\x20\x30\x40"
    data = b"\x55\x66\x77\x88"
    space = AddrSpace(make_noff(code=code, data=data), m)
    assert bytes(m.main_memory[:4]) == code
    assert bytes(m.main_memory[4:8]) == data
    assert space.header.code.size == len(code)


def test_accepts_file_object():
    m = Machine()
    code = b"\x01\x00\x00\x00"
    AddrSpace(io.BytesIO(make_noff(code=code)), m)
    assert bytes(m.main_memory[:4]) == code


def test_zeroes_address_space():
    m = Machine()
    m.main_memory[:] = b"\xff" * len(m.main_memory)
    space = AddrSpace(make_noff(code=b"\x01\x02\x03\x04", uninit=16), m)
    end = space.num_pages * m.page_size
    assert all(b == 0 for b in m.main_memory[4:end])
    assert m.main_memory[end] == 0xFF


def test_num_pages_covers_program_and_stack():
    m = Machine()
    code = bytes(range(40))
    space = AddrSpace(make_noff(code=code, uninit=100), m)
    needed = len(code) + 100 + USER_STACK_SIZE
    assert space.num_pages * m.page_size >= needed
    assert (space.num_pages - 1) * m.page_size < needed
    assert len(space.page_table) == space.num_pages


def test_page_table_identity_mapping():
    m = Machine()
    space = AddrSpace(make_noff(code=b"abcd"), m)
    for i, entry in enumerate(space.page_table):
        assert entry.virtual_page == i
        assert entry.physical_page == i
        assert entry.valid and not entry.read_only
        assert not entry.use and not entry.dirty


def test_too_big_for_memory():
    m = Machine(4, 128)
    with pytest.raises(AddrSpaceError):
        AddrSpace(make_noff(code=b"abcd"), m)


def test_init_registers():
    m = Machine()
    space = AddrSpace(make_noff(code=b"abcd"), m)
    m.write_register(5, 99)
    space.init_registers()
    assert m.read_register(PC_REG) == 0
    assert m.read_register(NEXT_PC_REG) == 4
    assert m.read_register(STACK_REG) == space.num_pages * m.page_size - 16
    assert m.read_register(5) == 0


def test_restore_state_installs_page_table():
    m = Machine()
    code = b"\x11\x22\x33\x44"
    space = AddrSpace(make_noff(code=code), m)
    space.save_state()
    space.restore_state()
    assert m.page_table is space.page_table
    assert m.page_table_size == space.num_pages
    assert m.read_mem(0, 4) == int.from_bytes(code, "little")