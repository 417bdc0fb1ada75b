"""Loading NOFF executables into a machine's memory as an address space."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO, Union

from .machine import (
    NEXT_PC_REG,
    NUM_TOTAL_REGS,
    PC_REG,
    STACK_REG,
    Machine,
    TranslationEntry,
)

NOFF_MAGIC = 0xBADFAD
USER_STACK_SIZE = 1024
HEADER_SIZE = 40

Executable = Union[bytes, bytearray, memoryview, BinaryIO]


class AddrSpaceError(Exception):
    """Raised when an executable cannot be loaded."""


@dataclass
class NoffSegment:
    """One segment of a NOFF executable."""

    virtual_addr: int
    in_file_addr: int
    size: int


@dataclass
class NoffHeader:
    """The header of a NOFF executable."""

    noff_magic: int
    code: NoffSegment
    init_data: NoffSegment
    uninit_data: NoffSegment

    @classmethod
    def from_bytes(cls, data: bytes) -> "NoffHeader":
        """Parse a header in either byte order; raise AddrSpaceError if invalid."""
        if len(data) < HEADER_SIZE:
            raise AddrSpaceError("executable too short for a NOFF header")
        for order in ("<", ">"):
            words = struct.unpack(order + "10i", bytes(data[:HEADER_SIZE]))
            if words[0] == NOFF_MAGIC:
                return cls(
                    words[0],
                    NoffSegment(*words[1:4]),
                    NoffSegment(*words[4:7]),
                    NoffSegment(*words[7:10]),
                )
        raise AddrSpaceError("not a NOFF executable: bad magic number")


def _read_at(executable: Executable, num_bytes: int, position: int) -> bytes:
    if isinstance(executable, (bytes, bytearray, memoryview)):
        return bytes(executable[position:position + num_bytes])
    executable.seek(position)
    return executable.read(num_bytes)


class AddrSpace:
    """A user program's address space, mapped one-to-one onto physical pages."""

    def __init__(self, executable: Executable, machine: Machine) -> None:
        self.machine = machine
        header = NoffHeader.from_bytes(_read_at(executable, HEADER_SIZE, 0))
        self.header = header
        self.saved_registers: list[int] = []

        size = (
            header.code.size
            + header.init_data.size
            + header.uninit_data.size
            + USER_STACK_SIZE
        )
        page_size = machine.page_size
        self.num_pages = -(-size // page_size)
        size = self.num_pages * page_size
        if self.num_pages > machine.num_phys_pages:
            raise AddrSpaceError(
                f"program needs {self.num_pages} pages, "
                f"only {machine.num_phys_pages} available"
            )

        self.page_table = [TranslationEntry(i, i) for i in range(self.num_pages)]

        machine.main_memory[:size] = bytes(size)
        for segment in (header.code, header.init_data):
            if segment.size > 0:
                self._load_segment(executable, segment)

    def _load_segment(self, executable: Executable, segment: NoffSegment) -> None:
        start = segment.virtual_addr
        if start < 0 or start + segment.size > len(self.machine.main_memory):
            raise AddrSpaceError(
                f"segment at {start:#x} of size {segment.size} does not fit in memory"
            )
        data = _read_at(executable, segment.size, segment.in_file_addr)
        self.machine.main_memory[start:start + len(data)] = data

    def init_registers(self) -> None:
        """Set the initial user registers: PC at 0, stack near the top."""
        machine = self.machine
        for reg in range(NUM_TOTAL_REGS):
            machine.write_register(reg, 0)
        machine.write_register(PC_REG, 0)
        machine.write_register(NEXT_PC_REG, 4)
        machine.write_register(STACK_REG, self.num_pages * machine.page_size - 16)

    def save_state(self) -> None:
        """Record the machine's user registers on a context switch."""
        self.saved_registers = [
            self.machine.read_register(reg) for reg in range(NUM_TOTAL_REGS)
        ]

    def restore_state(self) -> None:
        """Point the machine's translation at this address space."""
        self.machine.page_table = self.page_table
        self.machine.page_table_size = self.num_pages