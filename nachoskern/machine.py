"""A simulated machine: registers, physical memory and page translation."""

from __future__ import annotations

from dataclasses import dataclass

NUM_GP_REGS = 32
STACK_REG = 29
RET_ADDR_REG = 31
HI_REG = 32
LO_REG = 33
PC_REG = 34
NEXT_PC_REG = 35
PREV_PC_REG = 36
LOAD_REG = 37
LOAD_VALUE_REG = 38
BAD_VADDR_REG = 39
NUM_TOTAL_REGS = 40

DEFAULT_NUM_PHYS_PAGES = 32
DEFAULT_PAGE_SIZE = 128

_WORD_MASK = 0xFFFFFFFF


def _to_signed32(value: int) -> int:
    value &= _WORD_MASK
    return value - (1 << 32) if value & 0x80000000 else value


@dataclass
class TranslationEntry:
    """One page-table entry mapping a virtual page to a physical page."""

    virtual_page: int
    physical_page: int
    valid: bool = True
    use: bool = False
    dirty: bool = False
    read_only: bool = False


class MachineHalted(Exception):
    """Raised when the machine is stopped by a halt request."""


class AddressError(Exception):
    """Raised for a memory reference that cannot be translated or is misaligned."""


class Machine:
    """Registers and little-endian main memory of a simulated processor.

    When ``page_table`` is None addresses are physical; otherwise they are
    translated through it, one entry per virtual page.
    """

    def __init__(
        self,
        num_phys_pages: int = DEFAULT_NUM_PHYS_PAGES,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if num_phys_pages <= 0 or page_size <= 0:
            raise ValueError("page count and page size must be positive")
        self.num_phys_pages = num_phys_pages
        self.page_size = page_size
        self.main_memory = bytearray(num_phys_pages * page_size)
        self.registers = [0] * NUM_TOTAL_REGS
        self.page_table: list[TranslationEntry] | None = None
        self.page_table_size = 0
        self.halted = False

    @property
    def memory_size(self) -> int:
        return len(self.main_memory)

    def read_register(self, reg: int) -> int:
        """Return the value of register ``reg``."""
        if not 0 <= reg < NUM_TOTAL_REGS:
            raise IndexError(f"register {reg} out of range")
        return self.registers[reg]

    def write_register(self, reg: int, value: int) -> None:
        """Store ``value``, truncated to a signed 32-bit word, in register ``reg``."""
        if not 0 <= reg < NUM_TOTAL_REGS:
            raise IndexError(f"register {reg} out of range")
        self.registers[reg] = _to_signed32(value)

    def _translate(self, addr: int, size: int, writing: bool) -> int:
        if size not in (1, 2, 4):
            raise ValueError(f"unsupported access size {size}")
        if addr < 0 or addr % size:
            raise AddressError(f"unaligned or negative address {addr:#x}")
        if self.page_table is None:
            phys = addr
        else:
            vpn, offset = divmod(addr, self.page_size)
            if vpn >= self.page_table_size:
                raise AddressError(f"virtual page {vpn} beyond end of address space")
            entry = self.page_table[vpn]
            if not entry.valid:
                raise AddressError(f"no valid translation for virtual page {vpn}")
            if writing and entry.read_only:
                raise AddressError(f"write to read-only page {vpn}")
            if entry.physical_page >= self.num_phys_pages:
                raise AddressError(f"invalid physical page {entry.physical_page}")
            entry.use = True
            if writing:
                entry.dirty = True
            phys = entry.physical_page * self.page_size + offset
        if phys + size > len(self.main_memory):
            raise AddressError(f"physical address {phys:#x} beyond memory")
        return phys

    def read_mem(self, addr: int, size: int) -> int:
        """Read an unsigned little-endian value of ``size`` bytes at ``addr``."""
        phys = self._translate(addr, size, writing=False)
        return int.from_bytes(self.main_memory[phys:phys + size], "little")

    def write_mem(self, addr: int, size: int, value: int) -> None:
        """Write the low ``size`` bytes of ``value`` little-endian at ``addr``."""
        phys = self._translate(addr, size, writing=True)
        mask = (1 << (8 * size)) - 1
        self.main_memory[phys:phys + size] = (value & mask).to_bytes(size, "little")

    def halt(self) -> None:
        """Stop the machine."""
        self.halted = True
        raise MachineHalted("machine halted")