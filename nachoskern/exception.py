"""Kernel entry point for system calls and exceptions raised by user programs."""

from __future__ import annotations

import sys
from enum import IntEnum
from typing import Callable, Dict, Union

from .machine import NEXT_PC_REG, PC_REG, PREV_PC_REG, Machine
from .synchconsole import SynchConsole

RESULT_REG = 2
ARG_REGS = (4, 5, 6, 7)
MAX_LINE = 255
PRINT_STRING_LIMIT = 255

NOT_AN_INTEGER_WARNING = "\nWARNING! This is not a integer number"
SHUTDOWN_MESSAGE = "Shutdown, initiated by user program \n"


class ExceptionType(IntEnum):
    """Kinds of exception that transfer control from user code to the kernel."""

    NO_EXCEPTION = 0
    SYSCALL = 1
    PAGE_FAULT = 2
    READ_ONLY = 3
    BUS_ERROR = 4
    ADDRESS_ERROR = 5
    OVERFLOW = 6
    ILLEGAL_INSTR = 7
    NUM_EXCEPTION_TYPES = 8


class SyscallCode(IntEnum):
    """System call numbers, passed by user programs in register 2."""

    HALT = 0
    EXIT = 1
    EXEC = 2
    JOIN = 3
    CREATE = 4
    OPEN = 5
    READ = 6
    WRITE = 7
    CLOSE = 8
    FORK = 9
    YIELD = 10
    READ_INT = 11
    PRINT_INT = 12
    READ_CHAR = 13
    PRINT_CHAR = 14
    READ_STRING = 15
    PRINT_STRING = 16


_FATAL_MESSAGES = {
    ExceptionType.NO_EXCEPTION: "Everything OK",
    ExceptionType.PAGE_FAULT: "No valid translation found",
    ExceptionType.READ_ONLY: "Write attempted to page marked read-only",
    ExceptionType.BUS_ERROR: "Translation resulted in an invalid physical address",
    ExceptionType.ADDRESS_ERROR: (
        "Unaligned reference or one that was beyond the end of the address space"
    ),
    ExceptionType.OVERFLOW: "Integer overflow in add or sub.",
    ExceptionType.ILLEGAL_INSTR: " Unimplemented or reserved instr.",
}


def _wrap32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _parse_int_detail(text: Union[str, bytes]) -> tuple[int, bool]:
    """Return the parsed value and whether a non-zero fraction was rejected."""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("latin-1")
    if not text:
        return 0, False
    if text[0] == "-":
        if len(text) == 1:
            return 0, False
        start = 1
    elif _is_digit(text[0]):
        start = 0
    else:
        return 0, False

    end = len(text)
    for k in range(1, len(text)):
        ch = text[k]
        if ch == ".":
            if any(c != "0" for c in text[k + 1:]):
                return 0, True
            end = k
            break
        if not _is_digit(ch):
            return 0, False

    digits = text[start:end]
    value = int(digits) if digits else 0
    if text[0] == "-":
        value = -value
    return _wrap32(value), False


def parse_int(text: Union[str, bytes]) -> int:
    """Parse a console line as a 32-bit integer, giving 0 when it is not one.

    An optional leading '-' is allowed, and a fractional part made only of
    zeros (as in ``99.000``) is accepted and dropped.
    """
    return _parse_int_detail(text)[0]


def user_to_system(machine: Machine, virt_addr: int, limit: int) -> bytes:
    """Copy a NUL-terminated string of at most ``limit`` bytes out of user memory.

    The terminating NUL is not included in the result.
    """
    out = bytearray()
    for offset in range(limit):
        ch = machine.read_mem(virt_addr + offset, 1)
        if ch == 0:
            break
        out.append(ch)
    return bytes(out)


def system_to_user(machine: Machine, virt_addr: int, length: int, buffer: bytes) -> int:
    """Copy ``buffer`` into user memory, stopping after a NUL or ``length`` bytes.

    Bytes past the end of ``buffer`` count as NUL. Returns the number of
    bytes written, the NUL included.
    """
    if length < 0:
        raise ValueError("length must not be negative")
    written = 0
    while written < length:
        ch = buffer[written] if written < len(buffer) else 0
        machine.write_mem(virt_addr + written, 1, ch)
        written += 1
        if ch == 0:
            break
    return written


def inc_program_counter(machine: Machine) -> None:
    """Advance past the current instruction, keeping the previous PC."""
    pc = machine.read_register(PC_REG)
    next_pc = machine.read_register(NEXT_PC_REG)
    machine.write_register(PREV_PC_REG, pc)
    machine.write_register(PC_REG, next_pc)
    machine.write_register(NEXT_PC_REG, next_pc + 4)


def _report(message: str) -> None:
    sys.stdout.write(message)
    sys.stdout.flush()


class ExceptionHandler:
    """Handles system calls and fatal exceptions for one machine and console.

    Calling the handler with an :class:`ExceptionType` services it. Fatal
    exceptions and the Halt system call stop the machine, which raises
    :class:`~nachoskern.machine.MachineHalted`.
    """

    def __init__(self, machine: Machine, console: SynchConsole) -> None:
        self.machine = machine
        self.console = console
        self._syscalls: Dict[SyscallCode, Callable[[], int]] = {
            SyscallCode.HALT: self._halt,
            SyscallCode.READ_INT: self._read_int,
            SyscallCode.PRINT_INT: self._print_int,
            SyscallCode.READ_CHAR: self._read_char,
            SyscallCode.PRINT_CHAR: self._print_char,
            SyscallCode.READ_STRING: self._read_string,
            SyscallCode.PRINT_STRING: self._print_string,
        }

    def __call__(self, which: ExceptionType) -> None:
        which = ExceptionType(which)
        if which == ExceptionType.NUM_EXCEPTION_TYPES:
            return
        if which != ExceptionType.SYSCALL:
            _report(_FATAL_MESSAGES[which])
            self.machine.halt()
            return

        code = self.machine.read_register(RESULT_REG)
        try:
            action = self._syscalls.get(SyscallCode(code), self._unsupported)
        except ValueError:
            action = self._unsupported
        for _ in range(action()):
            inc_program_counter(self.machine)

    def _arg(self, index: int) -> int:
        return self.machine.read_register(ARG_REGS[index])

    def _read_line(self, limit: int) -> bytes | None:
        try:
            return self.console.read(limit)
        except EOFError:
            return None

    # Each system call returns how many times the program counter advances.

    def _unsupported(self) -> int:
        return 1

    def _halt(self) -> int:
        _report(SHUTDOWN_MESSAGE)
        self.machine.halt()
        return 0

    def _read_int(self) -> int:
        line = self._read_line(MAX_LINE)
        value, fraction_rejected = _parse_int_detail(line or b"")
        if fraction_rejected:
            _report(NOT_AN_INTEGER_WARNING)
        self.machine.write_register(RESULT_REG, value)
        return 1

    def _print_int(self) -> int:
        num = self._arg(0)
        if num < 0:
            self.console.write(b"-")
            num = _wrap32(-num)
        if num == 0:
            self.console.write(b"0")
        elif num > 0:
            self.console.write(str(num).encode("ascii"))
        else:
            # Negating the most negative word leaves it negative: no digits.
            self.console.write(b"")
        return 1

    def _read_char(self) -> int:
        line = self._read_line(MAX_LINE)
        if line is None or len(line) != 1:
            self.machine.write_register(RESULT_REG, 0)
        else:
            ch = line[0]
            self.machine.write_register(RESULT_REG, ch - 256 if ch >= 128 else ch)
        return 2

    def _print_char(self) -> int:
        self.console.write(bytes((self._arg(0) & 0xFF,)))
        return 1

    def _read_string(self) -> int:
        virt_addr = self._arg(0)
        length = self._arg(1)
        user_to_system(self.machine, virt_addr, length)
        line = self._read_line(length) or b""
        system_to_user(self.machine, virt_addr, length, line)
        return 2

    def _print_string(self) -> int:
        text = user_to_system(self.machine, self._arg(0), PRINT_STRING_LIMIT)
        self.console.write(text + b"\0")
        return 1