# nachoskern

The user-program layer of a small instructional operating-system kernel.
It has the pieces a kernel needs to load a user program into a simulated
machine's memory and to serve the program's console system calls.

## Modules

- `nachoskern.bitmap.BitMap`: a fixed-size bitmap for tracking free pages
  or disk sectors. `mark`, `clear` and `test` work on one bit and raise
  `IndexError` for a bit out of range. `find` sets the first clear bit and
  returns its number, or `None` when every bit is set. `num_clear` counts
  the clear bits, iterating yields the numbers of the set bits, and
  `str()` lists them. `write_back` stores the bits at the start of a
  binary file as little-endian 32-bit words, and `fetch_from` loads them
  back.
- `nachoskern.synchconsole.SynchConsole`: a console that can be shared
  between threads. Input and output may be paths, binary file objects,
  or `None` for standard input and output. `read(n)` returns up to `n`
  bytes of one line, without the newline; a Ctrl-A byte, or input that
  runs out before anything was read, raises `EOFError`. `write` writes a
  whole buffer (bytes, or a string encoded as Latin-1) and returns its
  length. It is a context manager; `close` closes only files it opened
  from paths. `echo_console(infile, outfile)` copies input to output one
  byte at a time until a `q` has been echoed or the input runs out.
- `nachoskern.machine.Machine`: a simulated machine with 40 registers and
  a main memory of `num_phys_pages * page_size` bytes (32 pages of 128
  bytes by default). Registers hold signed 32-bit values. `read_mem` and
  `write_mem` access 1, 2 or 4 bytes, little-endian, at an aligned
  address; with no page table installed addresses are physical, and
  otherwise they go through a list of `TranslationEntry` records, which
  marks pages used and dirty. Bad references raise `AddressError`.
  `halt` sets `halted` and raises `MachineHalted`.
- `nachoskern.addrspace.AddrSpace`: loads a NOFF executable, given as
  bytes or a binary file, into a machine. `NoffHeader.from_bytes` reads
  the header in either byte order. The address space is the three
  segments plus a 1024-byte stack, rounded up to whole pages and mapped
  one-to-one onto physical pages; memory is zeroed and the code and
  initialised-data segments are copied in. A bad magic number, a short
  header, a program larger than physical memory or a segment that does
  not fit raises `AddrSpaceError`. `init_registers` clears the registers
  and sets the program counter to 0, the next program counter to 4 and
  the stack pointer 16 bytes below the top. `save_state` records the
  registers in `saved_registers`; `restore_state` installs the page table
  in the machine.
- `nachoskern.exception.ExceptionHandler`: the kernel entry point for user
  traps, called with an `ExceptionType`. Fatal exceptions print a message
  and halt the machine. For a system call the code is taken from
  register 2 (`SyscallCode`) and arguments from registers 4 and 5:
  - `HALT` prints a shutdown message and halts the machine;
  - `READ_INT` reads a line and puts the number in register 2, or 0 if
    the line is not an integer (a fraction of only zeros, as in `99.000`,
    is accepted);
  - `PRINT_INT` writes the number in register 4 in decimal;
  - `READ_CHAR` puts the single character of a line in register 2, or 0
    if the line is empty or longer;
  - `PRINT_CHAR` writes the low byte of register 4;
  - `READ_STRING` reads a line of at most the length in register 5 into
    user memory at the address in register 4;
  - `PRINT_STRING` writes the NUL-terminated string at the address in
    register 4 (up to 255 bytes), followed by its NUL.

  Other system-call codes only advance the program counter. The helpers
  `user_to_system`, `system_to_user`, `inc_program_counter` and
  `parse_int` are available on their own.

## Example

```python
import io

from nachoskern.bitmap import BitMap
from nachoskern.exception import ExceptionHandler, ExceptionType, SyscallCode
from nachoskern.machine import Machine
from nachoskern.synchconsole import SynchConsole

pages = BitMap(32)
pages.find()              # 0
pages.mark(5)
pages.test(5)             # True
pages.num_clear()         # 30
print(pages)              # Bitmap set:\n0, 5, \n

machine = Machine()
out = io.BytesIO()
console = SynchConsole(io.BytesIO(b"42\n"), out)
handler = ExceptionHandler(machine, console)

machine.write_register(2, SyscallCode.READ_INT)
handler(ExceptionType.SYSCALL)
machine.read_register(2)  # 42

machine.write_register(2, SyscallCode.PRINT_INT)
machine.write_register(4, -17)
handler(ExceptionType.SYSCALL)
out.getvalue()            # b"-17"
```

To run a program, build a `Machine`, create an `AddrSpace` from its
executable, call `init_registers` and `restore_state`, and pass each trap
to an `ExceptionHandler` built with that machine and a `SynchConsole`.

## What it does not do

The machine does not execute instructions: there is no instruction
simulator or run loop, so a loaded program only runs if something else
steps through it and reports its traps to the handler. There are no
threads or scheduler, no file system, and no handling of the `EXIT`,
`EXEC`, `JOIN`, `CREATE`, `OPEN`, `READ`, `WRITE`, `CLOSE`, `FORK` or
`YIELD` system calls beyond advancing the program counter. The package
has no command-line program.

## Requirements

Python 3.10 or later; no third-party dependencies. The tests use pytest,
installed with the `test` extra.