"""A line-oriented console whose reads and writes block until complete."""

from __future__ import annotations

import os
import sys
import threading
from typing import BinaryIO, Union

NEWLINE = 0x0A
CTRL_A = 0x01

Source = Union[str, "os.PathLike[str]", BinaryIO, None]


def _open(target: Source, mode: str, default: BinaryIO) -> tuple[BinaryIO, bool]:
    if target is None:
        return default, False
    if hasattr(target, "read") or hasattr(target, "write"):
        return target, False  # type: ignore[return-value]
    return open(target, mode), True  # type: ignore[arg-type]


class SynchConsole:
    """Console with whole-line reads and writes, safe to share between threads.

    ``infile`` and ``outfile`` may be paths, binary file objects, or None for
    standard input and output. Files opened from paths are closed by
    :meth:`close`.
    """

    def __init__(self, infile: Source = None, outfile: Source = None) -> None:
        self._input, self._own_input = _open(infile, "rb", sys.stdin.buffer)
        self._output, self._own_output = _open(outfile, "wb", sys.stdout.buffer)
        self._read_lock = threading.Lock()
        self._write_lock = threading.Lock()

    def _getchar(self) -> int | None:
        data = self._input.read(1)
        return data[0] if data else None

    def _putchar(self, ch: int) -> None:
        self._output.write(bytes((ch,)))
        self._output.flush()

    def read(self, num_bytes: int) -> bytes:
        """Read up to ``num_bytes`` bytes of one line.

        Reading stops at a newline, which is consumed but not returned.
        A Ctrl-A byte marks end of stream and raises EOFError; so does
        exhausted input when nothing has been read.
        """
        out = bytearray()
        with self._read_lock:
            while len(out) < num_bytes:
                ch = self._getchar()
                if ch is None:
                    if not out:
                        raise EOFError("console input exhausted")
                    break
                if ch == CTRL_A:
                    raise EOFError("end of stream")
                if ch == NEWLINE:
                    break
                out.append(ch)
        return bytes(out)

    def write(self, data: bytes | str) -> int:
        """Write all of ``data`` and return the number of bytes written."""
        if isinstance(data, str):
            data = data.encode("latin-1")
        with self._write_lock:
            self._output.write(data)
            self._output.flush()
        return len(data)

    def close(self) -> None:
        """Close any files this console opened itself."""
        if self._own_input:
            self._input.close()
            self._own_input = False
        if self._own_output:
            self._output.close()
            self._own_output = False

    def __enter__(self) -> "SynchConsole":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def echo_console(infile: Source = None, outfile: Source = None) -> None:
    """Echo input characters to the output until a 'q' has been echoed.

    Also stops when the input runs out.
    """
    with SynchConsole(infile, outfile) as console:
        while True:
            ch = console._getchar()
            if ch is None:
                return
            console._putchar(ch)
            if ch == ord("q"):
                return