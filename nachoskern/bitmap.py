"""A fixed-size array of bits used to track allocation of pages or sectors."""

from __future__ import annotations

from typing import BinaryIO

BITS_IN_BYTE = 8
BITS_IN_WORD = 32
_BYTES_IN_WORD = BITS_IN_WORD // BITS_IN_BYTE


class BitMap:
    """An array of bits, each of which can be set, cleared and tested.

    Storage is a list of 32-bit words, so the persisted form is
    ``ceil(nitems / 32) * 4`` bytes, little-endian.
    """

    def __init__(self, nitems: int = 0) -> None:
        if nitems < 0:
            raise ValueError("number of bits must not be negative")
        self.num_bits = nitems
        self.num_words = -(-nitems // BITS_IN_WORD)
        self._map = [0] * self.num_words

    def __len__(self) -> int:
        return self.num_bits

    def _check(self, which: int) -> None:
        if not 0 <= which < self.num_bits:
            raise IndexError(f"bit {which} out of range 0..{self.num_bits - 1}")

    def mark(self, which: int) -> None:
        """Set bit ``which``."""
        self._check(which)
        self._map[which // BITS_IN_WORD] |= 1 << (which % BITS_IN_WORD)

    def clear(self, which: int) -> None:
        """Clear bit ``which``."""
        self._check(which)
        self._map[which // BITS_IN_WORD] &= ~(1 << (which % BITS_IN_WORD)) & 0xFFFFFFFF

    def test(self, which: int) -> bool:
        """Return True if bit ``which`` is set."""
        self._check(which)
        return bool(self._map[which // BITS_IN_WORD] & (1 << (which % BITS_IN_WORD)))

    def find(self) -> int | None:
        """Allocate the first clear bit and return its number, or None if all are set."""
        for i in range(self.num_bits):
            if not self.test(i):
                self.mark(i)
                return i
        return None

    def num_clear(self) -> int:
        """Return how many bits are clear."""
        return sum(1 for i in range(self.num_bits) if not self.test(i))

    def __iter__(self):
        """Yield the numbers of the bits that are set, in order."""
        return (i for i in range(self.num_bits) if self.test(i))

    def __str__(self) -> str:
        return "Bitmap set:\n" + "".join(f"{i}, " for i in self) + "\n"

    def to_bytes(self) -> bytes:
        """Return the raw word storage as bytes."""
        return b"".join(w.to_bytes(_BYTES_IN_WORD, "little") for w in self._map)

    def fetch_from(self, file: BinaryIO) -> None:
        """Load the bit storage from the start of a binary file."""
        size = self.num_words * _BYTES_IN_WORD
        file.seek(0)
        data = file.read(size)
        data = data + bytes(size - len(data))
        self._map = [
            int.from_bytes(data[off:off + _BYTES_IN_WORD], "little")
            for off in range(0, size, _BYTES_IN_WORD)
        ]

    def write_back(self, file: BinaryIO) -> None:
        """Store the bit storage at the start of a binary file."""
        file.seek(0)
        file.write(self.to_bytes())