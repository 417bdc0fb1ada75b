"""User-program support for a small teaching kernel: bitmaps, a synchronous
console, a simulated machine, address spaces and system-call handling."""

__version__ = "0.1.0"
__all__ = ["addrspace", "bitmap", "exception", "machine", "synchconsole"]