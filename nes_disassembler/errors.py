"""
Exceptions raised by the NES disassembler.

Unsupported mappers and undefined opcodes are not errors: the first is
logged and degraded, the second is written into the listing as data.
"""

from __future__ import annotations

from typing import Optional

__all__ = ['DisassemblerError', 'RomFormatError', 'TraceMismatchError']


class DisassemblerError(Exception):
    """Base class for every error raised by nes_disassembler."""


class RomFormatError(DisassemblerError):
    """The ROM image is not a usable iNES file (bad magic or truncated)."""
    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class TraceMismatchError(DisassemblerError):
    """The CDL trace does not line up with the PRG-ROM it claims to describe.

    Raised when a bank's trace window and byte window differ in length, or
    when the whole trace is not exactly ``prg_banks * PRG_BANK_SIZE`` bytes.
    This means the ROM and CDL were not produced from the same image.
    """
    def __init__(self, expected: int, actual: int, bank_id: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        self.bank_id = bank_id
        where = f"bank {bank_id}" if bank_id is not None else "CDL file"
        super().__init__(
            f"{where}: expected {expected} trace bytes, got {actual} "
            f"(ROM and CDL do not match)"
        )
