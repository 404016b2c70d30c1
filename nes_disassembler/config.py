"""
iNES geometry and output layout settings.

iNES layout:
  0x0000-0x000F   Header ("NES" $1A, PRG banks, CHR banks, flags, 9 padding)
  0x0010-...      PRG-ROM, PRG_BANK_SIZE bytes per bank
  ...-EOF         CHR-ROM, CHR_BANK_SIZE bytes per bank

The CDL trace covers PRG-ROM only, one byte per PRG byte.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    'INES_MAGIC', 'HEADER_SIZE', 'PADDING_SIZE', 'PRG_BANK_SIZE',
    'CHR_BANK_SIZE', 'RAM_SIZE', 'OutputLayout', 'DEFAULT_LAYOUT',
]

INES_MAGIC = b'NES\x1a'
HEADER_SIZE = 0x10
PADDING_SIZE = 9
PRG_BANK_SIZE = 0x4000         # 16KB
CHR_BANK_SIZE = 0x2000         # 8KB
RAM_SIZE = 0x800               # 2KB internal work RAM


@dataclass(frozen=True)
class OutputLayout:
    """
    Names and spacing used for the generated source tree.

    Attributes:
        main_file: Top-level file holding the memory map and bank includes
        prg_template: File name for PRG bank N (``str.format`` with ``id``)
        chr_template: File name for CHR bank N (``str.format`` with ``id``)
        indent: Leading whitespace for instruction lines
    """
    main_file: str = "main.s"
    prg_template: str = "bank{id:03}.asm"
    chr_template: str = "bank{id:03}.chr"
    indent: str = "    "

    def prg_name(self, bank_id: int) -> str:
        return self.prg_template.format(id=bank_id)

    def chr_name(self, bank_id: int) -> str:
        return self.chr_template.format(id=bank_id)


DEFAULT_LAYOUT = OutputLayout()
