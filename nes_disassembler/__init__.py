"""
nes_disassembler - NES ROM + CDL trace to WLA-DX source
=======================================================
Turns an iNES cartridge image and a code/data log (one CDL byte per PRG byte,
bit 0 = executed, bit 1 = read as data) into a reassemblable WLA-DX project.

Pipeline:
    ┌───────────┐    ┌────────────┐    ┌─────────────┐    ┌──────────────┐
    │ ROM + CDL │───>│ rom.py     │───>│ bank.py     │───>│ bankNNN.asm  │
    │ (.nes)    │    │ (header,   │    │ (scan state │    │ main.s       │
    │ (.cdl)    │    │  banks)    │    │  machine)   │    │ bankNNN.chr  │
    └───────────┘    └────────────┘    └─────────────┘    └──────────────┘
                                        uses opcodes.py, operands.py,
                                        mappers.py (bank address resolution)
"""

__version__ = "0.1.0"

from .errors import DisassemblerError, RomFormatError, TraceMismatchError
from .config import DEFAULT_LAYOUT, OutputLayout
from .opcodes import AddressingMode, Opcode, lookup
from .operands import Operand, format_operand
from .mappers import MapperPolicy, get_policy, is_ram_address, resolve_target
from .bank import BankDisassembler, BankListing, ScanState, disassemble_bank
from .rom import Cartridge, INesHeader, RomDisassembler, disassemble_rom
