"""
6502 Instruction Table (official opcodes only)

Maps every opcode byte to an optional (mnemonic, addressing mode) pair.
Slots without an entry are the undocumented/illegal opcodes, which the
disassembler emits as data.

Addressing modes and operand sizes:
  Implied        no operand                e.g. RTS, CLC
  Accumulator    no operand (A register)   e.g. ASL, ROR
  Immediate      #value (1 byte)           e.g. LDA #5
  ZeroPage       $hh (1 byte)              e.g. LDA $10
  ZeroPageX/Y    $hh,X / $hh,Y (1 byte)    e.g. STY $10,X
  XIndirect      ($hh,X) (1 byte)          e.g. LDA ($20,X)
  IndirectY      ($hh),Y (1 byte)          e.g. STA ($20),Y
  Relative       signed branch (1 byte)    e.g. BNE label
  Absolute       $hhhh (2 bytes, LE)       e.g. JMP $C000
  AbsoluteX/Y    $hhhh,X / $hhhh,Y         e.g. LDA $0300,Y
  Indirect       ($hhhh) (2 bytes, LE)     e.g. JMP ($FFFC)

Reference: MOS MCS6500 Microcomputer Family Programming Manual, Appendix B.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

__all__ = [
    'AddressingMode', 'Opcode', 'OPCODES', 'lookup',
    'BLOCK_END_MNEMONICS',
]


class AddressingMode(Enum):
    """6502 addressing mode; the value is the short tag used in debug output."""
    ABSOLUTE = 'abs'
    ABSOLUTE_X = 'absx'
    ABSOLUTE_Y = 'absy'
    ACCUMULATOR = 'acc'
    IMMEDIATE = 'imm'
    IMPLIED = 'imp'
    INDIRECT = 'ind'
    INDIRECT_Y = 'indy'
    RELATIVE = 'rel'
    X_INDIRECT = 'xind'
    ZERO_PAGE = 'zp'
    ZERO_PAGE_X = 'zpx'
    ZERO_PAGE_Y = 'zpy'

    @property
    def operand_size(self) -> int:
        return _OPERAND_SIZES[self]


_OPERAND_SIZES = {
    AddressingMode.ABSOLUTE: 2,
    AddressingMode.ABSOLUTE_X: 2,
    AddressingMode.ABSOLUTE_Y: 2,
    AddressingMode.INDIRECT: 2,
    AddressingMode.IMMEDIATE: 1,
    AddressingMode.INDIRECT_Y: 1,
    AddressingMode.RELATIVE: 1,
    AddressingMode.X_INDIRECT: 1,
    AddressingMode.ZERO_PAGE: 1,
    AddressingMode.ZERO_PAGE_X: 1,
    AddressingMode.ZERO_PAGE_Y: 1,
    AddressingMode.ACCUMULATOR: 0,
    AddressingMode.IMPLIED: 0,
}


@dataclass(frozen=True)
class Opcode:
    """A defined 6502 opcode."""
    code: int
    mnemonic: str
    mode: AddressingMode

    @property
    def operand_size(self) -> int:
        return self.mode.operand_size

    @property
    def size(self) -> int:
        """Total instruction length including the opcode byte."""
        return 1 + self.mode.operand_size


# Mnemonics that end a block: a blank line follows and the next instruction
# gets a label.
BLOCK_END_MNEMONICS = frozenset({'RTS', 'JMP'})


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────

OPCODES: List[Optional[Opcode]] = [None] * 256

ABS = AddressingMode.ABSOLUTE
ABX = AddressingMode.ABSOLUTE_X
ABY = AddressingMode.ABSOLUTE_Y
ACC = AddressingMode.ACCUMULATOR
IMM = AddressingMode.IMMEDIATE
IMP = AddressingMode.IMPLIED
IND = AddressingMode.INDIRECT
IZY = AddressingMode.INDIRECT_Y
REL = AddressingMode.RELATIVE
IZX = AddressingMode.X_INDIRECT
ZP = AddressingMode.ZERO_PAGE
ZPX = AddressingMode.ZERO_PAGE_X
ZPY = AddressingMode.ZERO_PAGE_Y


def _op(code: int, mnemonic: str, mode: AddressingMode):
    """Register an opcode entry."""
    if OPCODES[code] is not None:
        raise ValueError(f"opcode ${code:02X} registered twice")
    OPCODES[code] = Opcode(code, mnemonic, mode)


# ── Load / store ──
_op(0xA9, 'LDA', IMM)
_op(0xA5, 'LDA', ZP)
_op(0xB5, 'LDA', ZPX)
_op(0xAD, 'LDA', ABS)
_op(0xBD, 'LDA', ABX)
_op(0xB9, 'LDA', ABY)
_op(0xA1, 'LDA', IZX)
_op(0xB1, 'LDA', IZY)
_op(0xA2, 'LDX', IMM)
_op(0xA6, 'LDX', ZP)
_op(0xB6, 'LDX', ZPY)
_op(0xAE, 'LDX', ABS)
_op(0xBE, 'LDX', ABY)
_op(0xA0, 'LDY', IMM)
_op(0xA4, 'LDY', ZP)
_op(0xB4, 'LDY', ZPX)
_op(0xAC, 'LDY', ABS)
_op(0xBC, 'LDY', ABX)
_op(0x85, 'STA', ZP)
_op(0x95, 'STA', ZPX)
_op(0x8D, 'STA', ABS)
_op(0x9D, 'STA', ABX)
_op(0x99, 'STA', ABY)
_op(0x81, 'STA', IZX)
_op(0x91, 'STA', IZY)
_op(0x86, 'STX', ZP)
_op(0x96, 'STX', ZPY)
_op(0x8E, 'STX', ABS)
_op(0x84, 'STY', ZP)
_op(0x94, 'STY', ZPX)
_op(0x8C, 'STY', ABS)

# ── Register transfers / stack ──
_op(0xAA, 'TAX', IMP)
_op(0xA8, 'TAY', IMP)
_op(0xBA, 'TSX', IMP)
_op(0x8A, 'TXA', IMP)
_op(0x9A, 'TXS', IMP)
_op(0x98, 'TYA', IMP)
_op(0x48, 'PHA', IMP)
_op(0x08, 'PHP', IMP)
_op(0x68, 'PLA', IMP)
_op(0x28, 'PLP', IMP)

# ── Arithmetic / logic ──
_op(0x69, 'ADC', IMM)
_op(0x65, 'ADC', ZP)
_op(0x75, 'ADC', ZPX)
_op(0x6D, 'ADC', ABS)
_op(0x7D, 'ADC', ABX)
_op(0x79, 'ADC', ABY)
_op(0x61, 'ADC', IZX)
_op(0x71, 'ADC', IZY)
_op(0xE9, 'SBC', IMM)
_op(0xE5, 'SBC', ZP)
_op(0xF5, 'SBC', ZPX)
_op(0xED, 'SBC', ABS)
_op(0xFD, 'SBC', ABX)
_op(0xF9, 'SBC', ABY)
_op(0xE1, 'SBC', IZX)
_op(0xF1, 'SBC', IZY)
_op(0x29, 'AND', IMM)
_op(0x25, 'AND', ZP)
_op(0x35, 'AND', ZPX)
_op(0x2D, 'AND', ABS)
_op(0x3D, 'AND', ABX)
_op(0x39, 'AND', ABY)
_op(0x21, 'AND', IZX)
_op(0x31, 'AND', IZY)
_op(0x09, 'ORA', IMM)
_op(0x05, 'ORA', ZP)
_op(0x15, 'ORA', ZPX)
_op(0x0D, 'ORA', ABS)
_op(0x1D, 'ORA', ABX)
_op(0x19, 'ORA', ABY)
_op(0x01, 'ORA', IZX)
_op(0x11, 'ORA', IZY)
_op(0x49, 'EOR', IMM)
_op(0x45, 'EOR', ZP)
_op(0x55, 'EOR', ZPX)
_op(0x4D, 'EOR', ABS)
_op(0x5D, 'EOR', ABX)
_op(0x59, 'EOR', ABY)
_op(0x41, 'EOR', IZX)
_op(0x51, 'EOR', IZY)
_op(0x24, 'BIT', ZP)
_op(0x2C, 'BIT', ABS)

# ── Compare ──
_op(0xC9, 'CMP', IMM)
_op(0xC5, 'CMP', ZP)
_op(0xD5, 'CMP', ZPX)
_op(0xCD, 'CMP', ABS)
_op(0xDD, 'CMP', ABX)
_op(0xD9, 'CMP', ABY)
_op(0xC1, 'CMP', IZX)
_op(0xD1, 'CMP', IZY)
_op(0xE0, 'CPX', IMM)
_op(0xE4, 'CPX', ZP)
_op(0xEC, 'CPX', ABS)
_op(0xC0, 'CPY', IMM)
_op(0xC4, 'CPY', ZP)
_op(0xCC, 'CPY', ABS)

# ── Increment / decrement ──
_op(0xE6, 'INC', ZP)
_op(0xF6, 'INC', ZPX)
_op(0xEE, 'INC', ABS)
_op(0xFE, 'INC', ABX)
_op(0xC6, 'DEC', ZP)
_op(0xD6, 'DEC', ZPX)
_op(0xCE, 'DEC', ABS)
_op(0xDE, 'DEC', ABX)
_op(0xE8, 'INX', IMP)
_op(0xC8, 'INY', IMP)
_op(0xCA, 'DEX', IMP)
_op(0x88, 'DEY', IMP)

# ── Shifts / rotates ──
_op(0x0A, 'ASL', ACC)
_op(0x06, 'ASL', ZP)
_op(0x16, 'ASL', ZPX)
_op(0x0E, 'ASL', ABS)
_op(0x1E, 'ASL', ABX)
_op(0x4A, 'LSR', ACC)
_op(0x46, 'LSR', ZP)
_op(0x56, 'LSR', ZPX)
_op(0x4E, 'LSR', ABS)
_op(0x5E, 'LSR', ABX)
_op(0x2A, 'ROL', ACC)
_op(0x26, 'ROL', ZP)
_op(0x36, 'ROL', ZPX)
_op(0x2E, 'ROL', ABS)
_op(0x3E, 'ROL', ABX)
_op(0x6A, 'ROR', ACC)
_op(0x66, 'ROR', ZP)
_op(0x76, 'ROR', ZPX)
_op(0x6E, 'ROR', ABS)
_op(0x7E, 'ROR', ABX)

# ── Jumps / calls ──
_op(0x4C, 'JMP', ABS)
_op(0x6C, 'JMP', IND)
_op(0x20, 'JSR', ABS)
_op(0x60, 'RTS', IMP)
_op(0x40, 'RTI', IMP)

# ── Branches ──
_op(0x90, 'BCC', REL)
_op(0xB0, 'BCS', REL)
_op(0xF0, 'BEQ', REL)
_op(0x30, 'BMI', REL)
_op(0xD0, 'BNE', REL)
_op(0x10, 'BPL', REL)
_op(0x50, 'BVC', REL)
_op(0x70, 'BVS', REL)

# ── Status flags / system ──
_op(0x18, 'CLC', IMP)
_op(0xD8, 'CLD', IMP)
_op(0x58, 'CLI', IMP)
_op(0xB8, 'CLV', IMP)
_op(0x38, 'SEC', IMP)
_op(0xF8, 'SED', IMP)
_op(0x78, 'SEI', IMP)
_op(0x00, 'BRK', IMP)
_op(0xEA, 'NOP', IMP)


def lookup(opcode: int) -> Optional[Opcode]:
    """Return the descriptor for ``opcode``, or None for an illegal opcode."""
    if not 0 <= opcode <= 0xFF:
        raise ValueError(f"opcode out of range: {opcode}")
    return OPCODES[opcode]
