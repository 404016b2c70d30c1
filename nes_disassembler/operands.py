"""
Operand Formatter - turns raw operand bytes into WLA-DX operand text.

  Mode         Bytes  Text                Target
  ----------   -----  ------------------  -------------------------
  Absolute       2    Lxxxxxx.w / $hhhh   resolved global address
  AbsoluteX/Y    2    ...,X / ...,Y       resolved global address
  Relative       1    Lxxxxxx             address + disp + 2
  Indirect       2    ($hhhh)             -
  IndirectY      1    ($hh),Y             -
  XIndirect      1    ($hh,X)             -
  ZeroPage/X/Y   1    $hh / $hh,X / $hh,Y -
  Immediate      1    #<decimal>          -
  Acc/Implied    0    (empty)             -

Multi-byte operands are little-endian.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .mappers import MapperPolicy, resolve_target
from .opcodes import AddressingMode

__all__ = ['Operand', 'format_operand']


@dataclass(frozen=True)
class Operand:
    """A formatted operand. ``target`` is a global address that needs a label."""
    size: int
    text: str
    target: Optional[int] = None


def _signed(byte: int) -> int:
    return byte - 0x100 if byte & 0x80 else byte


def format_operand(mode: AddressingMode, operand_bytes: Sequence[int],
                   bank_id: int, address: int, bank_count: int,
                   policy: MapperPolicy) -> Operand:
    """
    Format the operand of one instruction.

    Args:
        mode: Addressing mode of the opcode.
        operand_bytes: Bytes following the opcode (extra bytes are ignored).
        bank_id: PRG bank being disassembled.
        address: Global address of the opcode byte.
        bank_count: Number of PRG banks in the ROM.
        policy: Mapper policy used to resolve absolute addresses.

    Raises:
        ValueError: fewer operand bytes than ``mode`` needs.
    """
    size = mode.operand_size
    if len(operand_bytes) < size:
        raise ValueError(
            f"{mode.name} needs {size} operand byte(s), got {len(operand_bytes)}"
        )

    if size == 0:
        return Operand(0, "")

    lo = operand_bytes[0]

    if mode is AddressingMode.RELATIVE:
        target = address + _signed(lo) + 2
        return Operand(1, f"L{target:06X}", target)

    if size == 1:
        text = {
            AddressingMode.IMMEDIATE: f"#{lo}",
            AddressingMode.ZERO_PAGE: f"${lo:02X}",
            AddressingMode.ZERO_PAGE_X: f"${lo:02X},X",
            AddressingMode.ZERO_PAGE_Y: f"${lo:02X},Y",
            AddressingMode.INDIRECT_Y: f"(${lo:02X}),Y",
            AddressingMode.X_INDIRECT: f"(${lo:02X},X)",
        }[mode]
        return Operand(1, text)

    word = lo | (operand_bytes[1] << 8)

    if mode is AddressingMode.INDIRECT:
        return Operand(2, f"(${word:04X})")

    label, target = resolve_target(bank_id, word, bank_count, policy)
    if mode is AddressingMode.ABSOLUTE_X:
        label += ",X"
    elif mode is AddressingMode.ABSOLUTE_Y:
        label += ",Y"
    return Operand(2, label, target)
