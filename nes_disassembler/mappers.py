"""
Bank Address Resolver - mapper policies for NES PRG banking

Every PRG byte gets a *global address* that is unique across the cartridge:

    global = bank_index * 0x10000 + cpu_address

so bank 3 loaded at $8000 starts at global $038000 and the label for it is
``L038000``. Which CPU address a bank loads at, and which bank an operand
address refers to, depends on the cartridge's mapper hardware.

NES CPU memory map (as seen by operand resolution):
  $0000-$07FF   Internal RAM                 -> raw address, no label
  $0800-$5FFF   RAM mirrors / PPU / APU / IO -> folded into the current bank
  $6000-$7FFF   Cartridge work RAM           -> raw address, no label
  $8000-$BFFF   Switchable PRG window        -> current bank
  $C000-$FFFF   Fixed PRG window             -> the mapper's fixed bank

Only mapper 10 (MMC4 / FxROM) has an explicit policy. Other mappers fall
back to loading every bank at $8000 and log a warning: labels produced for
them may be wrong.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple, Type

__all__ = [
    'BANK_STRIDE', 'SWITCHABLE_BASE', 'FIXED_BASE',
    'is_ram_address', 'global_address',
    'MapperPolicy', 'MMC4Policy', 'FallbackPolicy',
    'MAPPER_POLICIES', 'MAPPER_NAMES', 'register_policy', 'get_policy',
    'mapper_name', 'bank_base_offset', 'resolve_target',
]

logger = logging.getLogger(__name__)

BANK_STRIDE = 0x10000          # Global address distance between banks
SWITCHABLE_BASE = 0x8000       # CPU address of the switchable PRG window
FIXED_BASE = 0xC000            # CPU address of the fixed PRG window

INTERNAL_RAM_END = 0x0800      # $0000-$07FF
WORK_RAM_START = 0x6000        # $6000-$7FFF
WORK_RAM_END = 0x8000

# Board names for diagnostics only; a name here does not mean the mapper
# has a policy.
MAPPER_NAMES: Dict[int, str] = {
    0: 'NROM',
    1: 'SxROM, MMC1',
    2: 'UxROM',
    3: 'CNROM',
    4: 'TxROM, MMC3, MMC6',
    5: 'ExROM, MMC5',
    7: 'AxROM',
    9: 'PxROM, MMC2',
    10: 'FxROM, MMC4',
    11: 'Color Dreams',
    13: 'CPROM',
}


def is_ram_address(addr: int) -> bool:
    """True for CPU addresses that point at internal or cartridge RAM."""
    return addr < INTERNAL_RAM_END or WORK_RAM_START <= addr < WORK_RAM_END


def global_address(bank_id: int, addr: int) -> int:
    return bank_id * BANK_STRIDE + addr


def mapper_name(mapper_id: int) -> str:
    return MAPPER_NAMES.get(mapper_id, 'unknown board')


# ──────────────────────────────────────────────
# Policies
# ──────────────────────────────────────────────

class MapperPolicy:
    """
    How one mapper lays PRG banks out in CPU address space.

    Subclasses set ``MAPPER_ID`` / ``NAME`` and override ``bank_base``
    (and ``resolve_bank`` if the fixed window is not the last bank).
    """

    MAPPER_ID: Optional[int] = None
    NAME = "generic"

    def bank_base(self, bank_id: int, bank_count: int) -> int:
        """CPU address that ``bank_id`` is loaded at."""
        return SWITCHABLE_BASE

    def resolve_bank(self, addr: int, bank_id: int, bank_count: int) -> int:
        """Bank an operand address in the PRG windows refers to.

        Addresses in the fixed window belong to the last bank; anything
        else is assumed to be in the bank currently being disassembled.
        """
        if addr >= FIXED_BASE:
            return bank_count - 1
        return bank_id

    def __repr__(self):
        return f"{type(self).__name__}(mapper={self.MAPPER_ID}, name={self.NAME!r})"


MAPPER_POLICIES: Dict[int, Type[MapperPolicy]] = {}


def register_policy(cls: Type[MapperPolicy]) -> Type[MapperPolicy]:
    """Class decorator: make ``cls`` the policy for its ``MAPPER_ID``."""
    if cls.MAPPER_ID is None:
        raise ValueError(f"{cls.__name__} has no MAPPER_ID")
    if cls.MAPPER_ID in MAPPER_POLICIES:
        raise ValueError(f"mapper {cls.MAPPER_ID} already has a policy")
    MAPPER_POLICIES[cls.MAPPER_ID] = cls
    return cls


@register_policy
class MMC4Policy(MapperPolicy):
    """Mapper 10: 16KB switchable bank at $8000, last bank fixed at $C000."""

    MAPPER_ID = 10
    NAME = MAPPER_NAMES[10]

    def bank_base(self, bank_id: int, bank_count: int) -> int:
        if bank_id == bank_count - 1:
            return FIXED_BASE
        return SWITCHABLE_BASE


class FallbackPolicy(MapperPolicy):
    """Best-effort policy for mappers without an explicit one."""

    NAME = "fallback"

    def __init__(self, mapper_id: int):
        self.MAPPER_ID = mapper_id


def get_policy(mapper_id: int) -> MapperPolicy:
    """Return the policy for ``mapper_id``, falling back with a warning."""
    cls = MAPPER_POLICIES.get(mapper_id)
    if cls is not None:
        logger.debug("Mapper %d (%s): using %s", mapper_id, cls.NAME, cls.__name__)
        return cls()
    logger.warning(
        "Unhandled mapper: %d (%s); assuming every bank loads at $%04X, "
        "labels may be wrong",
        mapper_id, mapper_name(mapper_id), SWITCHABLE_BASE,
    )
    return FallbackPolicy(mapper_id)


# ──────────────────────────────────────────────
# Resolution
# ──────────────────────────────────────────────

def bank_base_offset(bank_id: int, bank_count: int, policy: MapperPolicy) -> int:
    """CPU load address of ``bank_id`` under ``policy``."""
    return policy.bank_base(bank_id, bank_count)


def resolve_target(bank_id: int, addr: int, bank_count: int,
                   policy: MapperPolicy) -> Tuple[str, int]:
    """
    Resolve a 16-bit absolute operand seen in ``bank_id``.

    Returns:
        (display_text, global_address). RAM addresses come back as
        ``$hhhh`` with the raw address; everything else as a word-sized
        label reference ``Lxxxxxx.w`` with its bank-qualified address.
    """
    if is_ram_address(addr):
        return f"${addr:04X}", addr

    target = global_address(policy.resolve_bank(addr, bank_id, bank_count), addr)
    return f"L{target:06X}.w", target
