"""
ROM Disassembler - iNES ROM + CDL trace -> WLA-DX source tree.

Output directory:
  main.s         memory map, ROM bank map, iNES header section, RAM section,
                 one .INCLUDE per PRG bank, one .INCBIN stub per CHR bank
  bankNNN.asm    disassembled PRG bank NNN (WLA-DX bank NNN+1)
  bankNNN.chr    raw CHR bank NNN (WLA-DX bank prg_banks+NNN+1)

WLA-DX bank numbering: bank 0 is the 16-byte header, PRG banks follow from
1, CHR banks continue after the last PRG bank.

All length checks run before the output directory is created, so a ROM/CDL
mismatch leaves nothing behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from .bank import BankDisassembler
from .config import (
    CHR_BANK_SIZE, DEFAULT_LAYOUT, HEADER_SIZE, INES_MAGIC, PADDING_SIZE,
    PRG_BANK_SIZE, RAM_SIZE, OutputLayout,
)
from .errors import RomFormatError, TraceMismatchError
from .mappers import FIXED_BASE, MAPPER_POLICIES, get_policy, mapper_name
from .output_manager import OutputManager

__all__ = [
    'INesHeader', 'Cartridge', 'load_cartridge', 'load_trace',
    'render_main', 'RomDisassembler', 'disassemble_rom',
]

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# ──────────────────────────────────────────────
# iNES container
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class INesHeader:
    """The 16-byte iNES header, kept verbatim for re-emission."""
    prg_banks: int
    chr_banks: int
    flags: int
    padding: bytes = bytes(PADDING_SIZE)

    @property
    def mapper(self) -> int:
        """Mapper number from the high nibble of flags 6."""
        return self.flags >> 4

    @property
    def prg_size(self) -> int:
        return self.prg_banks * PRG_BANK_SIZE

    @property
    def chr_size(self) -> int:
        return self.chr_banks * CHR_BANK_SIZE

    @property
    def rom_size(self) -> int:
        """Minimum file size implied by the header."""
        return HEADER_SIZE + self.prg_size + self.chr_size

    @classmethod
    def parse(cls, raw: bytes, path: str = "") -> INesHeader:
        """
        Parse the header at the start of ``raw``.

        Raises:
            RomFormatError: short file or wrong magic.
        """
        if len(raw) < HEADER_SIZE:
            raise RomFormatError(
                f"file too short for an iNES header ({len(raw)} bytes)", path)
        if raw[:4] != INES_MAGIC:
            raise RomFormatError("This file is not an iNES ROM.", path)
        return cls(
            prg_banks=raw[4],
            chr_banks=raw[5],
            flags=raw[6],
            padding=bytes(raw[7:7 + PADDING_SIZE]),
        )

    def to_bytes(self) -> bytes:
        return INES_MAGIC + bytes([self.prg_banks, self.chr_banks, self.flags]) + self.padding

    def describe(self) -> List[str]:
        """Human-readable summary lines (used by ``--info`` and logging)."""
        supported = "yes" if self.mapper in MAPPER_POLICIES else "no (fallback)"
        return [
            f"PRG banks: {self.prg_banks} x 16KB ({self.prg_size} bytes)",
            f"CHR banks: {self.chr_banks} x 8KB ({self.chr_size} bytes)",
            f"Flags 6:   ${self.flags:02X}",
            f"Mapper:    {self.mapper} ({mapper_name(self.mapper)})",
            f"Policy:    {supported}",
        ]


@dataclass(frozen=True)
class Cartridge:
    """A parsed ROM: header plus PRG and CHR bank contents."""
    header: INesHeader
    prg: List[bytes]
    chr: List[bytes]

    @classmethod
    def from_bytes(cls, raw: bytes, path: str = "") -> Cartridge:
        """
        Split a ROM image into banks. Bytes past the declared size are ignored.

        Raises:
            RomFormatError: bad header or fewer bytes than the header declares.
        """
        header = INesHeader.parse(raw, path)
        if len(raw) < header.rom_size:
            raise RomFormatError(
                f"truncated ROM: header declares {header.rom_size} bytes, "
                f"file has {len(raw)}", path)

        prg_start = HEADER_SIZE
        chr_start = prg_start + header.prg_size
        prg = [raw[prg_start + i * PRG_BANK_SIZE:prg_start + (i + 1) * PRG_BANK_SIZE]
               for i in range(header.prg_banks)]
        chr_ = [raw[chr_start + i * CHR_BANK_SIZE:chr_start + (i + 1) * CHR_BANK_SIZE]
                for i in range(header.chr_banks)]
        return cls(header, prg, chr_)


def load_cartridge(path: PathLike) -> Cartridge:
    path = Path(path)
    return Cartridge.from_bytes(path.read_bytes(), str(path))


def load_trace(path: PathLike, header: INesHeader) -> bytes:
    """
    Read a CDL file and check it covers exactly the PRG-ROM.

    Raises:
        TraceMismatchError: trace length differs from the PRG size.
    """
    trace = Path(path).read_bytes()
    if len(trace) != header.prg_size:
        raise TraceMismatchError(header.prg_size, len(trace))
    return trace


# ──────────────────────────────────────────────
# main.s
# ──────────────────────────────────────────────

def render_main(header: INesHeader, layout: OutputLayout = DEFAULT_LAYOUT) -> str:
    """Build the top-level source file for ``header``."""
    ind = layout.indent
    lines = [
        ".MEMORYMAP",
        f"{ind}DEFAULTSLOT 1",
        f"{ind}SLOTSIZE ${HEADER_SIZE:04X}",
        f"{ind}SLOT 0 $0000",
        f"{ind}SLOTSIZE ${PRG_BANK_SIZE:X}",
        f"{ind}SLOT 1 ${FIXED_BASE:04X}",
        f"{ind}SLOTSIZE ${CHR_BANK_SIZE:X}",
        f"{ind}SLOT 2 $0000",
        f"{ind}SLOTSIZE ${RAM_SIZE:X}",
        f"{ind}SLOT 3 $0000",
        ".ENDME",
        "",
        ".ROMBANKMAP",
        f"{ind}BANKSTOTAL {header.prg_banks + header.chr_banks + 1}",
        f"{ind}BANKSIZE ${HEADER_SIZE:04X}",
        f"{ind}BANKS 1",
        f"{ind}BANKSIZE ${PRG_BANK_SIZE:X}",
        f"{ind}BANKS {header.prg_banks}",
        f"{ind}BANKSIZE ${CHR_BANK_SIZE:X}",
        f"{ind}BANKS {header.chr_banks}",
        ".ENDRO",
        "",
        ".BANK 0 SLOT 0",
        ".ORG $0000",
        "",
        '.SECTION "Header" FORCE',
        "",
        '.db "NES", $1A',
        f".db ${header.prg_banks:02X}",
        f".db ${header.chr_banks:02X}",
        " ".join([f".db ${header.flags:02X}"] + [f"${b:02X}" for b in header.padding]),
        "",
        ".ENDS",
        "",
        '.RAMSECTION "RAM" SLOT 3',
        ".ENDS",
        "",
    ]

    for bank_id in range(header.prg_banks):
        lines.append(f'.INCLUDE "{layout.prg_name(bank_id)}"')

    for chr_id in range(header.chr_banks):
        lines += [
            "",
            f".BANK {header.prg_banks + chr_id + 1} SLOT 2",
            ".ORG $0000",
            f'.INCBIN "{layout.chr_name(chr_id)}"',
        ]

    return "\n".join(lines) + "\n"


# ──────────────────────────────────────────────
# Driver
# ──────────────────────────────────────────────

class RomDisassembler:
    """
    Disassemble a ROM/CDL pair into ``output_dir``.

    Typical use::

        RomDisassembler("game.nes", "game.cdl", "out/").run()
    """

    def __init__(self, rom_path: PathLike, cdl_path: PathLike,
                 output_dir: PathLike, layout: OutputLayout = DEFAULT_LAYOUT):
        self.rom_path = Path(rom_path)
        self.cdl_path = Path(cdl_path)
        self.output_dir = Path(output_dir)
        self.layout = layout

    def run(self) -> OutputManager:
        """
        Run the whole pipeline; returns the output manager (for statistics).

        Raises:
            RomFormatError, TraceMismatchError, OSError
        """
        cart = load_cartridge(self.rom_path)
        header = cart.header
        trace = load_trace(self.cdl_path, header)

        logger.info("%s: %d PRG bank(s), %d CHR bank(s), mapper %d (%s)",
                    self.rom_path.name, header.prg_banks, header.chr_banks,
                    header.mapper, mapper_name(header.mapper))

        policy = get_policy(header.mapper)
        out = OutputManager(self.output_dir)
        out.write_text(render_main(header, self.layout), self.layout.main_file)

        disasm = BankDisassembler(header.prg_banks, policy, self.layout)
        for bank_id, data in enumerate(cart.prg):
            start = bank_id * PRG_BANK_SIZE
            logger.info("Disassembling PRG bank %d/%d", bank_id + 1, header.prg_banks)
            listing = disasm.disassemble(bank_id, data,
                                         trace[start:start + PRG_BANK_SIZE])
            out.write_text(listing.render(), self.layout.prg_name(bank_id))

        for chr_id, data in enumerate(cart.chr):
            out.write_binary(data, self.layout.chr_name(chr_id))

        return out


def disassemble_rom(rom_path: PathLike, cdl_path: PathLike, output_dir: PathLike,
                    layout: OutputLayout = DEFAULT_LAYOUT) -> OutputManager:
    return RomDisassembler(rom_path, cdl_path, output_dir, layout).run()
