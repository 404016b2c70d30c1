#!/usr/bin/env python3
"""
nesdisasm - NES ROM disassembler driven by a CDL trace

Usage:
    python nesdisasm.py <rom.nes> --cdl <trace.cdl> --output <dir>
                        [--main-file main.s] [-v | -q] [--log-file path]
    python nesdisasm.py <rom.nes> --info

Output directory:
    main.s        memory map, bank map, header, .INCLUDE/.INCBIN list
    bankNNN.asm   one WLA-DX section per PRG bank
    bankNNN.chr   raw CHR banks

Examples:
    python nesdisasm.py game.nes --cdl game.cdl --output src/
    python nesdisasm.py game.nes --cdl game.cdl -o src/ -v --log-file run.log
    python nesdisasm.py game.nes --info
"""

import argparse
import os
import sys

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from nes_disassembler import __version__
from nes_disassembler.config import DEFAULT_LAYOUT, HEADER_SIZE, OutputLayout
from nes_disassembler.errors import DisassemblerError
from nes_disassembler.log_setup import level_from_flags, setup_logging
from nes_disassembler.rom import INesHeader, RomDisassembler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nesdisasm",
        description="Disassemble an iNES ROM into WLA-DX source using a CDL trace",
    )
    parser.add_argument("rom", help="Input iNES ROM file")
    parser.add_argument("-c", "--cdl", help="Code/data log for the ROM's PRG data")
    parser.add_argument("-o", "--output", help="Output directory (created if missing)")
    parser.add_argument("--main-file", default=DEFAULT_LAYOUT.main_file,
                        help=f"Name of the top-level source file (default: {DEFAULT_LAYOUT.main_file})")
    parser.add_argument("--info", action="store_true",
                        help="Print the iNES header summary and exit")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", default=None,
                        help="Also write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"nesdisasm {__version__}")
    return parser


def show_info(rom_path: str):
    """Print the header summary of ``rom_path`` to stdout."""
    with open(rom_path, "rb") as f:
        raw = f.read(HEADER_SIZE)
    header = INesHeader.parse(raw, rom_path)
    print(rom_path)
    for line in header.describe():
        print(f"  {line}")


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.info and (not args.cdl or not args.output):
        parser.error("--cdl and --output are required unless --info is given")

    try:
        logger = setup_logging(level_from_flags(args.verbose, args.quiet), args.log_file)

        if args.info:
            show_info(args.rom)
            return 0

        layout = OutputLayout(main_file=args.main_file)
        out = RomDisassembler(args.rom, args.cdl, args.output, layout).run()
        out.log_summary()
        logger.debug("Output statistics: %s", out.get_statistics())

    except (DisassemblerError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
