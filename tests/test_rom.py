"""
ROM disassembler tests: iNES parsing, main.s layout, end-to-end runs on
synthetic ROM/CDL pairs written to tmp_path.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging

import pytest
from nes_disassembler.bank import BankDisassembler
from nes_disassembler.config import CHR_BANK_SIZE, PRG_BANK_SIZE, OutputLayout
from nes_disassembler.errors import RomFormatError, TraceMismatchError
from nes_disassembler.mappers import get_policy
from nes_disassembler.rom import (
    Cartridge, INesHeader, disassemble_rom, load_cartridge, render_main,
)


def make_header(prg_banks=1, chr_banks=0, flags=0x01, padding=bytes(9)):
    return b'NES\x1a' + bytes([prg_banks, chr_banks, flags]) + padding


def make_rom(prg_banks=1, chr_banks=0, flags=0x01, code=b'', chr_fill=0x5A):
    """ROM whose first PRG bank starts with ``code`` (rest zero)."""
    prg = bytearray(prg_banks * PRG_BANK_SIZE)
    prg[:len(code)] = code
    chr_ = bytes([chr_fill]) * (chr_banks * CHR_BANK_SIZE)
    return make_header(prg_banks, chr_banks, flags) + bytes(prg) + chr_


def make_trace(prg_banks=1, marks=b''):
    trace = bytearray(prg_banks * PRG_BANK_SIZE)
    trace[:len(marks)] = marks
    return bytes(trace)


@pytest.fixture
def write_pair(tmp_path):
    """Write a ROM/CDL pair and return (rom_path, cdl_path, out_dir)."""
    def _write(rom, trace):
        rom_path = tmp_path / "game.nes"
        cdl_path = tmp_path / "game.cdl"
        rom_path.write_bytes(rom)
        cdl_path.write_bytes(trace)
        return rom_path, cdl_path, tmp_path / "out"
    return _write


class TestHeader:

    def test_parse_fields(self):
        header = INesHeader.parse(make_header(2, 1, 0xA1, bytes(range(9))))
        assert header.prg_banks == 2
        assert header.chr_banks == 1
        assert header.flags == 0xA1
        assert header.mapper == 10
        assert header.padding == bytes(range(9))

    def test_to_bytes_is_verbatim(self):
        raw = make_header(3, 2, 0x42, bytes([1, 2, 3, 4, 5, 6, 7, 8, 9]))
        assert INesHeader.parse(raw).to_bytes() == raw

    def test_sizes(self):
        header = INesHeader.parse(make_header(2, 1))
        assert header.prg_size == 0x8000
        assert header.chr_size == 0x2000
        assert header.rom_size == 0x10 + 0x8000 + 0x2000

    def test_bad_magic(self):
        with pytest.raises(RomFormatError) as exc:
            INesHeader.parse(b'NES\x00' + bytes(12), "x.nes")
        assert "not an iNES ROM" in str(exc.value)
        assert exc.value.path == "x.nes"

    def test_short_header(self):
        with pytest.raises(RomFormatError):
            INesHeader.parse(b'NES\x1a\x01')

    def test_describe_mentions_mapper(self):
        text = "\n".join(INesHeader.parse(make_header(flags=0xA0)).describe())
        assert "Mapper:    10 (FxROM, MMC4)" in text
        assert "Policy:    yes" in text


class TestCartridge:

    def test_split_banks(self):
        rom = make_rom(prg_banks=2, chr_banks=1, code=b'\xA9\x05')
        cart = Cartridge.from_bytes(rom)
        assert len(cart.prg) == 2
        assert all(len(b) == PRG_BANK_SIZE for b in cart.prg)
        assert cart.prg[0][:2] == b'\xA9\x05'
        assert cart.chr == [b'\x5A' * CHR_BANK_SIZE]

    def test_truncated_rom(self):
        rom = make_rom(prg_banks=2)[:-1]
        with pytest.raises(RomFormatError) as exc:
            Cartridge.from_bytes(rom)
        assert "truncated" in str(exc.value)

    def test_trailing_bytes_ignored(self):
        cart = Cartridge.from_bytes(make_rom() + b'\xFF' * 16)
        assert len(cart.prg) == 1


class TestMainFile:

    def test_layout_one_prg_no_chr(self):
        text = render_main(INesHeader.parse(make_header(1, 0, 0x01)))
        assert text == (
            ".MEMORYMAP\n"
            "    DEFAULTSLOT 1\n"
            "    SLOTSIZE $0010\n"
            "    SLOT 0 $0000\n"
            "    SLOTSIZE $4000\n"
            "    SLOT 1 $C000\n"
            "    SLOTSIZE $2000\n"
            "    SLOT 2 $0000\n"
            "    SLOTSIZE $800\n"
            "    SLOT 3 $0000\n"
            ".ENDME\n"
            "\n"
            ".ROMBANKMAP\n"
            "    BANKSTOTAL 2\n"
            "    BANKSIZE $0010\n"
            "    BANKS 1\n"
            "    BANKSIZE $4000\n"
            "    BANKS 1\n"
            "    BANKSIZE $2000\n"
            "    BANKS 0\n"
            ".ENDRO\n"
            "\n"
            ".BANK 0 SLOT 0\n"
            ".ORG $0000\n"
            "\n"
            '.SECTION "Header" FORCE\n'
            "\n"
            '.db "NES", $1A\n'
            ".db $01\n"
            ".db $00\n"
            ".db $01 $00 $00 $00 $00 $00 $00 $00 $00 $00\n"
            "\n"
            ".ENDS\n"
            "\n"
            '.RAMSECTION "RAM" SLOT 3\n'
            ".ENDS\n"
            "\n"
            '.INCLUDE "bank000.asm"\n'
        )

    def test_chr_stubs_follow_prg_banks(self):
        text = render_main(INesHeader.parse(make_header(2, 2, 0xA0)))
        assert '.INCLUDE "bank000.asm"\n.INCLUDE "bank001.asm"\n' in text
        assert '\n.BANK 3 SLOT 2\n.ORG $0000\n.INCBIN "bank000.chr"\n' in text
        assert '\n.BANK 4 SLOT 2\n.ORG $0000\n.INCBIN "bank001.chr"\n' in text
        assert "    BANKSTOTAL 5\n" in text

    def test_bankstotal_not_byte_limited(self):
        text = render_main(INesHeader.parse(make_header(255, 255)))
        assert "    BANKSTOTAL 511\n" in text


class TestEndToEnd:

    def test_lda_immediate(self, write_pair):
        rom_path, cdl_path, out = write_pair(
            make_rom(1, 0, 0x01, code=b'\xA9\x05'),
            make_trace(1, b'\x01\x01'),
        )
        disassemble_rom(rom_path, cdl_path, out)

        bank = (out / "bank000.asm").read_text()
        lines = bank.splitlines()
        assert "    LDA #5" in lines
        assert lines[lines.index("    LDA #5") - 1] == "L008000:"
        main = (out / "main.s").read_text()
        assert ".db $01\n.db $00\n" in main
        assert sorted(p.name for p in out.iterdir()) == ["bank000.asm", "main.s"]

    def test_jmp_into_fixed_bank(self, write_pair):
        rom_path, cdl_path, out = write_pair(
            make_rom(2, 0, 0xA0, code=b'\x4C\x00\xC0'),
            make_trace(2, b'\x01\x01\x01'),
        )
        disassemble_rom(rom_path, cdl_path, out)

        assert "    JMP L01C000.w" in (out / "bank000.asm").read_text().splitlines()

        cart = load_cartridge(rom_path)
        listing = BankDisassembler(2, get_policy(10)).disassemble(
            0, cart.prg[0], make_trace(2, b'\x01\x01\x01')[:PRG_BANK_SIZE])
        assert 0x01C000 in listing.labels
        assert 0x00C000 not in listing.labels

    def test_last_bank_labels_start_at_c000(self, write_pair):
        rom = bytearray(make_rom(2, 0, 0xA0))
        rom[0x10 + PRG_BANK_SIZE] = 0x60           # RTS at start of bank 1
        trace = bytearray(make_trace(2))
        trace[PRG_BANK_SIZE] = 0x01
        rom_path, cdl_path, out = write_pair(bytes(rom), bytes(trace))
        disassemble_rom(rom_path, cdl_path, out)

        text = (out / "bank001.asm").read_text()
        assert text.startswith('.BANK 2\n.ORG $0000\n\n.SECTION "Bank1" FORCE\n\nL01C000:\n    RTS\n')

    def test_chr_copied_verbatim(self, write_pair):
        rom_path, cdl_path, out = write_pair(
            make_rom(1, 2, 0x01, chr_fill=0xC3), make_trace(1))
        disassemble_rom(rom_path, cdl_path, out)

        assert (out / "bank000.chr").read_bytes() == b'\xC3' * CHR_BANK_SIZE
        assert (out / "bank001.chr").read_bytes() == b'\xC3' * CHR_BANK_SIZE

    def test_output_statistics(self, write_pair):
        rom_path, cdl_path, out = write_pair(make_rom(1, 1), make_trace(1))
        manager = disassemble_rom(rom_path, cdl_path, out)
        stats = manager.get_statistics()
        assert stats['files_written'] == 3
        assert stats['bytes_written'] == sum(p.stat().st_size for p in out.iterdir())

    def test_custom_main_file(self, write_pair):
        rom_path, cdl_path, out = write_pair(make_rom(), make_trace())
        disassemble_rom(rom_path, cdl_path, out, OutputLayout(main_file="game.s"))
        assert (out / "game.s").exists()
        assert not (out / "main.s").exists()

    def test_two_runs_identical(self, write_pair, tmp_path):
        rom_path, cdl_path, out = write_pair(
            make_rom(2, 1, 0xA0, code=b'\xA9\x05\xD0\xFC\x4C\x00\xC0'),
            make_trace(2, b'\x01\x01\x01\x01\x01\x01\x01\x02\x02'),
        )
        second = tmp_path / "out2"
        disassemble_rom(rom_path, cdl_path, out)
        disassemble_rom(rom_path, cdl_path, second)

        names = sorted(p.name for p in out.iterdir())
        assert names == sorted(p.name for p in second.iterdir())
        for name in names:
            assert (out / name).read_bytes() == (second / name).read_bytes()

    def test_unsupported_mapper_warns(self, write_pair, caplog):
        rom_path, cdl_path, out = write_pair(make_rom(1, 0, 0x10), make_trace())
        with caplog.at_level(logging.WARNING, logger="nes_disassembler"):
            disassemble_rom(rom_path, cdl_path, out)
        assert "Unhandled mapper: 1" in caplog.text
        assert (out / "bank000.asm").exists()


class TestFailures:
    """Format and consistency errors abort before anything is written."""

    def test_bad_magic(self, write_pair):
        rom_path, cdl_path, out = write_pair(b'XXXX' + make_rom()[4:], make_trace())
        with pytest.raises(RomFormatError):
            disassemble_rom(rom_path, cdl_path, out)
        assert not out.exists()

    def test_truncated_rom(self, write_pair):
        rom_path, cdl_path, out = write_pair(make_rom()[:-100], make_trace())
        with pytest.raises(RomFormatError):
            disassemble_rom(rom_path, cdl_path, out)
        assert not out.exists()

    def test_trace_length_mismatch(self, write_pair):
        rom_path, cdl_path, out = write_pair(make_rom(2), make_trace(1))
        with pytest.raises(TraceMismatchError) as exc:
            disassemble_rom(rom_path, cdl_path, out)
        assert exc.value.expected == 2 * PRG_BANK_SIZE
        assert exc.value.actual == PRG_BANK_SIZE
        assert exc.value.bank_id is None
        assert not out.exists()

    def test_missing_cdl(self, write_pair, tmp_path):
        rom_path, _, out = write_pair(make_rom(), make_trace())
        with pytest.raises(OSError):
            disassemble_rom(rom_path, tmp_path / "nope.cdl", out)
