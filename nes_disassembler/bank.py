"""
Bank Disassembler - one 16KB PRG bank + its CDL slice -> WLA-DX section.

The scan walks the bank once, front to back. Each byte is classified by its
CDL trace byte and drives a small state machine:

  Trace byte   Kind          Effect
  ----------   -----------   ---------------------------------------------
  bit0 set     CODE          close data run, decode one instruction
  bit1 only    DATA          open data run, emit `.db $XX`
  neither      UNCLASSIFIED  close data run, request a label, emit `.db $XX`

State = (inside a data run?, next instruction needs a label?). The four
combinations are the members of ``ScanState``; every transition goes through
one of its methods so each rule can be checked on its own.

Serialized form:

    .BANK <n+1>
    .ORG $0000

    .SECTION "Bank<n>" FORCE

    L038000:
        LDA #5
    ...

    .ENDS
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Set

from .config import DEFAULT_LAYOUT, OutputLayout
from .errors import TraceMismatchError
from .mappers import MapperPolicy, bank_base_offset, global_address
from .opcodes import BLOCK_END_MNEMONICS, lookup
from .operands import format_operand

__all__ = [
    'TraceKind', 'classify', 'ScanState', 'Line', 'BankListing',
    'BankDisassembler', 'disassemble_bank',
    'START_OF_DATA', 'END_OF_DATA',
]

logger = logging.getLogger(__name__)

START_OF_DATA = "; start of data"
END_OF_DATA = "; end of data"


class TraceKind(Enum):
    CODE = "code"
    DATA = "data"
    UNCLASSIFIED = "unclassified"


def classify(trace_byte: int) -> TraceKind:
    """Classify one CDL byte. Bits above 1 are ignored; 0x03 counts as code."""
    if trace_byte & 0x01:
        return TraceKind.CODE
    if trace_byte & 0x03 == 0x02:
        return TraceKind.DATA
    return TraceKind.UNCLASSIFIED


class ScanState(Enum):
    """Scanner state as (inside_data, pending_label)."""
    IDLE = (False, False)
    LABEL_PENDING = (False, True)
    IN_DATA = (True, False)
    IN_DATA_LABEL_PENDING = (True, True)

    @property
    def inside_data(self) -> bool:
        return self.value[0]

    @property
    def pending_label(self) -> bool:
        return self.value[1]

    @classmethod
    def initial(cls) -> ScanState:
        """The first instruction of a bank always gets a label."""
        return cls.LABEL_PENDING

    def _with(self, inside_data: Optional[bool] = None,
              pending_label: Optional[bool] = None) -> ScanState:
        return ScanState((
            self.inside_data if inside_data is None else inside_data,
            self.pending_label if pending_label is None else pending_label,
        ))

    # ── transitions ──

    def close_data(self) -> ScanState:
        """Leave a data run (code, unclassified byte or end of bank)."""
        return self._with(inside_data=False)

    def open_data(self) -> ScanState:
        return self._with(inside_data=True)

    def take_label(self) -> ScanState:
        """A defined instruction consumed the pending label."""
        return self._with(pending_label=False)

    def request_label(self) -> ScanState:
        """After RTS/JMP or an unclassified byte."""
        return self._with(pending_label=True)


class Line(NamedTuple):
    """One output line; ``address`` is None for markers and separators."""
    address: Optional[int]
    text: str


@dataclass
class BankListing:
    """Scan result for one bank, ready to serialize."""
    bank_id: int
    lines: List[Line] = field(default_factory=list)
    labels: Set[int] = field(default_factory=set)
    stats: Dict[str, int] = field(default_factory=lambda: {
        'instructions': 0,
        'data_bytes': 0,
        'unclassified_bytes': 0,
        'invalid_opcodes': 0,
        'truncated': 0,
    })

    def emit(self, address: Optional[int], text: str):
        self.lines.append(Line(address, text))

    def render(self) -> str:
        """Serialize as a WLA-DX ``.SECTION``."""
        out = [
            f".BANK {self.bank_id + 1}",
            ".ORG $0000",
            "",
            f'.SECTION "Bank{self.bank_id}" FORCE',
            "",
        ]
        for address, text in self.lines:
            if address is not None and address in self.labels:
                out.append(f"L{address:06X}:")
            out.append(text)
        out.append("")
        out.append(".ENDS")
        return "\n".join(out) + "\n"


class BankDisassembler:
    """
    Disassembles PRG banks of one ROM.

    Args:
        bank_count: Number of PRG banks in the ROM.
        policy: Mapper policy (load address and fixed-bank resolution).
        layout: Output layout (instruction indent).
    """

    def __init__(self, bank_count: int, policy: MapperPolicy,
                 layout: OutputLayout = DEFAULT_LAYOUT):
        self.bank_count = bank_count
        self.policy = policy
        self.layout = layout

    def disassemble(self, bank_id: int, data: bytes, trace: bytes) -> BankListing:
        """
        Scan one bank.

        Raises:
            TraceMismatchError: ``trace`` and ``data`` differ in length.
        """
        if len(trace) != len(data):
            raise TraceMismatchError(len(data), len(trace), bank_id=bank_id)

        base = global_address(bank_id,
                              bank_base_offset(bank_id, self.bank_count, self.policy))
        listing = BankListing(bank_id)
        state = ScanState.initial()
        i = 0

        while i < len(data):
            address = base + i
            kind = classify(trace[i])

            if kind is TraceKind.CODE:
                state = self._leave_data(state, listing)
                state, i = self._code(state, listing, data, i, address)
                continue

            if kind is TraceKind.DATA:
                if not state.inside_data:
                    listing.emit(None, START_OF_DATA)
                    state = state.open_data()
                listing.stats['data_bytes'] += 1
            else:
                state = self._leave_data(state, listing).request_label()
                listing.stats['unclassified_bytes'] += 1

            listing.emit(address, f".db ${data[i]:02X}")
            i += 1

        self._leave_data(state, listing)
        self._log_summary(listing)
        return listing

    def _leave_data(self, state: ScanState, listing: BankListing) -> ScanState:
        if state.inside_data:
            listing.emit(None, END_OF_DATA)
        return state.close_data()

    def _code(self, state: ScanState, listing: BankListing, data: bytes,
              i: int, address: int):
        """Decode the instruction at ``data[i]``; returns (state, next index)."""
        byte = data[i]
        opcode = lookup(byte)

        if opcode is None:
            listing.emit(address, f".db ${byte:02X} ; invalid opcode?")
            listing.stats['invalid_opcodes'] += 1
            return state, i + 1

        if i + opcode.size > len(data):
            listing.emit(address, f".db ${byte:02X} ; truncated instruction?")
            listing.stats['truncated'] += 1
            return state, i + 1

        if state.pending_label:
            listing.labels.add(address)
            state = state.take_label()

        operand = format_operand(opcode.mode, data[i + 1:i + opcode.size],
                                 listing.bank_id, address,
                                 self.bank_count, self.policy)
        if operand.target is not None:
            listing.labels.add(operand.target)

        text = f"{self.layout.indent}{opcode.mnemonic} {operand.text}".rstrip()
        listing.emit(address, text)
        listing.stats['instructions'] += 1

        if opcode.mnemonic in BLOCK_END_MNEMONICS:
            listing.emit(None, "")
            state = state.request_label()

        return state, i + opcode.size

    def _log_summary(self, listing: BankListing):
        stats = listing.stats
        logger.debug(
            "Bank %d: %d instructions, %d data bytes, %d unclassified, %d labels",
            listing.bank_id, stats['instructions'], stats['data_bytes'],
            stats['unclassified_bytes'], len(listing.labels),
        )
        if stats['invalid_opcodes'] or stats['truncated']:
            logger.warning(
                "Bank %d: %d invalid opcode(s), %d truncated instruction(s) "
                "in code-marked bytes",
                listing.bank_id, stats['invalid_opcodes'], stats['truncated'],
            )


def disassemble_bank(bank_id: int, data: bytes, trace: bytes, bank_count: int,
                     policy: MapperPolicy) -> BankListing:
    """Convenience wrapper: scan a single bank with a throwaway disassembler."""
    return BankDisassembler(bank_count, policy).disassemble(bank_id, data, trace)
