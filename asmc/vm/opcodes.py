"""
Intermediate instruction opcodes and the instruction record.

The numeric opcode values are part of the persisted table format and must not
change.
"""

from enum import Enum, IntEnum
from dataclasses import dataclass, field
from typing import List, Optional, Union


class Opcode(IntEnum):
    """Intermediate language opcodes."""
    MOV_MEM = 1    # MOV with a memory destination
    MOV_REG = 2    # MOV with a register destination
    ADD = 3
    SUB = 4
    MUL = 5
    JUMP = 6
    IF = 7
    EQ = 8
    LT = 9
    GT = 10
    LTEQ = 11
    GTEQ = 12
    PRINT = 13
    READ = 14
    ENDIF = 15
    END = 16


class Slot(Enum):
    """Parameter states that are not a resolved integer."""
    WILDCARD = 'WILDCARD'  # jump target awaiting backpatch
    INVALID = 'INVALID'    # operand that failed to resolve


Param = Union[int, Slot]

# Legacy five-slot row encoding
WILDCARD_VALUE = -2
END_OF_PARAMS = -1
INVALID_VALUE = -3
PARAM_SLOTS = 5


class OpcodeTable:
    """Source mnemonics and comparison operators."""

    MNEMONICS = {
        'MOV': Opcode.MOV_MEM,
        'ADD': Opcode.ADD,
        'SUB': Opcode.SUB,
        'MUL': Opcode.MUL,
        'JUMP': Opcode.JUMP,
        'ELSE': Opcode.JUMP,
        'IF': Opcode.IF,
        'PRINT': Opcode.PRINT,
        'READ': Opcode.READ,
        'ENDIF': Opcode.ENDIF,
        'END': Opcode.END,
    }

    COMPARISONS = {
        'EQ': Opcode.EQ,
        'LT': Opcode.LT,
        'GT': Opcode.GT,
        'LTEQ': Opcode.LTEQ,
        'GTEQ': Opcode.GTEQ,
    }

    BINARY = (Opcode.ADD, Opcode.SUB, Opcode.MUL)

    @classmethod
    def get_opcode(cls, mnemonic: str) -> Optional[Opcode]:
        """Get opcode by mnemonic, None if unknown."""
        return cls.MNEMONICS.get(mnemonic.upper())

    @classmethod
    def get_comparison(cls, name: str) -> Optional[Opcode]:
        return cls.COMPARISONS.get(name.upper())


@dataclass
class Instruction:
    """
    One intermediate instruction.

    `number` is the source ordinal assigned by the generator. Parameters are
    positional; the end of the list is the end of the parameters.
    """
    number: int
    opcode: Opcode
    params: List[Param] = field(default_factory=list)

    # Slot that holds the jump target, per opcode
    TARGET_SLOTS = {Opcode.JUMP: 0, Opcode.IF: 3}

    @property
    def target(self) -> Param:
        return self.params[self.TARGET_SLOTS[self.opcode]]

    def set_target(self, value: int):
        """Backpatch the jump target."""
        self.params[self.TARGET_SLOTS[self.opcode]] = value

    def encode(self) -> List[int]:
        """Render the legacy fixed-width parameter row."""
        row = []
        for param in self.params:
            if param is Slot.WILDCARD:
                row.append(WILDCARD_VALUE)
            elif param is Slot.INVALID:
                row.append(INVALID_VALUE)
            else:
                row.append(int(param))
        row.append(END_OF_PARAMS)
        return row + [0] * (PARAM_SLOTS - len(row))

    def __repr__(self):
        params = ', '.join(p.name if isinstance(p, Slot) else str(p) for p in self.params)
        return f"Instruction({self.number}, {self.opcode.name}, [{params}])"
