"""
Code generator - translates lexed assembly lines into intermediate code.

Declarations are laid out in memory first, then instruction lines are
translated in file order. Forward targets of IF and ELSE are left as
wildcards and backpatched through the resolution stack when the matching
ENDIF is reached.
"""

import re
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import Limits, DEFAULT_LIMITS
from ..errors import CapacityError, CompilationError
from ..lexer import SourceLine, SourceProgram
from ..vm.memory import MemoryImage, is_register, register_address
from ..vm.opcodes import Instruction, Opcode, OpcodeTable, Param, Slot
from .labels import LabelTable
from .symbols import SymbolTable, IDENTIFIER, LITERAL, OPERAND


# Diagnostic codes
UNKNOWN_DECLARATION = 'ASM0101'
BAD_DECLARATION = 'ASM0102'
UNKNOWN_MNEMONIC = 'ASM0201'
BAD_OPERANDS = 'ASM0202'
BAD_LABEL = 'ASM0203'
UNRESOLVED_IDENTIFIER = 'ASM0301'
INDEX_OUT_OF_RANGE = 'ASM0302'
BAD_COMPARISON = 'ASM0303'
UNRESOLVED_LABEL = 'ASM0401'
UNMATCHED_ENDIF = 'ASM0501'
UNMATCHED_ELSE = 'ASM0502'
UNCLOSED_BLOCK = 'ASM0503'
MISSING_END = 'ASM0601'

OPERAND_SEPARATORS = re.compile(r'[,\s]+')


@dataclass
class Diagnostic:
    """A recoverable problem found during generation."""
    code: str
    message: str
    line: Optional[int] = None

    def __str__(self):
        if self.line is None:
            return f"{self.code}: {self.message}"
        return f"{self.code}: line {self.line}: {self.message}"


@dataclass
class GenerationContext:
    """Everything one generation pass builds and mutates."""
    limits: Limits
    symbols: SymbolTable = None
    labels: LabelTable = None
    memory: MemoryImage = None
    instructions: List[Instruction] = field(default_factory=list)
    positions: Dict[int, int] = field(default_factory=dict)  # instruction no -> index
    stack: List[int] = field(default_factory=list)
    next_number: int = 1
    ended: bool = False

    def __post_init__(self):
        if self.symbols is None:
            self.symbols = SymbolTable(self.limits.symbols)
        if self.labels is None:
            self.labels = LabelTable(self.limits.labels)
        if self.memory is None:
            self.memory = MemoryImage(self.limits.memory_size)

    def emit(self, opcode: Opcode, params: List[Param]) -> Instruction:
        if len(self.instructions) >= self.limits.instructions:
            raise CapacityError(
                f"instruction table exhausted: at most {self.limits.instructions} instructions"
            )
        instr = Instruction(self.next_number, opcode, list(params))
        self.positions[instr.number] = len(self.instructions)
        self.instructions.append(instr)
        self.next_number += 1
        return instr

    def instruction_at(self, number: int) -> Instruction:
        return self.instructions[self.positions[number]]

    def push(self, number: int):
        if len(self.stack) >= self.limits.stack_depth:
            raise CapacityError(
                f"IF/ELSE nesting too deep: at most {self.limits.stack_depth} open blocks"
            )
        self.stack.append(number)

    @property
    def unresolved(self) -> List[Instruction]:
        return [instr for instr in self.instructions if Slot.WILDCARD in instr.params]


class CodeGenerator:
    """Generates intermediate instructions from lexed source."""

    def __init__(self, limits: Limits = DEFAULT_LIMITS, warn_as_error: bool = False,
                 verbose: bool = False):
        self.limits = limits
        self.warn_as_error = warn_as_error
        self.verbose = verbose
        self.ctx: Optional[GenerationContext] = None
        self._warnings: List[Diagnostic] = []
        self._line: Optional[int] = None

    def log(self, message: str):
        if self.verbose:
            print(f"[codegen] {message}", file=sys.stderr)

    def _warn(self, code: str, message: str):
        """Record a diagnostic for the current line, or raise in strict mode."""
        if self.warn_as_error:
            raise CompilationError(code, message, self._line)
        diagnostic = Diagnostic(code, message, self._line)
        self._warnings.append(diagnostic)
        print(f"[codegen] Warning: {diagnostic}", file=sys.stderr)

    def get_warnings(self) -> List[Diagnostic]:
        """Return all diagnostics from the last generation pass."""
        return self._warnings.copy()

    def generate(self, program: SourceProgram) -> GenerationContext:
        """Run both sections through a fresh context."""
        self.ctx = GenerationContext(self.limits)
        self._warnings = []

        for line in program.declarations:
            self._line = line.number
            self.process_declaration(line)
        self.log(f"Laid out {len(self.ctx.symbols)} symbols")

        remaining = len(program.instructions)
        for line in program.instructions:
            self._line = line.number
            remaining -= 1
            if line.is_label:
                self.process_label(line)
            else:
                self.process_instruction(line)
            if self.ctx.ended:
                if remaining:
                    self.log(f"Ignoring {remaining} line(s) after END")
                break

        self._line = None
        if not self.ctx.ended:
            self._warn(MISSING_END, "program has no END")
        if self.ctx.stack:
            open_blocks = ', '.join(str(n) for n in self.ctx.stack)
            self._warn(UNCLOSED_BLOCK, f"unmatched IF/ELSE at instruction(s) {open_blocks}")

        self.log(f"Generated {len(self.ctx.instructions)} instructions, "
                 f"{len(self.ctx.labels)} labels")
        return self.ctx

    # Declarations

    def process_declaration(self, line: SourceLine):
        keyword = line.head.upper()
        try:
            if keyword == 'CONST':
                entry = self.ctx.symbols.declare_const(line.tokens, self.ctx.memory)
            elif keyword == 'DATA':
                entry = self.ctx.symbols.declare_data(line.tokens, self.ctx.memory)
            else:
                self._warn(UNKNOWN_DECLARATION, f"unknown declaration '{line.head}'")
                return
        except ValueError as e:
            self._warn(BAD_DECLARATION, str(e))
            return
        self.log(f"  {entry.name} @ {entry.address} size {entry.size}")

    # Instructions

    def process_label(self, line: SourceLine):
        name = line.text[:-1].strip()
        if not IDENTIFIER.match(name):
            self._warn(BAD_LABEL, f"invalid label name '{name}'")
            return
        self.ctx.labels.add(name, self.ctx.next_number)

    def process_instruction(self, line: SourceLine):
        mnemonic = line.head.upper()
        opcode = OpcodeTable.get_opcode(mnemonic)
        if opcode is None:
            self._warn(UNKNOWN_MNEMONIC, f"unknown instruction '{line.head}'")
            return

        try:
            if opcode == Opcode.MOV_MEM:
                self.generate_mov(line.rest)
            elif opcode in OpcodeTable.BINARY:
                self.generate_binary(opcode, line.rest)
            elif opcode in (Opcode.READ, Opcode.PRINT):
                self.generate_unary(opcode, line.rest)
            elif mnemonic == 'ELSE':
                self.generate_else()
            elif opcode == Opcode.JUMP:
                self.generate_jump(line.rest)
            elif opcode == Opcode.IF:
                self.generate_if(line.rest)
            elif opcode == Opcode.ENDIF:
                self.generate_endif()
            elif opcode == Opcode.END:
                self.ctx.ended = True
        except ValueError as e:
            self._warn(BAD_OPERANDS, f"{mnemonic}: {e}")

    def split_operands(self, param: str, count: int) -> List[str]:
        operands = [op for op in OPERAND_SEPARATORS.split(param.strip()) if op]
        if len(operands) != count:
            raise ValueError(f"expected {count} operand(s), got {len(operands)}")
        return operands

    def resolve(self, operand: str) -> Param:
        """Memory address of a register, literal, variable or array element."""
        if is_register(operand):
            return register_address(operand)
        if LITERAL.match(operand):
            return self.ctx.symbols.intern_literal(operand, self.ctx.memory).address

        match = OPERAND.match(operand)
        if not match:
            self._warn(UNRESOLVED_IDENTIFIER, f"invalid operand '{operand}'")
            return Slot.INVALID
        name, index = match.group(1), match.group(2)
        entry = self.ctx.symbols.lookup(name)
        if entry is None:
            self._warn(UNRESOLVED_IDENTIFIER, f"variable '{name}' not found")
            return Slot.INVALID
        if index is None:
            return entry.address
        if int(index) >= entry.cells:
            self._warn(INDEX_OUT_OF_RANGE,
                       f"index {index} out of range for '{name}' (size {entry.cells})")
            return Slot.INVALID
        return entry.address + int(index)

    def resolve_destination(self, operand: str) -> Param:
        """Like resolve(), but pooled literals cannot be written."""
        if LITERAL.match(operand):
            self._warn(BAD_OPERANDS, f"cannot write to literal '{operand}'")
            return Slot.INVALID
        return self.resolve(operand)

    def generate_mov(self, param: str):
        dest, src = self.split_operands(param, 2)
        opcode = Opcode.MOV_REG if is_register(dest) else Opcode.MOV_MEM
        self.ctx.emit(opcode, [self.resolve_destination(dest), self.resolve(src)])

    def generate_binary(self, opcode: Opcode, param: str):
        dest, left, right = self.split_operands(param, 3)
        self.ctx.emit(opcode, [self.resolve_destination(dest), self.resolve(left), self.resolve(right)])

    def generate_unary(self, opcode: Opcode, param: str):
        operand, = self.split_operands(param, 1)
        if opcode == Opcode.READ:
            self.ctx.emit(opcode, [self.resolve_destination(operand)])
        else:
            self.ctx.emit(opcode, [self.resolve(operand)])

    def generate_jump(self, param: str):
        name, = self.split_operands(param, 1)
        label = self.ctx.labels.lookup(name)
        if label is None:
            self._warn(UNRESOLVED_LABEL, f"label '{name}' not found for JUMP")
            target = 0
        else:
            target = label.instruction_no
        self.ctx.emit(Opcode.JUMP, [target])

    def generate_if(self, param: str):
        """IF op1 <cmp> op2 [THEN]

        Always emitted and pushed, even with bad operands, so that the
        matching ELSE/ENDIF still pair up.
        """
        operands = [op for op in OPERAND_SEPARATORS.split(param.strip()) if op]
        if len(operands) == 4 and operands[3].upper() == 'THEN':
            operands = operands[:3]

        if len(operands) != 3:
            self._warn(BAD_OPERANDS, f"IF: expected 'operand <cmp> operand', got '{param.strip()}'")
            params = [Slot.INVALID, Slot.INVALID, Slot.INVALID]
        else:
            left, cmp, right = operands
            comparison = OpcodeTable.get_comparison(cmp)
            if comparison is None:
                self._warn(BAD_COMPARISON, f"unknown comparison '{cmp}'")
                comparison = Slot.INVALID
            params = [self.resolve(left), self.resolve(right), comparison]

        instr = self.ctx.emit(Opcode.IF, params + [Slot.WILDCARD])
        self.ctx.push(instr.number)

    def generate_else(self):
        ctx = self.ctx
        if not ctx.stack or ctx.instruction_at(ctx.stack[-1]).opcode != Opcode.IF:
            self._warn(UNMATCHED_ELSE, "ELSE without a matching IF")
            return
        instr = ctx.emit(Opcode.JUMP, [Slot.WILDCARD])
        ctx.push(instr.number)

    def generate_endif(self):
        """Close the innermost open block.

        With an ELSE, the ELSE jump lands after the ENDIF and the IF's false
        branch starts right after the ELSE. Without one, the IF's false
        branch lands after the ENDIF.
        """
        ctx = self.ctx
        if not ctx.stack:
            self._warn(UNMATCHED_ENDIF, "ENDIF without an open IF")
            return

        opened = ctx.stack.pop()
        instr = ctx.instruction_at(opened)
        instr.set_target(ctx.next_number)
        if instr.opcode == Opcode.IF:
            return

        partner = ctx.instruction_at(ctx.stack.pop())
        partner.set_target(opened + 1)
