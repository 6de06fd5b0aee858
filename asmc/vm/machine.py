"""
Virtual machine for the intermediate instruction stream.

Executes a finished, read-only instruction table against a copy of the
memory image built during code generation.
"""

import sys
import operator
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from ..errors import MachineError
from .memory import MemoryImage
from .opcodes import Instruction, Opcode, Slot


COMPARE = {
    Opcode.EQ: operator.eq,
    Opcode.LT: operator.lt,
    Opcode.GT: operator.gt,
    Opcode.LTEQ: operator.le,
    Opcode.GTEQ: operator.ge,
}

ARITHMETIC = {
    Opcode.ADD: operator.add,
    Opcode.SUB: operator.sub,
    Opcode.MUL: operator.mul,
}


@dataclass
class ExecutionResult:
    """Result of running a program."""
    output: List[int] = field(default_factory=list)
    memory: Optional[MemoryImage] = None
    steps: int = 0

    @property
    def text(self) -> str:
        return ''.join(f"{value}\n" for value in self.output)


def stdin_reader() -> str:
    line = sys.stdin.readline()
    if not line:
        raise EOFError
    return line


def iter_reader(values: Iterable) -> Callable[[], str]:
    """Wrap a sequence of prepared inputs as a READ source."""
    it = iter(values)

    def read() -> str:
        try:
            return str(next(it))
        except StopIteration:
            raise EOFError
    return read


class VirtualMachine:
    """Register/memory machine interpreting intermediate instructions."""

    def __init__(self, instructions: List[Instruction], memory: MemoryImage,
                 read: Callable[[], str] = None,
                 write: Callable[[int], None] = None,
                 verbose: bool = False):
        self.instructions = instructions
        self.memory = memory.copy()
        self.read = read or stdin_reader
        self.write = write
        self.verbose = verbose
        self._numbers = [instr.number for instr in instructions]
        self.pc = 0
        self.halted = False

    def log(self, message: str):
        if self.verbose:
            print(f"[vm] {message}", file=sys.stderr)

    def position_of(self, target, instruction_no: int) -> int:
        """Map a target instruction number to a table position.

        Lands on the first instruction numbered at or after the target, so a
        target just past the last instruction halts the machine.
        """
        if target is Slot.WILDCARD:
            raise MachineError("jump target was never resolved", instruction_no)
        if not isinstance(target, int):
            raise MachineError(f"invalid jump target {target!r}", instruction_no)
        return bisect_left(self._numbers, target)

    def run(self) -> ExecutionResult:
        """Execute until END or the end of the instruction table."""
        result = ExecutionResult(memory=self.memory)
        self.pc = 0
        self.halted = False
        while not self.halted and self.pc < len(self.instructions):
            instr = self.instructions[self.pc]
            self.log(f"{self.pc}: {instr!r}")
            self.pc = self.step(instr, result)
            result.steps += 1
        return result

    def step(self, instr: Instruction, result: ExecutionResult) -> int:
        """Execute one instruction and return the next program counter."""
        mem = self.memory
        no = instr.number
        p = instr.params
        next_pc = self.pc + 1

        if instr.opcode in (Opcode.MOV_MEM, Opcode.MOV_REG):
            mem.store(p[0], mem.load(p[1], no), no)

        elif instr.opcode in ARITHMETIC:
            value = ARITHMETIC[instr.opcode](mem.load(p[1], no), mem.load(p[2], no))
            mem.store(p[0], value, no)

        elif instr.opcode == Opcode.READ:
            address = mem.check(p[0], no)
            try:
                raw = self.read()
            except EOFError:
                raise MachineError("READ: no more input", no)
            try:
                mem.store(address, int(raw.strip()), no)
            except ValueError:
                raise MachineError(f"READ: expected an integer, got {raw.strip()!r}", no)

        elif instr.opcode == Opcode.PRINT:
            value = mem.load(p[0], no)
            result.output.append(value)
            if self.write:
                self.write(value)

        elif instr.opcode == Opcode.IF:
            compare = COMPARE.get(p[2])
            if compare is None:
                raise MachineError(f"IF: invalid comparison {p[2]!r}", no)
            if not compare(mem.load(p[0], no), mem.load(p[1], no)):
                next_pc = self.position_of(p[3], no)

        elif instr.opcode == Opcode.JUMP:
            next_pc = self.position_of(p[0], no)

        elif instr.opcode == Opcode.END:
            self.halted = True

        else:
            raise MachineError(f"cannot execute opcode {instr.opcode!r}", no)

        return next_pc


def execute(instructions: List[Instruction], memory: MemoryImage,
            inputs: Iterable = None, verbose: bool = False) -> ExecutionResult:
    """Run a program; `inputs` supplies READ values (stdin when None)."""
    read = iter_reader(inputs) if inputs is not None else None
    vm = VirtualMachine(instructions, memory, read=read, verbose=verbose)
    return vm.run()
